from datetime import datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from clientportal.web.deps import AppDep
from clientportal.web.openapi import CamelModel, ErrorResponse
from clientportal.web.sessions import bearer_token

router = APIRouter(tags=["cron"])


class CleanedCounts(CamelModel):
    sessions: int
    rate_limits: int
    csrf_tokens: int


class CleanupResponse(BaseModel):
    cleaned: CleanedCounts
    timestamp: datetime


@router.api_route(
    "/cron/cleanup",
    methods=["GET", "POST"],
    summary="Delete expired security records",
    description="Triggered by the scheduler with `Authorization: Bearer <cron secret>`.",
    responses={
        401: {"model": ErrorResponse, "description": "Missing or wrong cron secret"},
        503: {"model": ErrorResponse, "description": "Cleanup trigger not configured"},
    },
)
async def run_cleanup(request: Request, app: AppDep) -> CleanupResponse:
    result = await app.run_cleanup(bearer_token(request))
    cleaned = CleanedCounts(sessions=result.sessions, rate_limits=result.rate_limits, csrf_tokens=result.csrf_tokens)
    return CleanupResponse(cleaned=cleaned, timestamp=result.timestamp)

from fastapi import APIRouter, Depends, Request, Response

from clientportal.web.deps import CsrfGuardDep, rate_limit
from clientportal.web.openapi import CamelModel

router = APIRouter(tags=["csrf"])


class CsrfResponse(CamelModel):
    csrf_token: str


@router.get(
    "/csrf",
    summary="Get CSRF token",
    description="Return the caller's live CSRF token, issuing a new one when needed, and set it as a cookie.",
    operation_id="getCsrfToken",
    dependencies=[Depends(rate_limit("api"))],
)
async def get_csrf_token(request: Request, response: Response, guard: CsrfGuardDep) -> CsrfResponse:
    return CsrfResponse(csrf_token=await guard.issue(request, response))

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from clientportal.core.modules.cleanup.models import CounterStats
from clientportal.core.modules.session.models import Session, SessionStats, Transport
from clientportal.web.deps import AppDep, WebAdminDep, csrf_protect, rate_limit, require_web_admin
from clientportal.web.openapi import CamelModel, ErrorResponse

router = APIRouter(tags=["admin"])


class SecurityStatsResponse(CamelModel):
    sessions: SessionStats
    rate_limits: CounterStats
    server_time: datetime


class RevokeResponse(BaseModel):
    revoked: int


class SessionAuditEntry(CamelModel):
    """A session as shown to admins; the token itself is never returned."""

    transport: Transport
    created_at: datetime
    expires_at: datetime
    expired: bool
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_session(cls, session: Session, moment: datetime) -> "SessionAuditEntry":
        return cls(
            transport=session.transport,
            created_at=session.created_at,
            expires_at=session.expires_at,
            expired=session.is_expired(moment),
            ip_address=session.ip_address,
            user_agent=session.user_agent,
        )


@router.get(
    "/admin/sessions/stats",
    summary="Security record counts",
    description="Totals for sessions and rate-limit counters, including those the next cleanup would remove.",
    operation_id="getSecurityStats",
    dependencies=[Depends(rate_limit("api")), Depends(require_web_admin)],
    responses={
        200: {"description": "Current counts"},
        401: {"model": ErrorResponse, "description": "Admin session required"},
    },
)
async def get_security_stats(app: AppDep, admin: WebAdminDep) -> SecurityStatsResponse:
    stats = await app.get_security_stats(admin)
    return SecurityStatsResponse(sessions=stats.sessions, rate_limits=stats.rate_limits, server_time=stats.server_time)


@router.delete(
    "/admin/users/{user_id}/sessions",
    summary="Revoke user sessions",
    description="Sign a user out on every device and transport.",
    operation_id="revokeUserSessions",
    dependencies=[Depends(rate_limit("api")), Depends(require_web_admin), Depends(csrf_protect)],
    responses={
        200: {"description": "Number of sessions deleted"},
        401: {"model": ErrorResponse, "description": "Admin session required"},
        403: {"model": ErrorResponse, "description": "Invalid CSRF token"},
    },
)
async def revoke_user_sessions(user_id: UUID, app: AppDep, admin: WebAdminDep) -> RevokeResponse:
    return RevokeResponse(revoked=await app.revoke_user_sessions(admin, user_id))


@router.get(
    "/admin/users/{user_id}/sessions",
    summary="List user sessions",
    description="Sessions of a user, newest first, with the address and client they signed in from.",
    operation_id="listUserSessions",
    dependencies=[Depends(rate_limit("api")), Depends(require_web_admin)],
    responses={
        200: {"description": "Sessions of the user"},
        401: {"model": ErrorResponse, "description": "Admin session required"},
    },
)
async def list_user_sessions(user_id: UUID, app: AppDep, admin: WebAdminDep) -> list[SessionAuditEntry]:
    sessions = await app.list_user_sessions(admin, user_id)
    moment = app.now()
    return [SessionAuditEntry.from_session(session, moment) for session in sessions]

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from clientportal.core.modules.account.models import AccountView
from clientportal.core.modules.session.models import Role
from clientportal.web.deps import AppDep, MobileSessionsDep, MobileUserDep, rate_limit
from clientportal.web.openapi import CamelModel, ErrorResponse

router = APIRouter(tags=["mobile"])


class MobileLoginRequest(BaseModel):
    username: str = Field(..., description="Username or email address")
    password: str = Field(..., description="Password for authentication")


class MobileLoginResponse(CamelModel):
    access_token: str
    token_type: Literal["Bearer"] = "Bearer"
    expires_in: int = Field(..., description="Seconds until the token expires")
    role: Role
    account: AccountView


class MobileSessionResponse(CamelModel):
    authenticated: bool
    role: Role | None = None
    user_id: UUID | None = None


class PushTokenRequest(BaseModel):
    token: str = Field(..., description="Device push token")
    platform: str | None = Field(None, description="ios, android, ...")


@router.post(
    "/mobile/auth",
    summary="Mobile sign in",
    description="Verify credentials and return a bearer token for the mobile app.",
    operation_id="mobileLogin",
    dependencies=[Depends(rate_limit("auth"))],
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": ErrorResponse, "description": "Too many attempts"},
    },
)
async def mobile_login(
    login_data: MobileLoginRequest, request: Request, app: AppDep, sessions: MobileSessionsDep
) -> MobileLoginResponse:
    account = await app.authenticate(login_data.username, login_data.password)
    session = await sessions.create_session(request, account.id, account.role)
    return MobileLoginResponse(
        access_token=session.token,
        expires_in=int((session.expires_at - app.now()).total_seconds()),
        role=account.role,
        account=AccountView.from_domain(account),
    )


@router.delete(
    "/mobile/auth",
    summary="Mobile sign out",
    description="Delete the session named by the bearer token.",
    operation_id="mobileLogout",
    status_code=204,
    dependencies=[Depends(rate_limit("api"))],
)
async def mobile_logout(request: Request, sessions: MobileSessionsDep) -> None:
    await sessions.destroy_session(request)


@router.get(
    "/mobile/session",
    summary="Mobile session",
    description="Verify the bearer token against the session store.",
    operation_id="getMobileSession",
    dependencies=[Depends(rate_limit("api"))],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def get_mobile_session(check: MobileUserDep) -> MobileSessionResponse:
    return MobileSessionResponse(authenticated=check.authenticated, role=check.role, user_id=check.user_id)


@router.post(
    "/mobile/push-token",
    summary="Register push token",
    operation_id="registerPushToken",
    status_code=204,
    dependencies=[Depends(rate_limit("api"))],
    responses={
        400: {"model": ErrorResponse, "description": "Empty token"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def register_push_token(push_data: PushTokenRequest, app: AppDep, check: MobileUserDep) -> None:
    await app.register_push_token(check, push_data.token, push_data.platform)


@router.delete(
    "/mobile/push-token",
    summary="Unregister push token",
    operation_id="unregisterPushToken",
    status_code=204,
    dependencies=[Depends(rate_limit("api"))],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def unregister_push_token(app: AppDep, check: MobileUserDep) -> None:
    await app.unregister_push_token(check)

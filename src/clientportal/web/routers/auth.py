from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from clientportal.core.modules.account.models import AccountView
from clientportal.core.modules.session.models import Role, Transport
from clientportal.web.deps import AppDep, WebSessionDep, WebSessionsDep, csrf_protect, rate_limit
from clientportal.web.openapi import CamelModel, ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Browser login request."""

    email: str = Field(..., description="Email address or username")
    password: str = Field(..., description="Password for authentication")
    role: Role = Field(Role.CLIENT, description="Portal the user is signing in to")


class LoginResponse(BaseModel):
    """Browser login response; the session token itself travels only in the HttpOnly cookie."""

    role: Role
    account: AccountView


class SessionResponse(CamelModel):
    authenticated: Literal[True] = True
    role: Role
    user_id: UUID


class AnonymousSessionResponse(CamelModel):
    """No live session: `role` is reported as null and `userId` is left out."""

    authenticated: Literal[False] = False
    role: None = None


class SetupRequest(BaseModel):
    email: str = Field(..., description="Admin email address")
    password: str = Field(..., description="At least 8 characters including a digit")
    name: str = Field("", description="Display name")


@router.post(
    "/auth/login",
    summary="Sign in",
    description="Verify credentials and start a browser session. Any session cookie presented is revoked first.",
    operation_id="login",
    dependencies=[Depends(rate_limit("auth"))],
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": ErrorResponse, "description": "Too many attempts"},
    },
)
async def login(
    login_data: LoginRequest, request: Request, response: Response, app: AppDep, sessions: WebSessionsDep
) -> LoginResponse:
    account = await app.authenticate(login_data.email, login_data.password, login_data.role)
    await app.logout(sessions.presented_token(request), Transport.WEB)
    await sessions.create_session(request, response, account.id, account.role)
    return LoginResponse(role=account.role, account=AccountView.from_domain(account))


@router.post(
    "/auth/logout",
    summary="End session",
    description="Delete the browser session and clear its cookie.",
    operation_id="logout",
    status_code=204,
    dependencies=[Depends(rate_limit("api")), Depends(csrf_protect)],
    responses={
        204: {"description": "Successfully logged out"},
        403: {"model": ErrorResponse, "description": "Invalid CSRF token"},
    },
)
async def logout(request: Request, response: Response, sessions: WebSessionsDep) -> None:
    await sessions.destroy_session(request, response)


@router.get(
    "/auth/session",
    summary="Current session",
    description="Report whether the session cookie names a live session.",
    operation_id="getSession",
    dependencies=[Depends(rate_limit("api"))],
)
async def get_session(check: WebSessionDep) -> SessionResponse | AnonymousSessionResponse:
    if not check.authenticated or check.role is None or check.user_id is None:
        return AnonymousSessionResponse()
    return SessionResponse(role=check.role, user_id=check.user_id)


@router.post(
    "/auth/setup",
    summary="Create first admin",
    description="Create the initial admin account. Refused once an admin exists.",
    operation_id="setupAdmin",
    status_code=201,
    dependencies=[Depends(rate_limit("auth"))],
    responses={
        201: {"description": "Admin account created"},
        400: {"model": ErrorResponse, "description": "Invalid email or weak password"},
        403: {"model": ErrorResponse, "description": "Setup already completed"},
    },
)
async def setup_admin(setup_data: SetupRequest, app: AppDep) -> AccountView:
    return await app.setup_admin(setup_data.email, setup_data.password, setup_data.name)

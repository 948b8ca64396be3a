from collections.abc import Awaitable, Callable
from typing import Annotated, cast

from fastapi import Depends, Request, Response

from clientportal.app import App
from clientportal.core.modules.rate_limit.identity import address_identity, user_identity
from clientportal.core.modules.rate_limit.models import RateLimitDecision
from clientportal.core.modules.session.models import AuthFailure, SessionCheck
from clientportal.errors import AuthenticationError, ForgeryError, RateLimitedError, StoreUnavailableError
from clientportal.messages import message
from clientportal.web.csrf import CsrfGuard
from clientportal.web.sessions import (
    SESSION_COOKIE,
    MobileSessionManager,
    WebSessionManager,
    bearer_token,
    client_address,
)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


AppDep = Annotated[App, Depends(get_app)]


async def get_web_sessions(app: AppDep) -> WebSessionManager:
    return WebSessionManager(app)


async def get_mobile_sessions(app: AppDep) -> MobileSessionManager:
    return MobileSessionManager(app)


async def get_csrf_guard(app: AppDep) -> CsrfGuard:
    return CsrfGuard(app)


WebSessionsDep = Annotated[WebSessionManager, Depends(get_web_sessions)]
MobileSessionsDep = Annotated[MobileSessionManager, Depends(get_mobile_sessions)]
CsrfGuardDep = Annotated[CsrfGuard, Depends(get_csrf_guard)]


def _fail_closed(check: SessionCheck) -> None:
    """A store outage is a server error, not an anonymous caller."""
    if check.failure == AuthFailure.STORE_UNAVAILABLE:
        raise StoreUnavailableError("Session store unavailable")


async def web_session(request: Request, sessions: WebSessionsDep) -> SessionCheck:
    check = await sessions.verify_session(request)
    _fail_closed(check)
    return check


async def mobile_session(request: Request, sessions: MobileSessionsDep) -> SessionCheck:
    check = await sessions.verify_session(request)
    _fail_closed(check)
    return check


async def require_web_session(check: Annotated[SessionCheck, Depends(web_session)], app: AppDep) -> SessionCheck:
    if not check.authenticated:
        raise AuthenticationError(message("login_required", app.config.locale))
    return check


async def require_mobile_session(
    check: Annotated[SessionCheck, Depends(mobile_session)], app: AppDep
) -> SessionCheck:
    if not check.authenticated:
        raise AuthenticationError(message("login_required", app.config.locale))
    return check


async def require_web_admin(request: Request, sessions: WebSessionsDep) -> SessionCheck:
    """Admin-only routes answer 401 for anonymous and non-admin callers alike."""
    result = await sessions.require_admin(request)
    _fail_closed(result.session)
    if not result.authorized:
        raise AuthenticationError(result.error or "")
    return result.session


async def csrf_protect(request: Request, guard: CsrfGuardDep, app: AppDep) -> None:
    if not await guard.verify(request):
        raise ForgeryError(message("csrf_invalid", app.config.locale))


async def client_identity(request: Request, app: App) -> str:
    """Authenticated user id when the request carries a valid session, else the client address."""
    if bearer_token(request) is not None:
        check = await MobileSessionManager(app).verify_session(request)
    elif SESSION_COOKIE in request.cookies:
        check = await WebSessionManager(app).verify_session(request)
    else:
        check = None
    if check is not None and check.authenticated and check.user_id is not None:
        return user_identity(check.user_id)
    return address_identity(client_address(request))


def rate_limit(route_class: str) -> Callable[..., Awaitable[RateLimitDecision]]:
    """Dependency factory counting the request against ``route_class`` before anything else runs."""

    async def dependency(request: Request, response: Response, app: AppDep) -> RateLimitDecision:
        identity = await client_identity(request, app)
        decision = await app.check_rate_limit(identity, route_class)
        if decision.store_unavailable:
            raise StoreUnavailableError("Rate limit store unavailable")
        if not decision.allowed:
            raise RateLimitedError(message("rate_limited", app.config.locale), decision.limit, decision.reset_at)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return decision

    return dependency


# Type aliases for dependencies
WebSessionDep = Annotated[SessionCheck, Depends(web_session)]
WebUserDep = Annotated[SessionCheck, Depends(require_web_session)]
MobileUserDep = Annotated[SessionCheck, Depends(require_mobile_session)]
WebAdminDep = Annotated[SessionCheck, Depends(require_web_admin)]

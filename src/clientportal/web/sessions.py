"""Transport adapters for sessions: cookies for browsers, bearer headers for the mobile app."""

from uuid import UUID

from fastapi import Request, Response

from clientportal.app import App
from clientportal.core.modules.rate_limit.identity import normalize_address
from clientportal.core.modules.session.models import AdminCheck, AuthFailure, Role, Session, SessionCheck, Transport
from clientportal.messages import message

SESSION_COOKIE = "session_token"
MAX_USER_AGENT_LENGTH = 512


def bearer_token(request: Request) -> str | None:
    """Token from an ``Authorization: Bearer <token>`` header, if present."""
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def client_address(request: Request) -> str | None:
    """Socket peer of the request.

    Forwarding headers are never read here. Behind a reverse proxy, uvicorn rewrites
    the peer from ``X-Forwarded-For`` only for proxies listed in ``forwarded_allow_ips``,
    so a client cannot pick its own address.
    """
    return request.client.host if request.client else None


def user_agent(request: Request) -> str | None:
    return request.headers.get("User-Agent", "")[:MAX_USER_AGENT_LENGTH] or None


class SessionManager:
    """Verification shared by both transports; each request is checked against the store at most once."""

    transport: Transport

    def __init__(self, app: App) -> None:
        self._app = app

    def presented_token(self, request: Request) -> str | None:
        raise NotImplementedError

    @property
    def _state_key(self) -> str:
        return f"{self.transport}_session_check"

    async def verify_session(self, request: Request) -> SessionCheck:
        """Authenticate from persisted state, never from the presence of a token alone."""
        check: SessionCheck | None = getattr(request.state, self._state_key, None)
        if check is None:
            check = await self._app.check_session(self.presented_token(request), self.transport)
            setattr(request.state, self._state_key, check)
        return check

    async def require_admin(self, request: Request) -> AdminCheck:
        """Signal whether the caller is an admin. Never raises; handlers short-circuit on ``authorized=False``."""
        check = await self.verify_session(request)
        locale = self._app.config.locale
        if not check.authenticated:
            return AdminCheck(authorized=False, error=message("login_required", locale), session=check)
        if not check.is_admin:
            return AdminCheck(authorized=False, error=message("admin_required", locale), session=check)
        return AdminCheck(authorized=True, session=check)

    def _forget(self, request: Request) -> None:
        setattr(request.state, self._state_key, SessionCheck.denied(AuthFailure.MISSING))


class WebSessionManager(SessionManager):
    transport = Transport.WEB

    def presented_token(self, request: Request) -> str | None:
        return request.cookies.get(SESSION_COOKIE)

    async def create_session(self, request: Request, response: Response, user_id: UUID, role: Role) -> Session:
        """Open a web session and hand its token to the browser as an HttpOnly cookie."""
        session = await self._app.start_session(
            user_id, role, Transport.WEB, normalize_address(client_address(request)), user_agent(request)
        )
        max_age = int((session.expires_at - self._app.now()).total_seconds())
        response.set_cookie(
            key=SESSION_COOKIE,
            value=session.token,
            max_age=max_age,
            path="/",
            secure=self._app.config.secure_cookies,
            httponly=True,
            samesite="strict",
        )
        return session

    async def destroy_session(self, request: Request, response: Response) -> None:
        """Delete the session named by the cookie, if any, and clear the cookie."""
        await self._app.logout(self.presented_token(request), Transport.WEB)
        response.delete_cookie(
            SESSION_COOKIE, path="/", secure=self._app.config.secure_cookies, httponly=True, samesite="strict"
        )
        self._forget(request)


class MobileSessionManager(SessionManager):
    """Bearer-token sessions. Browsers never replay these on their own, so no CSRF check applies."""

    transport = Transport.MOBILE

    def presented_token(self, request: Request) -> str | None:
        return bearer_token(request)

    async def create_session(self, request: Request, user_id: UUID, role: Role) -> Session:
        return await self._app.start_session(
            user_id, role, Transport.MOBILE, normalize_address(client_address(request)), user_agent(request)
        )

    async def destroy_session(self, request: Request) -> None:
        await self._app.logout(self.presented_token(request), Transport.MOBILE)
        self._forget(request)

"""Double-submit CSRF protection for cookie-authenticated browser requests."""

from fastapi import Request, Response

from clientportal.app import App

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CsrfGuard:
    def __init__(self, app: App) -> None:
        self._app = app

    async def issue(self, request: Request, response: Response) -> str:
        """Return the caller's live token or a new one, and (re)set the script-readable cookie."""
        token = await self._app.issue_csrf_token(request.cookies.get(CSRF_COOKIE))
        max_age = int((token.expires_at - self._app.now()).total_seconds())
        response.set_cookie(
            key=CSRF_COOKIE,
            value=token.token,
            max_age=max_age,
            path="/",
            secure=self._app.config.secure_cookies,
            httponly=False,  # client script reads it and echoes it in X-CSRF-Token
            samesite="strict",
        )
        return token.token

    async def verify(self, request: Request) -> bool:
        """Safe methods pass; state-changing ones need the header to match a live cookie token."""
        if request.method.upper() not in STATE_CHANGING_METHODS:
            return True
        return await self._app.verify_csrf_token(request.cookies.get(CSRF_COOKIE), request.headers.get(CSRF_HEADER))

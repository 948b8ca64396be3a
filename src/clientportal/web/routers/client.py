from fastapi import APIRouter, Depends

from clientportal.core.modules.account.models import AccountView
from clientportal.web.deps import AppDep, WebUserDep, rate_limit
from clientportal.web.openapi import ErrorResponse

router = APIRouter(tags=["client"])


@router.get(
    "/client/me",
    summary="Get current account",
    description="Account behind the browser session.",
    operation_id="getCurrentAccount",
    dependencies=[Depends(rate_limit("api"))],
    responses={
        200: {"description": "Current account"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_current_account(app: AppDep, check: WebUserDep) -> AccountView:
    return await app.get_current_account(check)

from clientportal.web.routers.admin import router as admin_router
from clientportal.web.routers.auth import router as auth_router
from clientportal.web.routers.client import router as client_router
from clientportal.web.routers.cron import router as cron_router
from clientportal.web.routers.csrf import router as csrf_router
from clientportal.web.routers.mobile import router as mobile_router

__all__ = [
    "admin_router",
    "auth_router",
    "client_router",
    "cron_router",
    "csrf_router",
    "mobile_router",
]

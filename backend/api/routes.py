from fastapi import APIRouter

from api.admin_routes import router as admin_router
from api.cron_routes import router as cron_router

router = APIRouter()

router.include_router(cron_router, tags=["Cron"])
router.include_router(admin_router, tags=["Admin"])

from fastapi import APIRouter

from melhik.routers.admin.router import router as content_router
from melhik.routers.admin.sync import router as sync_router

router = APIRouter()
router.include_router(content_router)
router.include_router(sync_router)

from fastapi import APIRouter

from storage_bucket.api.auth import router as auth_router
from storage_bucket.api.files import router as files_router
from storage_bucket.api.stats import router as stats_router
from storage_bucket.api.system import router as system_router

router = APIRouter()
router.include_router(system_router)
router.include_router(auth_router)
router.include_router(files_router)
router.include_router(stats_router)

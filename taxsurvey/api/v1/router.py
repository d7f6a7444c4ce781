from fastapi import APIRouter

from taxsurvey.api.v1.health import router as health_router
from taxsurvey.api.v1.surveys import router as surveys_router
from taxsurvey.api.v1.images import router as images_router
from taxsurvey.api.v1.admin import router as admin_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])

# ------------------------------------------------------------------
# SURVEYS / ASSETS
# ------------------------------------------------------------------
v1_router.include_router(surveys_router, tags=["surveys"])
v1_router.include_router(images_router, tags=["images"])

# ------------------------------------------------------------------
# ADMIN (approval workflow)
# ------------------------------------------------------------------
v1_router.include_router(admin_router, tags=["admin"])

"""
API v1 routes.
"""

from fastapi import APIRouter

from unishare.api.v1 import admin, auth, comments, password, resources, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(password.router, prefix="/password", tags=["Password Reset"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(comments.router, prefix="/resources/{slug}/comments", tags=["Comments"])
router.include_router(resources.router, prefix="/resources", tags=["Resources"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])

"""
Public user profiles.
"""

from fastapi import APIRouter, HTTPException, status

from unishare.api.deps import DbSession
from unishare.api.v1.resources import resource_response
from unishare.engines.catalog import ResourceService
from unishare.kernel.identity.identity_service import IdentityService
from unishare.schemas.resource import PublicProfileResponse

router = APIRouter()


@router.get("/{username}", response_model=PublicProfileResponse)
async def get_profile(username: str, db: DbSession):
    """A user's profile with their published (unblocked) resources."""
    user = await IdentityService(db).get_user_by_username(username)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    
    resources = await ResourceService(db).list_owned(user.id, include_blocked=False)
    
    return PublicProfileResponse(
        username=user.username,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        bio=user.bio,
        created_at=user.created_at,
        resources=[resource_response(resource, user) for resource in resources],
    )

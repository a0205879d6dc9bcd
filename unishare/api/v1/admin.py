"""
Administration endpoints.

Block and unblock authenticate the caller first, then defer to the access
policy; the remaining routes require the admin role outright.
"""

import uuid
from typing import List

from fastapi import APIRouter, HTTPException, Query, Request, status

from unishare.api.deps import (
    AdminUser,
    CurrentUser,
    DbSession,
    authorize_resource,
    get_client_ip,
)
from unishare.engines.moderation import DashboardService, ModerationService
from unishare.kernel.events.event_store import EventStore
from unishare.kernel.identity.identity_service import IdentityService
from unishare.kernel.permissions import Operation, Principal
from unishare.schemas.admin import DashboardResponse, EventResponse
from unishare.schemas.auth import RoleUpdate, UserResponse
from unishare.schemas.common import SuccessResponse

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(admin: AdminUser, db: DbSession):
    """Catalogue statistics."""
    stats = await DashboardService(db).get_stats()
    return DashboardResponse.model_validate(stats)


async def _set_blocked(
    slug: str,
    blocked: bool,
    request: Request,
    user: CurrentUser,
    db: DbSession,
) -> SuccessResponse:
    resource = await authorize_resource(db, slug, Operation.SET_BLOCKED, Principal.from_user(user))
    await ModerationService(db).set_blocked(
        resource,
        blocked=blocked,
        admin_id=user.id,
        ip_address=get_client_ip(request),
    )
    state = "blocked" if blocked else "unblocked"
    return SuccessResponse(message=f"Resource {state} successfully", data={"slug": resource.slug})


@router.patch("/resources/{slug}/block", response_model=SuccessResponse)
async def block_resource(slug: str, request: Request, user: CurrentUser, db: DbSession):
    return await _set_blocked(slug, True, request, user, db)


@router.patch("/resources/{slug}/unblock", response_model=SuccessResponse)
async def unblock_resource(slug: str, request: Request, user: CurrentUser, db: DbSession):
    return await _set_blocked(slug, False, request, user, db)


@router.get("/resources/{slug}/history", response_model=List[EventResponse])
async def resource_history(
    slug: str,
    admin: AdminUser,
    db: DbSession,
    limit: int = Query(100, ge=1, le=500),
):
    """Audit trail of a resource, newest first."""
    resource = await authorize_resource(db, slug, Operation.READ, Principal.from_user(admin))
    events = await EventStore(db).get_entity_history("resource", resource.id, limit=limit)
    return [EventResponse.model_validate(event) for event in events]


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: uuid.UUID,
    request: Request,
    admin: AdminUser,
    db: DbSession,
):
    """Delete a user together with their resources, comments and ratings."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Administrators cannot delete their own account",
        )
    
    user = await IdentityService(db).get_user_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    
    removed = await ModerationService(db).delete_user(
        user,
        admin_id=admin.id,
        ip_address=get_client_ip(request),
    )
    return SuccessResponse(
        message="User and associated resources deleted successfully",
        data={"resources_deleted": removed},
    )


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: uuid.UUID,
    data: RoleUpdate,
    request: Request,
    admin: AdminUser,
    db: DbSession,
):
    user = await IdentityService(db).change_role(
        user_id,
        new_role=data.role,
        changed_by=admin.id,
        ip_address=get_client_ip(request),
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserResponse.model_validate(user)

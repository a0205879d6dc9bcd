"""
Resource endpoints.

Every route that addresses a resource by slug resolves it through
authorize_resource, which applies the access policy before anything else.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from unishare.api.deps import (
    CurrentPrincipal,
    CurrentUser,
    DbSession,
    OptionalUser,
    authorize_resource,
    get_client_ip,
)
from unishare.engines.catalog import ResourceService
from unishare.kernel.models.resource import Branch, MAX_SEMESTER, MIN_SEMESTER, Resource
from unishare.kernel.models.user import User
from unishare.kernel.permissions import Operation
from unishare.schemas.common import PaginatedResponse, SuccessResponse
from unishare.schemas.resource import (
    OwnerSummary,
    RatingRequest,
    RatingResponse,
    ResourceCreate,
    ResourceCreatedResponse,
    ResourceDetailResponse,
    ResourceResponse,
    ResourceUpdate,
)

router = APIRouter()


def resource_response(resource: Resource, owner: Optional[User]) -> ResourceResponse:
    response = ResourceResponse.model_validate(resource)
    if owner is not None:
        response.owner = OwnerSummary.model_validate(owner)
    return response


@router.get("", response_model=PaginatedResponse[ResourceResponse])
async def list_resources(
    db: DbSession,
    semester: Annotated[Optional[int], Query(ge=MIN_SEMESTER, le=MAX_SEMESTER)] = None,
    branch: Optional[Branch] = None,
    search: Annotated[Optional[str], Query(max_length=255)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
):
    """
    Browse published resources, newest first.
    
    Blocked resources never appear here.
    """
    result = await ResourceService(db).list_resources(
        semester=semester,
        branch=branch,
        search=search,
        page=page,
        limit=limit,
    )
    
    return PaginatedResponse.create(
        items=[resource_response(resource, owner) for resource, owner in result.items],
        total=result.total,
        page=page,
        limit=limit,
    )


@router.get("/mine", response_model=List[ResourceResponse])
async def list_my_resources(user: CurrentUser, db: DbSession):
    """The caller's own resources. Blocked ones are shown to admins only."""
    resources = await ResourceService(db).list_owned(user.id, include_blocked=user.is_admin)
    return [resource_response(resource, user) for resource in resources]


@router.post("", response_model=ResourceCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    request: Request,
    data: ResourceCreate,
    user: CurrentUser,
    db: DbSession,
):
    """Publish a resource; its slug is derived from the title."""
    resource = await ResourceService(db).create_resource(
        owner_id=user.id,
        title=data.title,
        description=data.description,
        branch=data.branch,
        semester=data.semester,
        file_url=data.file_url,
        ip_address=get_client_ip(request),
    )
    return ResourceCreatedResponse(slug=resource.slug)


@router.get("/{slug}", response_model=ResourceDetailResponse)
async def get_resource(
    slug: str,
    principal: CurrentPrincipal,
    db: DbSession,
):
    resource = await authorize_resource(db, slug, Operation.READ, principal)
    service = ResourceService(db)
    
    owner = await service.get_owner(resource)
    average, count = await service.rating_summary(resource.id)
    
    response = ResourceDetailResponse.model_validate(resource)
    response.owner = OwnerSummary.model_validate(owner) if owner else None
    response.average_rating = average
    response.rating_count = count
    return response


@router.patch("/{slug}", response_model=ResourceResponse)
async def update_resource(
    slug: str,
    request: Request,
    data: ResourceUpdate,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """Edit title, description, branch or semester (owner or admin)."""
    resource = await authorize_resource(db, slug, Operation.UPDATE_METADATA, principal)
    service = ResourceService(db)
    
    resource = await service.update_resource(
        resource,
        actor_id=principal.id,
        title=data.title,
        description=data.description,
        branch=data.branch,
        semester=data.semester,
        ip_address=get_client_ip(request),
    )
    return resource_response(resource, await service.get_owner(resource))


@router.delete("/{slug}", response_model=SuccessResponse)
async def delete_resource(
    slug: str,
    request: Request,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """Remove a resource with its comments and ratings (owner or admin)."""
    resource = await authorize_resource(db, slug, Operation.DELETE, principal)
    await ResourceService(db).delete_resource(
        resource,
        actor_id=principal.id,
        ip_address=get_client_ip(request),
    )
    return SuccessResponse(message="Resource deleted successfully")


@router.put("/{slug}/rating", response_model=RatingResponse)
async def rate_resource(
    slug: str,
    data: RatingRequest,
    principal: CurrentPrincipal,
    user: OptionalUser,
    db: DbSession,
):
    """Rate a resource from 1 to 5; rating again replaces the earlier value."""
    resource = await authorize_resource(db, slug, Operation.READ, principal)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    service = ResourceService(db)
    rating = await service.rate(resource, user.id, data.value)
    average, count = await service.rating_summary(resource.id)
    
    return RatingResponse(
        slug=resource.slug,
        your_rating=rating.value,
        average_rating=average,
        rating_count=count,
    )

"""
Comment endpoints, nested under a resource.

Comments inherit the visibility of their resource: a blocked resource's
comments are hidden from everyone but admins.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Request, status

from unishare.api.deps import (
    CurrentPrincipal,
    CurrentUser,
    DbSession,
    authorize_resource,
    get_client_ip,
)
from unishare.engines.catalog import CommentService
from unishare.kernel.models.comment import Comment
from unishare.kernel.models.user import User
from unishare.kernel.permissions import Operation, Principal
from unishare.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from unishare.schemas.common import SuccessResponse
from unishare.schemas.resource import OwnerSummary

router = APIRouter()

NOT_AUTHOR_DETAIL = "Comment not found or you are not the author of this comment"


def _comment_response(comment: Comment, author: User) -> CommentResponse:
    return CommentResponse(
        unique_string=comment.unique_string,
        body=comment.body,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        author=OwnerSummary.model_validate(author),
    )


@router.get("", response_model=List[CommentResponse])
async def list_comments(
    slug: str,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """Comments on a resource, newest first."""
    resource = await authorize_resource(db, slug, Operation.READ, principal)
    rows = await CommentService(db).list_for_resource(resource.id)
    return [_comment_response(comment, author) for comment, author in rows]


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    slug: str,
    request: Request,
    data: CommentCreate,
    user: CurrentUser,
    db: DbSession,
):
    resource = await authorize_resource(db, slug, Operation.READ, Principal.from_user(user))
    comment = await CommentService(db).add_comment(
        resource,
        user_id=user.id,
        body=data.body,
        ip_address=get_client_ip(request),
    )
    return _comment_response(comment, user)


@router.patch("/{unique_string}", response_model=CommentResponse)
async def edit_comment(
    slug: str,
    unique_string: str,
    request: Request,
    data: CommentUpdate,
    user: CurrentUser,
    db: DbSession,
):
    """Edit a comment. Only its author may do so."""
    resource = await authorize_resource(db, slug, Operation.READ, Principal.from_user(user))
    service = CommentService(db)
    
    comment = await service.get(resource.id, unique_string)
    if not comment or comment.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_AUTHOR_DETAIL)
    
    comment = await service.edit_comment(comment, data.body, ip_address=get_client_ip(request))
    return _comment_response(comment, user)


@router.delete("/{unique_string}", response_model=SuccessResponse)
async def delete_comment(
    slug: str,
    unique_string: str,
    request: Request,
    user: CurrentUser,
    db: DbSession,
):
    """Delete a comment (its author or an admin)."""
    resource = await authorize_resource(db, slug, Operation.READ, Principal.from_user(user))
    service = CommentService(db)
    
    comment = await service.get(resource.id, unique_string)
    if not comment or (comment.user_id != user.id and not user.is_admin):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_AUTHOR_DETAIL)
    
    await service.delete_comment(comment, actor_id=user.id, ip_address=get_client_ip(request))
    return SuccessResponse(message="Comment deleted successfully")

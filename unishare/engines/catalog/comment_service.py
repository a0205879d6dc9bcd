"""
Comments on resources.

Comments are addressed by an opaque unique_string rather than their primary
key. Only the author may edit a comment; the author or an admin may delete it.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.config import get_settings
from unishare.kernel.events.event_store import EventStore
from unishare.kernel.models.comment import Comment
from unishare.kernel.models.event_log import EventType
from unishare.kernel.models.resource import Resource
from unishare.kernel.models.user import User
from unishare.kernel.slugs import SlugAllocator, SlugStrategy


class CommentService:
    """Service for resource comments."""
    
    def __init__(self, session: AsyncSession, allocator: Optional[SlugAllocator] = None):
        self.session = session
        self.allocator = allocator or SlugAllocator(
            slug_exists=self.unique_string_exists,
            max_attempts=get_settings().slug_max_attempts,
        )
        self.event_store = EventStore(session)
    
    async def unique_string_exists(self, value: str) -> bool:
        result = await self.session.execute(
            select(Comment.id).where(Comment.unique_string == value).limit(1)
        )
        return result.first() is not None
    
    async def list_for_resource(self, resource_id: uuid.UUID) -> List[tuple[Comment, User]]:
        """Comments with their authors, newest first."""
        query = (
            select(Comment, User)
            .join(User, Comment.user_id == User.id)
            .where(Comment.resource_id == resource_id)
            .order_by(Comment.created_at.desc())
        )
        result = await self.session.execute(query)
        return [(comment, author) for comment, author in result.all()]
    
    async def get(self, resource_id: uuid.UUID, unique_string: str) -> Optional[Comment]:
        result = await self.session.execute(
            select(Comment).where(
                and_(
                    Comment.resource_id == resource_id,
                    Comment.unique_string == unique_string,
                )
            )
        )
        return result.scalar_one_or_none()
    
    async def add_comment(
        self,
        resource: Resource,
        user_id: uuid.UUID,
        body: str,
        ip_address: Optional[str] = None,
    ) -> Comment:
        """Attach a new comment to a resource."""
        unique_string = await self.allocator.allocate(strategy=SlugStrategy.OPAQUE)
        comment = Comment(
            unique_string=unique_string,
            resource_id=resource.id,
            user_id=user_id,
            body=body.strip(),
        )
        self.session.add(comment)
        await self.session.flush()
        
        await self.event_store.log(
            event_type=EventType.COMMENT_ADDED,
            entity_type="comment",
            entity_id=comment.id,
            user_id=user_id,
            payload={"resource_id": resource.id, "unique_string": unique_string},
            ip_address=ip_address,
        )
        return comment
    
    async def edit_comment(
        self,
        comment: Comment,
        body: str,
        ip_address: Optional[str] = None,
    ) -> Comment:
        comment.body = body.strip()
        await self.session.flush()
        
        await self.event_store.log(
            event_type=EventType.COMMENT_EDITED,
            entity_type="comment",
            entity_id=comment.id,
            user_id=comment.user_id,
            payload={"resource_id": comment.resource_id},
            ip_address=ip_address,
        )
        return comment
    
    async def delete_comment(
        self,
        comment: Comment,
        actor_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> None:
        await self.event_store.log(
            event_type=EventType.COMMENT_DELETED,
            entity_type="comment",
            entity_id=comment.id,
            user_id=actor_id,
            payload={"resource_id": comment.resource_id, "author_id": comment.user_id},
            ip_address=ip_address,
        )
        await self.session.delete(comment)
        await self.session.flush()

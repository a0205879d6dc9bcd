"""
Moderation actions: blocking resources and removing users.
"""

import uuid
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.kernel.events.event_store import EventStore
from unishare.kernel.models.comment import Comment
from unishare.kernel.models.event_log import EventType
from unishare.kernel.models.rating import Rating
from unishare.kernel.models.resource import Resource
from unishare.kernel.models.user import User, RefreshToken
from unishare.logging_config import get_logger

logger = get_logger(__name__)


class ModerationService:
    
    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)
    
    async def set_blocked(
        self,
        resource: Resource,
        blocked: bool,
        admin_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> Resource:
        """Block or unblock a resource. Setting the current state again is a no-op write."""
        resource.is_blocked = blocked
        await self.session.flush()
        
        await self.event_store.log(
            event_type=EventType.RESOURCE_BLOCKED if blocked else EventType.RESOURCE_UNBLOCKED,
            entity_type="resource",
            entity_id=resource.id,
            user_id=admin_id,
            payload={"slug": resource.slug},
            ip_address=ip_address,
        )
        logger.info(
            "Resource blocked" if blocked else "Resource unblocked",
            extra={"slug": resource.slug, "admin_id": str(admin_id)},
        )
        return resource
    
    async def delete_user(
        self,
        user: User,
        admin_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> int:
        """
        Delete a user with everything they own.
        
        Removes the user's comments and ratings, their resources (with all
        comments and ratings on them) and their refresh tokens.
        
        Returns:
            Number of resources removed
        """
        owned = select(Resource.id).where(Resource.owner_id == user.id)
        resource_ids = list((await self.session.execute(owned)).scalars().all())
        
        await self.session.execute(delete(Comment).where(Comment.user_id == user.id))
        await self.session.execute(delete(Rating).where(Rating.user_id == user.id))
        if resource_ids:
            await self.session.execute(
                delete(Comment).where(Comment.resource_id.in_(resource_ids))
            )
            await self.session.execute(
                delete(Rating).where(Rating.resource_id.in_(resource_ids))
            )
            await self.session.execute(delete(Resource).where(Resource.id.in_(resource_ids)))
        await self.session.execute(delete(RefreshToken).where(RefreshToken.user_id == user.id))
        
        await self.event_store.log(
            event_type=EventType.USER_DELETED,
            entity_type="user",
            entity_id=user.id,
            user_id=admin_id,
            payload={"username": user.username, "resources_deleted": len(resource_ids)},
            ip_address=ip_address,
        )
        await self.session.execute(delete(User).where(User.id == user.id))
        
        logger.info(
            "User deleted",
            extra={"username": user.username, "resources_deleted": len(resource_ids)},
        )
        return len(resource_ids)

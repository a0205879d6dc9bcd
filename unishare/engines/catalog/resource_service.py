"""
Resource catalog: creation, lookup, search and ratings.

Authorization is not decided here. Routes resolve the resource, run
kernel.permissions.authorize() and only then call the mutating methods.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, and_, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.config import get_settings
from unishare.kernel.events.event_store import EventStore
from unishare.kernel.models.base import enum_value
from unishare.kernel.models.comment import Comment
from unishare.kernel.models.event_log import EventType
from unishare.kernel.models.rating import Rating
from unishare.kernel.models.resource import Branch, Resource
from unishare.kernel.models.user import User
from unishare.kernel.slugs import SlugAllocator, SlugExhaustedError, SlugStrategy, normalize_title
from unishare.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ResourcePage:
    """One page of a resource listing, each row paired with its owner."""
    items: List[tuple[Resource, User]]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ResourceService:
    """
    Service for study resources.
    
    Usage:
        service = ResourceService(session)
        resource = await service.create_resource(owner_id=user.id, title=..., ...)
    """
    
    def __init__(self, session: AsyncSession, allocator: Optional[SlugAllocator] = None):
        self.session = session
        self.max_attempts = get_settings().slug_max_attempts
        self.allocator = allocator or SlugAllocator(
            slug_exists=self.slug_exists,
            max_attempts=self.max_attempts,
        )
        self.event_store = EventStore(session)
    
    async def slug_exists(self, slug: str) -> bool:
        """Whether any resource (blocked or not) uses slug."""
        result = await self.session.execute(
            select(Resource.id).where(Resource.slug == slug).limit(1)
        )
        return result.first() is not None
    
    async def get_by_slug(self, slug: str) -> Optional[Resource]:
        """Get a resource by slug regardless of its blocked state."""
        result = await self.session.execute(select(Resource).where(Resource.slug == slug))
        return result.scalar_one_or_none()
    
    async def get_owner(self, resource: Resource) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == resource.owner_id))
        return result.scalar_one_or_none()
    
    async def list_resources(
        self,
        semester: Optional[int] = None,
        branch: Optional[Branch] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ResourcePage:
        """
        List unblocked resources, newest first.
        
        Args:
            semester: Exact semester filter
            branch: Exact branch filter
            search: Case-insensitive substring of the title
            page: 1-based page number
            limit: Page size
        """
        conditions = [Resource.is_blocked == False]  # noqa: E712
        if semester is not None:
            conditions.append(Resource.semester == semester)
        if branch is not None:
            conditions.append(Resource.branch == enum_value(branch))
        if search and search.strip():
            conditions.append(Resource.title.ilike(_like_pattern(search.strip()), escape="\\"))
        
        count_query = select(func.count(Resource.id)).where(and_(*conditions))
        total = (await self.session.execute(count_query)).scalar() or 0
        
        query = (
            select(Resource, User)
            .join(User, Resource.owner_id == User.id)
            .where(and_(*conditions))
            .order_by(Resource.created_at.desc(), Resource.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        
        return ResourcePage(
            items=[(resource, owner) for resource, owner in result.all()],
            total=total,
            page=page,
            limit=limit,
        )
    
    async def list_owned(self, owner_id: uuid.UUID, include_blocked: bool = False) -> List[Resource]:
        """Resources uploaded by one user, newest first."""
        query = select(Resource).where(Resource.owner_id == owner_id)
        if not include_blocked:
            query = query.where(Resource.is_blocked == False)  # noqa: E712
        query = query.order_by(Resource.created_at.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def create_resource(
        self,
        owner_id: uuid.UUID,
        title: str,
        description: str,
        branch: Branch,
        semester: int,
        file_url: str,
        ip_address: Optional[str] = None,
    ) -> Resource:
        """
        Create a resource under a freshly allocated slug.
        
        The allocator's existence check can race with a concurrent insert of
        the same slug. The insert runs in a SAVEPOINT; if the unique index
        rejects the slug it is excluded and a new one is allocated.
        
        Raises:
            InvalidInputError: Title has no URL-safe characters
            SlugExhaustedError: Every attempt collided
        """
        rejected: set[str] = set()
        
        for attempt in range(1, self.max_attempts + 1):
            slug = await self.allocator.allocate(title, SlugStrategy.TITLE, exclude=rejected)
            resource = Resource(
                slug=slug,
                title=title.strip(),
                description=description.strip(),
                branch=enum_value(branch),
                semester=semester,
                file_url=file_url.strip(),
                owner_id=owner_id,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(resource)
            except IntegrityError:
                if not await self.slug_exists(slug):
                    raise
                logger.warning(
                    "Slug taken by a concurrent insert, retrying",
                    extra={"slug": slug, "attempt": attempt},
                )
                rejected.add(slug)
                continue
            
            await self.event_store.log(
                event_type=EventType.RESOURCE_CREATED,
                entity_type="resource",
                entity_id=resource.id,
                user_id=owner_id,
                payload={"slug": resource.slug, "title": resource.title},
                ip_address=ip_address,
            )
            logger.info("Resource created", extra={"slug": resource.slug})
            return resource
        
        raise SlugExhaustedError(self.max_attempts, normalize_title(title))
    
    async def update_resource(
        self,
        resource: Resource,
        actor_id: uuid.UUID,
        title: Optional[str] = None,
        description: Optional[str] = None,
        branch: Optional[Branch] = None,
        semester: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> Resource:
        """Apply metadata changes. The slug never changes."""
        changes = {}
        if title is not None and title.strip() != resource.title:
            changes["title"] = {"from": resource.title, "to": title.strip()}
            resource.title = title.strip()
        if description is not None:
            resource.description = description.strip()
            changes["description"] = True
        if branch is not None and enum_value(branch) != enum_value(resource.branch):
            changes["branch"] = {"from": enum_value(resource.branch), "to": enum_value(branch)}
            resource.branch = enum_value(branch)
        if semester is not None and semester != resource.semester:
            changes["semester"] = {"from": resource.semester, "to": semester}
            resource.semester = semester
        
        if changes:
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.RESOURCE_UPDATED,
                entity_type="resource",
                entity_id=resource.id,
                user_id=actor_id,
                payload={"slug": resource.slug, "changes": changes},
                ip_address=ip_address,
            )
        
        return resource
    
    async def delete_resource(
        self,
        resource: Resource,
        actor_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> None:
        """Hard-delete a resource with its comments and ratings."""
        await self.event_store.log(
            event_type=EventType.RESOURCE_DELETED,
            entity_type="resource",
            entity_id=resource.id,
            user_id=actor_id,
            payload={"slug": resource.slug, "title": resource.title, "owner_id": resource.owner_id},
            ip_address=ip_address,
        )
        await self.session.execute(delete(Comment).where(Comment.resource_id == resource.id))
        await self.session.execute(delete(Rating).where(Rating.resource_id == resource.id))
        await self.session.execute(delete(Resource).where(Resource.id == resource.id))
        logger.info("Resource deleted", extra={"slug": resource.slug})
    
    async def rate(
        self,
        resource: Resource,
        user_id: uuid.UUID,
        value: int,
    ) -> Rating:
        """Create or replace the user's rating of a resource."""
        result = await self.session.execute(
            select(Rating).where(
                and_(Rating.resource_id == resource.id, Rating.user_id == user_id)
            )
        )
        rating = result.scalar_one_or_none()
        
        if rating:
            rating.value = value
        else:
            rating = Rating(resource_id=resource.id, user_id=user_id, value=value)
            self.session.add(rating)
        await self.session.flush()
        
        await self.event_store.log(
            event_type=EventType.RESOURCE_RATED,
            entity_type="resource",
            entity_id=resource.id,
            user_id=user_id,
            payload={"value": value},
        )
        return rating
    
    async def rating_summary(self, resource_id: uuid.UUID) -> tuple[float, int]:
        """(average, count) of a resource's ratings; (0.0, 0) when unrated."""
        result = await self.session.execute(
            select(func.avg(Rating.value), func.count(Rating.id)).where(
                Rating.resource_id == resource_id
            )
        )
        average, count = result.one()
        return (round(float(average), 2) if average is not None else 0.0), count

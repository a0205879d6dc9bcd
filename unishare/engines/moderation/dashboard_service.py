"""
Admin dashboard statistics.

All counts cover every resource, blocked or not.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.kernel.models.resource import Resource
from unishare.kernel.models.user import User

TOP_CONTRIBUTORS = 3


@dataclass
class BranchCount:
    name: str
    total: int


@dataclass
class SemesterCount:
    semester: int
    total: int


@dataclass
class Contributor:
    username: str
    full_name: str
    avatar_url: Optional[str]
    total_resources: int


@dataclass
class DashboardStats:
    total_resources: int = 0
    total_contributors: int = 0
    resources_per_branch: List[BranchCount] = field(default_factory=list)
    resources_per_semester: List[SemesterCount] = field(default_factory=list)
    top_contributors: List[Contributor] = field(default_factory=list)


class DashboardService:
    """Aggregate queries behind the admin dashboard."""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def get_stats(self) -> DashboardStats:
        total_resources = await self.session.scalar(select(func.count(Resource.id)))
        total_contributors = await self.session.scalar(
            select(func.count(distinct(Resource.owner_id)))
        )
        
        return DashboardStats(
            total_resources=total_resources or 0,
            total_contributors=total_contributors or 0,
            resources_per_branch=await self._per_branch(),
            resources_per_semester=await self._per_semester(),
            top_contributors=await self._top_contributors(),
        )
    
    async def _per_branch(self) -> List[BranchCount]:
        total = func.count(Resource.id).label("total")
        result = await self.session.execute(
            select(Resource.branch, total)
            .group_by(Resource.branch)
            .order_by(total.desc(), Resource.branch)
        )
        return [BranchCount(name=branch, total=count) for branch, count in result.all()]
    
    async def _per_semester(self) -> List[SemesterCount]:
        result = await self.session.execute(
            select(Resource.semester, func.count(Resource.id))
            .group_by(Resource.semester)
            .order_by(Resource.semester)
        )
        return [SemesterCount(semester=sem, total=count) for sem, count in result.all()]
    
    async def _top_contributors(self) -> List[Contributor]:
        total = func.count(Resource.id).label("total")
        result = await self.session.execute(
            select(User.username, User.full_name, User.avatar_url, total)
            .join(Resource, Resource.owner_id == User.id)
            .group_by(User.id, User.username, User.full_name, User.avatar_url)
            .order_by(total.desc(), User.username)
            .limit(TOP_CONTRIBUTORS)
        )
        return [
            Contributor(
                username=username,
                full_name=full_name,
                avatar_url=avatar_url,
                total_resources=count,
            )
            for username, full_name, avatar_url, count in result.all()
        ]

"""
Admin schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class BranchTotal(BaseModel):
    name: str
    total: int
    
    class Config:
        from_attributes = True


class SemesterTotal(BaseModel):
    semester: int
    total: int
    
    class Config:
        from_attributes = True


class ContributorSummary(BaseModel):
    username: str
    full_name: str
    avatar_url: Optional[str] = None
    total_resources: int
    
    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    """Catalogue statistics for administrators."""
    
    total_resources: int
    total_contributors: int
    resources_per_branch: List[BranchTotal]
    resources_per_semester: List[SemesterTotal]
    top_contributors: List[ContributorSummary]
    
    class Config:
        from_attributes = True


class EventResponse(BaseModel):
    """Audit log entry."""
    
    id: uuid.UUID
    event_type: str
    entity_type: str
    entity_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    payload: Dict[str, Any]
    created_at: datetime
    
    class Config:
        from_attributes = True

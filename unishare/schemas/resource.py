"""
Resource schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from unishare.kernel.models.resource import Branch, MAX_SEMESTER, MIN_SEMESTER


class OwnerSummary(BaseModel):
    """Public view of a resource's owner."""
    
    username: str
    full_name: str
    avatar_url: Optional[str] = None
    
    class Config:
        from_attributes = True


class ResourceCreate(BaseModel):
    """Resource upload request."""
    
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10, max_length=500)
    branch: Branch
    semester: int = Field(..., ge=MIN_SEMESTER, le=MAX_SEMESTER)
    file_url: str = Field(..., min_length=1, max_length=1000)
    
    class Config:
        str_strip_whitespace = True


class ResourceUpdate(BaseModel):
    """Metadata update. The slug is never changed."""
    
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    branch: Optional[Branch] = None
    semester: Optional[int] = Field(None, ge=MIN_SEMESTER, le=MAX_SEMESTER)
    
    class Config:
        str_strip_whitespace = True


class ResourceResponse(BaseModel):
    """Resource as listed."""
    
    id: uuid.UUID
    slug: str
    title: str
    description: str
    branch: str
    semester: int
    file_url: str
    is_blocked: bool
    created_at: datetime
    updated_at: datetime
    owner: Optional[OwnerSummary] = None
    
    class Config:
        from_attributes = True


class ResourceDetailResponse(ResourceResponse):
    """Single resource with its rating summary."""
    
    average_rating: float = 0.0
    rating_count: int = 0


class ResourceCreatedResponse(BaseModel):
    slug: str
    message: str = "Resource uploaded successfully"


class RatingRequest(BaseModel):
    value: int = Field(..., ge=1, le=5)


class RatingResponse(BaseModel):
    slug: str
    your_rating: int
    average_rating: float
    rating_count: int


class PublicProfileResponse(BaseModel):
    """A user's public page."""
    
    username: str
    full_name: str
    avatar_url: Optional[str] = None
    bio: str
    created_at: datetime
    resources: List[ResourceResponse] = []
    
    class Config:
        from_attributes = True

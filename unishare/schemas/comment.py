"""
Comment schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from unishare.schemas.resource import OwnerSummary


class CommentCreate(BaseModel):
    body: str = Field(..., min_length=3, max_length=1000)
    
    class Config:
        str_strip_whitespace = True


class CommentUpdate(BaseModel):
    body: str = Field(..., min_length=3, max_length=1000)
    
    class Config:
        str_strip_whitespace = True


class CommentResponse(BaseModel):
    """Comment with its author."""
    
    unique_string: str
    body: str
    created_at: datetime
    updated_at: datetime
    author: OwnerSummary
    
    class Config:
        from_attributes = True

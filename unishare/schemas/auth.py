"""
Authentication and account schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from unishare.kernel.models.user import UserRole

USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"


def check_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


class UserCreate(BaseModel):
    """User registration request."""
    
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=3, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)
    
    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        if not all(c.isalpha() or c.isspace() for c in v):
            raise ValueError("Full name can only contain letters and spaces")
        return v
    
    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class UserLogin(BaseModel):
    """User login request."""
    
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Account details for the signed-in user."""
    
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar_url: Optional[str] = None
    bio: str
    role: str
    is_active: bool
    created_at: datetime
    
    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    """User profile update request."""
    
    full_name: Optional[str] = Field(None, min_length=3, max_length=255)
    bio: Optional[str] = Field(None, min_length=10, max_length=500)
    avatar_url: Optional[str] = Field(None, max_length=500)


class TokenResponse(BaseModel):
    """Authentication token response."""
    
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class RefreshTokenRequest(BaseModel):
    """Token refresh request."""
    
    refresh_token: str


class LogoutRequest(BaseModel):
    """Logout request; without a token every session is signed out."""
    
    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    """Password change request."""
    
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)
    
    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class RoleUpdate(BaseModel):
    role: UserRole

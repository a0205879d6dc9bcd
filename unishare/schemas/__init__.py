"""
Pydantic schemas for API request/response validation.
"""

from unishare.schemas.common import (
    SuccessResponse,
    PaginatedResponse,
    HealthResponse,
)
from unishare.schemas.auth import (
    UserCreate,
    UserLogin,
    UserResponse,
    UserProfileUpdate,
    TokenResponse,
    RefreshTokenRequest,
    LogoutRequest,
    ChangePasswordRequest,
    RoleUpdate,
)
from unishare.schemas.password import (
    PasswordResetRequest,
    PasswordResetVerify,
    PasswordResetConfirm,
)
from unishare.schemas.resource import (
    OwnerSummary,
    ResourceCreate,
    ResourceUpdate,
    ResourceResponse,
    ResourceDetailResponse,
    ResourceCreatedResponse,
    RatingRequest,
    RatingResponse,
    PublicProfileResponse,
)
from unishare.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from unishare.schemas.admin import DashboardResponse, EventResponse

__all__ = [
    # Common
    "SuccessResponse",
    "PaginatedResponse",
    "HealthResponse",
    # Auth
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "UserProfileUpdate",
    "TokenResponse",
    "RefreshTokenRequest",
    "LogoutRequest",
    "ChangePasswordRequest",
    "RoleUpdate",
    # Password reset
    "PasswordResetRequest",
    "PasswordResetVerify",
    "PasswordResetConfirm",
    # Resources
    "OwnerSummary",
    "ResourceCreate",
    "ResourceUpdate",
    "ResourceResponse",
    "ResourceDetailResponse",
    "ResourceCreatedResponse",
    "RatingRequest",
    "RatingResponse",
    "PublicProfileResponse",
    # Comments
    "CommentCreate",
    "CommentUpdate",
    "CommentResponse",
    # Admin
    "DashboardResponse",
    "EventResponse",
]

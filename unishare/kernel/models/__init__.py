"""
Kernel Data Models

SQLAlchemy models for users, resources and the interactions around them.
"""

from unishare.kernel.models.base import Base, TimestampMixin, enum_value, generate_uuid
from unishare.kernel.models.user import DEFAULT_BIO, User, UserRole, RefreshToken
from unishare.kernel.models.resource import Branch, Resource, MIN_SEMESTER, MAX_SEMESTER
from unishare.kernel.models.comment import Comment
from unishare.kernel.models.rating import Rating
from unishare.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "enum_value",
    "generate_uuid",
    # User
    "DEFAULT_BIO",
    "User",
    "UserRole",
    "RefreshToken",
    # Resources
    "Branch",
    "Resource",
    "MIN_SEMESTER",
    "MAX_SEMESTER",
    "Comment",
    "Rating",
    # Event Log
    "EventLog",
    "EventType",
]

"""
Resource ratings.
"""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from unishare.kernel.models.base import Base, TimestampMixin, generate_uuid


class Rating(Base, TimestampMixin):
    """One 1-5 star rating per user per resource."""
    
    __tablename__ = "ratings"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    resource_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    value: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    
    __table_args__ = (
        UniqueConstraint("resource_id", "user_id", name="uq_ratings_resource_user"),
        CheckConstraint("value BETWEEN 1 AND 5", name="ck_ratings_value_range"),
    )

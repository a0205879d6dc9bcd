"""
Study resource model.
"""

import uuid
from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from unishare.kernel.models.base import Base, TimestampMixin, generate_uuid


class Branch(str, Enum):
    """Academic departments a resource can be filed under."""
    ISE = "ISE"
    CSE = "CSE"
    ECE = "ECE"
    MECH = "MECH"
    CIVIL = "CIVIL"
    EEE = "EEE"
    AIML = "AIML"
    CHEMICAL = "CHEMICAL"


MIN_SEMESTER = 1
MAX_SEMESTER = 8


class Resource(Base, TimestampMixin):
    """
    A shared study resource (a link plus descriptive metadata).

    The slug is the public identifier. It is assigned once at creation and
    the unique index is what ultimately guarantees no two live resources
    share one.
    """
    
    __tablename__ = "resources"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    slug: Mapped[str] = mapped_column(
        String(320),
        unique=True,
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    branch: Mapped[Branch] = mapped_column(
        String(20),
        nullable=False,
    )
    semester: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    file_url: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
    )
    is_blocked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    
    # Ownership
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    
    __table_args__ = (
        Index("ix_resources_branch_semester", "branch", "semester"),
    )
    
    def __repr__(self) -> str:
        return f"<Resource {self.slug}>"

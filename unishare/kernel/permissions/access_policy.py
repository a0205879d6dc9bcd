"""
Resource access policy.

authorize() is a pure function of (operation, resource snapshot, principal).
It never raises and never touches the database: callers fetch the resource,
build a ResourceSnapshot (or pass None when nothing matched the slug) and
translate the returned Decision into a response.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from unishare.kernel.models.user import UserRole


class Operation(str, Enum):
    """Operations gated by the policy."""
    READ = "read"
    UPDATE_METADATA = "update_metadata"
    DELETE = "delete"
    SET_BLOCKED = "set_blocked"


class DenyReason(str, Enum):
    """Why an operation was refused."""
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class ResourceSnapshot:
    """Immutable read of the fields the policy looks at."""
    id: uuid.UUID
    slug: str
    owner_id: uuid.UUID
    is_blocked: bool = False

    @classmethod
    def from_resource(cls, resource) -> "ResourceSnapshot":
        return cls(
            id=resource.id,
            slug=resource.slug,
            owner_id=resource.owner_id,
            is_blocked=bool(resource.is_blocked),
        )


@dataclass(frozen=True)
class Principal:
    """The acting user, or the anonymous principal (no id, no role)."""
    id: Optional[uuid.UUID] = None
    role: Optional[UserRole] = None

    @property
    def is_anonymous(self) -> bool:
        return self.id is None

    @property
    def is_admin(self) -> bool:
        return not self.is_anonymous and self.role == UserRole.ADMIN

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @classmethod
    def from_user(cls, user) -> "Principal":
        if user is None:
            return cls()
        return cls(id=user.id, role=UserRole(user.role))


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""
    allowed: bool
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision.allow()


def authorize(
    operation: Operation,
    resource: Optional[ResourceSnapshot],
    principal: Principal,
) -> Decision:
    """
    Decide whether principal may perform operation on resource.

    Rules, first match wins:
    1. No resource -> NOT_FOUND.
    2. Blocked resource and non-admin -> NOT_FOUND.
       SET_BLOCKED skips this rule and falls through to rule 3.
    3. SET_BLOCKED by a non-admin -> FORBIDDEN.
    4. Anonymous principal -> READ allowed, everything else UNAUTHENTICATED.
    5. Owner or admin -> allowed.
    6. Anyone else -> READ allowed, everything else FORBIDDEN.
    """
    if resource is None:
        return Decision.deny(DenyReason.NOT_FOUND)

    if (
        resource.is_blocked
        and not principal.is_admin
        and operation != Operation.SET_BLOCKED
    ):
        return Decision.deny(DenyReason.NOT_FOUND)

    if operation == Operation.SET_BLOCKED and not principal.is_admin:
        return Decision.deny(DenyReason.FORBIDDEN)

    if principal.is_anonymous:
        if operation == Operation.READ:
            return ALLOW
        return Decision.deny(DenyReason.UNAUTHENTICATED)

    if principal.is_admin or principal.id == resource.owner_id:
        return ALLOW

    if operation == Operation.READ:
        return ALLOW
    return Decision.deny(DenyReason.FORBIDDEN)

"""
Permission Core - resource access policy.
"""

from unishare.kernel.permissions.access_policy import (
    ALLOW,
    Decision,
    DenyReason,
    Operation,
    Principal,
    ResourceSnapshot,
    authorize,
)

__all__ = [
    "ALLOW",
    "Decision",
    "DenyReason",
    "Operation",
    "Principal",
    "ResourceSnapshot",
    "authorize",
]

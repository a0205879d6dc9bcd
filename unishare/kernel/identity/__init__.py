"""
Identity Core - Authentication and user management.
"""

from unishare.kernel.identity.password import PasswordHasher, verify_password, hash_password
from unishare.kernel.identity.jwt import (
    JWTManager,
    TokenPair,
    AccessTokenPayload,
    verify_access_token,
)
from unishare.kernel.identity.identity_service import IdentityService
from unishare.kernel.identity.password_reset import (
    PasswordResetLimitError,
    PasswordResetService,
    ResetTicket,
)

__all__ = [
    "PasswordHasher",
    "verify_password",
    "hash_password",
    "JWTManager",
    "TokenPair",
    "AccessTokenPayload",
    "verify_access_token",
    "IdentityService",
    "PasswordResetLimitError",
    "PasswordResetService",
    "ResetTicket",
]

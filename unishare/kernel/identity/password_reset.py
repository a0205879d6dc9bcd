"""
Password reset via e-mailed one-time tokens.

Tokens are random hex strings; only their SHA-256 hash is stored. A user may
request at most `password_reset_max_requests_per_hour` links within a rolling
hour of the previous request.
"""

import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from unishare.config import Settings, get_settings
from unishare.kernel.events.event_store import EventStore
from unishare.kernel.identity.identity_service import IdentityService
from unishare.kernel.identity.jwt import JWTManager
from unishare.kernel.identity.password import hash_password
from unishare.kernel.models.event_log import EventType
from unishare.kernel.models.user import User
from unishare.logging_config import get_logger

logger = get_logger(__name__)

RESET_TOKEN_BYTES = 32
REQUEST_WINDOW = timedelta(hours=1)


class PasswordResetLimitError(Exception):
    """Too many reset requests in the current window."""


@dataclass
class ResetTicket:
    """A freshly issued reset token and the account it belongs to."""
    user: User
    token: str
    expires_at: datetime


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite returns naive datetimes for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PasswordResetService:
    """Issue, verify and redeem password reset tokens."""
    
    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()
        self.identity = IdentityService(session)
        self.event_store = EventStore(session)
    
    async def request_reset(
        self,
        email: str,
        ip_address: Optional[str] = None,
    ) -> Optional[ResetTicket]:
        """
        Issue a new reset token for the account behind email.
        
        Returns:
            The ticket to mail out, or None when no such account exists
            
        Raises:
            PasswordResetLimitError: The hourly request cap was reached
        """
        user = await self.identity.get_user_by_email(email)
        if not user or not user.is_active:
            return None
        
        now = datetime.now(timezone.utc)
        last_request = _as_utc(user.last_password_reset_request_at)
        within_window = last_request is not None and now - last_request < REQUEST_WINDOW
        
        if within_window and user.password_reset_requests >= self.settings.password_reset_max_requests_per_hour:
            logger.warning("Password reset limit reached", extra={"user_id": str(user.id)})
            raise PasswordResetLimitError(
                f"You have reached the limit of "
                f"{self.settings.password_reset_max_requests_per_hour} "
                f"password reset requests per hour"
            )
        
        token = secrets.token_hex(RESET_TOKEN_BYTES)
        expires_at = now + timedelta(hours=self.settings.password_reset_token_expire_hours)
        
        user.password_reset_token_hash = JWTManager.hash_token(token)
        user.password_reset_expires_at = expires_at
        user.last_password_reset_request_at = now
        user.password_reset_requests = user.password_reset_requests + 1 if within_window else 1
        
        await self.event_store.log(
            event_type=EventType.PASSWORD_RESET_REQUESTED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            ip_address=ip_address,
        )
        
        return ResetTicket(user=user, token=token, expires_at=expires_at)
    
    async def verify_token(self, email: str, token: str) -> Optional[User]:
        """Return the user if token is the live reset token for email."""
        user = await self.identity.get_user_by_email(email)
        if not user or not user.password_reset_token_hash:
            return None
        
        if not hmac.compare_digest(
            user.password_reset_token_hash,
            JWTManager.hash_token(token),
        ):
            return None
        
        expires_at = _as_utc(user.password_reset_expires_at)
        if expires_at is None or datetime.now(timezone.utc) > expires_at:
            return None
        
        return user
    
    async def reset_password(
        self,
        email: str,
        token: str,
        new_password: str,
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Set a new password using a reset token.
        
        Clears the token, resets the request counter and revokes every
        refresh token of the account.
        
        Returns:
            False if the token is invalid or expired
        """
        user = await self.verify_token(email, token)
        if not user:
            return False
        
        user.password_hash = hash_password(new_password)
        user.password_reset_token_hash = None
        user.password_reset_expires_at = None
        user.password_reset_requests = 0
        
        await self.identity.revoke_all_tokens(user.id)
        
        await self.event_store.log(
            event_type=EventType.PASSWORD_RESET_COMPLETED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            ip_address=ip_address,
        )
        logger.info("Password reset completed", extra={"user_id": str(user.id)})
        
        return True

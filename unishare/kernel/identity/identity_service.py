"""
Identity service for user management operations.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.kernel.models.base import enum_value
from unishare.kernel.models.user import User, UserRole, RefreshToken
from unishare.kernel.models.event_log import EventType
from unishare.kernel.events.event_store import EventStore
from unishare.kernel.identity.password import hash_password, verify_password
from unishare.kernel.identity.jwt import JWTManager, TokenPair
from unishare.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """
    Service for user identity operations.
    
    Handles registration, authentication, refresh-token rotation and
    profile/role changes.
    """
    
    def __init__(self, session: AsyncSession, jwt_manager: Optional[JWTManager] = None):
        self.session = session
        self.jwt_manager = jwt_manager or JWTManager()
        self.event_store = EventStore(session)
    
    async def register_user(
        self,
        username: str,
        email: str,
        password: str,
        full_name: str,
        avatar_url: Optional[str] = None,
        role: UserRole = UserRole.USER,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Register a new user.
        
        Raises:
            ValueError: If the username or email is already taken
        """
        username = username.lower().strip()
        email = email.lower().strip()
        
        if await self.get_user_by_email(email):
            raise ValueError("Email is already in use")
        if await self.get_user_by_username(username):
            raise ValueError("Username is already in use")
        
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            full_name=full_name.strip(),
            avatar_url=avatar_url,
            role=enum_value(role),
        )
        
        self.session.add(user)
        await self.session.flush()  # Get the ID
        
        await self.event_store.log(
            event_type=EventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"username": user.username, "role": enum_value(user.role)},
            ip_address=ip_address,
        )
        logger.info("User registered", extra={"username": user.username})
        
        return user
    
    async def authenticate(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[tuple[User, TokenPair]]:
        """
        Check credentials and issue a token pair.
        
        Returns:
            (User, TokenPair) on success, None otherwise
        """
        user = await self.get_user_by_email(email)
        if not user:
            return None
        
        if not verify_password(password, user.password_hash):
            return None
        
        if not user.is_active:
            return None
        
        token_pair = await self.start_session(user, ip_address=ip_address, user_agent=user_agent)
        return user, token_pair
    
    async def start_session(
        self,
        user: User,
        method: str = "password",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> TokenPair:
        """Issue a token pair for an already verified user and audit the login."""
        token_pair = await self._issue_tokens(user)
        
        await self.event_store.log(
            event_type=EventType.USER_LOGGED_IN,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"method": method},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        
        return token_pair
    
    async def refresh_tokens(
        self,
        refresh_token: str,
    ) -> Optional[tuple[User, TokenPair]]:
        """
        Exchange a refresh token for a new pair.
        
        The presented token is revoked (rotation); replaying it fails.
        """
        payload = self.jwt_manager.verify_refresh_token(refresh_token)
        if not payload:
            return None
        
        query = select(RefreshToken).where(
            and_(
                RefreshToken.token_hash == JWTManager.hash_token(refresh_token),
                RefreshToken.revoked == False,  # noqa: E712
                RefreshToken.expires_at > datetime.now(timezone.utc),
            )
        )
        result = await self.session.execute(query)
        token_record = result.scalar_one_or_none()
        
        if not token_record:
            return None
        
        user = await self.get_user_by_id(uuid.UUID(payload.sub))
        if not user or not user.is_active:
            return None
        
        token_record.revoked = True
        
        return user, await self._issue_tokens(user)
    
    async def logout(
        self,
        user_id: uuid.UUID,
        refresh_token: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        """
        Revoke one refresh token, or all of the user's tokens when none is given.
        """
        if refresh_token:
            await self.session.execute(
                update(RefreshToken)
                .where(
                    and_(
                        RefreshToken.user_id == user_id,
                        RefreshToken.token_hash == JWTManager.hash_token(refresh_token),
                    )
                )
                .values(revoked=True)
            )
        else:
            await self.revoke_all_tokens(user_id)
        
        await self.event_store.log(
            event_type=EventType.USER_LOGGED_OUT,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            payload={"revoke_all": refresh_token is None},
            ip_address=ip_address,
        )
    
    async def revoke_all_tokens(self, user_id: uuid.UUID) -> None:
        """Revoke every outstanding refresh token of a user."""
        await self.session.execute(
            update(RefreshToken)
            .where(
                and_(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked == False,  # noqa: E712
                )
            )
            .values(revoked=True)
        )
    
    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
    
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        result = await self.session.execute(
            select(User).where(User.email == email.lower().strip())
        )
        return result.scalar_one_or_none()
    
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        result = await self.session.execute(
            select(User).where(User.username == username.lower().strip())
        )
        return result.scalar_one_or_none()
    
    async def update_profile(
        self,
        user_id: uuid.UUID,
        full_name: Optional[str] = None,
        bio: Optional[str] = None,
        avatar_url: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[User]:
        """Update the editable profile fields that were supplied."""
        user = await self.get_user_by_id(user_id)
        if not user:
            return None
        
        changes = {}
        if full_name is not None:
            user.full_name = full_name.strip()
            changes["full_name"] = user.full_name
        if bio is not None:
            user.bio = bio.strip()
            changes["bio"] = user.bio
        if avatar_url is not None:
            user.avatar_url = avatar_url
            changes["avatar_url"] = avatar_url
        
        if changes:
            await self.event_store.log(
                event_type=EventType.USER_UPDATED,
                entity_type="user",
                entity_id=user_id,
                user_id=user_id,
                payload=changes,
                ip_address=ip_address,
            )
        
        return user
    
    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Change a password after checking the current one.
        
        Returns:
            False if the current password is wrong
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            return False
        
        if not verify_password(current_password, user.password_hash):
            return False
        
        user.password_hash = hash_password(new_password)
        
        # A password change signs out every session
        await self.revoke_all_tokens(user_id)
        
        await self.event_store.log(
            event_type=EventType.PASSWORD_CHANGED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            ip_address=ip_address,
        )
        
        return True
    
    async def change_role(
        self,
        user_id: uuid.UUID,
        new_role: UserRole,
        changed_by: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> Optional[User]:
        """Change a user's role (admin only)."""
        user = await self.get_user_by_id(user_id)
        if not user:
            return None
        
        old_role = enum_value(user.role)
        user.role = enum_value(new_role)
        
        await self.event_store.log(
            event_type=EventType.USER_ROLE_CHANGED,
            entity_type="user",
            entity_id=user_id,
            user_id=changed_by,
            payload={
                "previous_role": old_role,
                "new_role": enum_value(new_role),
            },
            ip_address=ip_address,
        )
        
        return user
    
    async def _issue_tokens(self, user: User) -> TokenPair:
        token_pair, refresh_exp = self.jwt_manager.create_token_pair(
            user_id=user.id,
            username=user.username,
            role=enum_value(user.role),
        )
        self.session.add(
            RefreshToken(
                user_id=user.id,
                token_hash=JWTManager.hash_token(token_pair.refresh_token),
                expires_at=refresh_exp,
            )
        )
        return token_pair

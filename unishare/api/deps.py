"""
FastAPI dependencies for authentication, authorization, and database sessions.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from unishare.database import get_db
from unishare.engines.catalog import ResourceService
from unishare.kernel.identity.jwt import verify_access_token
from unishare.kernel.identity.identity_service import IdentityService
from unishare.kernel.models.resource import Resource
from unishare.kernel.models.user import User
from unishare.kernel.permissions import (
    Decision,
    DenyReason,
    Operation,
    Principal,
    ResourceSnapshot,
    authorize,
)
from unishare.notifications import EmailService


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    if not credentials:
        return None
    
    payload = verify_access_token(credentials.credentials)
    if not payload:
        return None
    
    identity_service = IdentityService(db)
    user = await identity_service.get_user_by_id(uuid.UUID(payload.sub))
    
    if not user or not user.is_active:
        return None
    
    return user


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    identity_service = IdentityService(db)
    user = await identity_service.get_user_by_id(uuid.UUID(payload.sub))
    
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )
    
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]


def get_principal(user: OptionalUser) -> Principal:
    """The caller as seen by the access policy; anonymous without a valid token."""
    return Principal.from_user(user) if user else Principal.anonymous()


CurrentPrincipal = Annotated[Principal, Depends(get_principal)]


def get_email_service() -> EmailService:
    return EmailService()


Mailer = Annotated[EmailService, Depends(get_email_service)]


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    """Extract user agent from request."""
    return request.headers.get("User-Agent")


_DENIALS = {
    DenyReason.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Resource not found"),
    DenyReason.UNAUTHENTICATED: (status.HTTP_401_UNAUTHORIZED, "Not authenticated"),
    DenyReason.FORBIDDEN: (
        status.HTTP_403_FORBIDDEN,
        "You do not have permission to perform this action",
    ),
}


def ensure_allowed(decision: Decision) -> None:
    """Raise the HTTP error matching a denied decision."""
    if decision.allowed:
        return
    status_code, detail = _DENIALS[decision.reason]
    headers = {"WWW-Authenticate": "Bearer"} if decision.reason == DenyReason.UNAUTHENTICATED else None
    raise HTTPException(status_code=status_code, detail=detail, headers=headers)


async def authorize_resource(
    db: AsyncSession,
    slug: str,
    operation: Operation,
    principal: Principal,
) -> Resource:
    """
    Look up a resource by slug and enforce the access policy on it.
    
    Returns the resource only when the operation is allowed.
    """
    resource = await ResourceService(db).get_by_slug(slug)
    snapshot = ResourceSnapshot.from_resource(resource) if resource else None
    ensure_allowed(authorize(operation, snapshot, principal))
    return resource


async def require_admin(user: CurrentUser) -> User:
    """Require the current user to be an admin."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


AdminUser = Annotated[User, Depends(require_admin)]

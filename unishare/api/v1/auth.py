"""
Account endpoints: sign-up, sign-in, token rotation and the caller's profile.

Every endpoint that opens a session answers with a TokenResponse carrying the
user, so the client never needs a follow-up GET /me.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status

from unishare.api.deps import DbSession, CurrentUser, get_client_ip, get_user_agent
from unishare.kernel.identity.identity_service import IdentityService
from unishare.kernel.identity.jwt import TokenPair
from unishare.kernel.models.user import User
from unishare.logging_config import get_logger
from unishare.schemas.auth import (
    UserCreate,
    UserLogin,
    UserResponse,
    TokenResponse,
    RefreshTokenRequest,
    LogoutRequest,
    ChangePasswordRequest,
    UserProfileUpdate,
)
from unishare.schemas.common import SuccessResponse

logger = get_logger(__name__)

router = APIRouter()


def _session_response(user: User, token_pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        **token_pair.model_dump(),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(request: Request, data: UserCreate, db: DbSession):
    """
    Create a student account and sign it in.

    Usernames and e-mails are stored lower-cased; either being taken is a 400.
    """
    identity = IdentityService(db)
    ip_address = get_client_ip(request)

    try:
        user = await identity.register_user(
            username=data.username,
            email=data.email,
            password=data.password,
            full_name=data.full_name,
            avatar_url=data.avatar_url,
            ip_address=ip_address,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    token_pair = await identity.start_session(
        user,
        method="registration",
        ip_address=ip_address,
        user_agent=get_user_agent(request),
    )
    return _session_response(user, token_pair)


@router.post("/login", response_model=TokenResponse)
async def login(request: Request, data: UserLogin, db: DbSession):
    """Sign in with e-mail and password."""
    ip_address = get_client_ip(request)
    result = await IdentityService(db).authenticate(
        email=data.email,
        password=data.password,
        ip_address=ip_address,
        user_agent=get_user_agent(request),
    )

    if not result:
        logger.info("Login rejected", extra={"client_ip": ip_address})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return _session_response(*result)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(data: RefreshTokenRequest, db: DbSession):
    """Rotate a refresh token; the one presented stops working."""
    result = await IdentityService(db).refresh_tokens(refresh_token=data.refresh_token)

    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    return _session_response(*result)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    user: CurrentUser,
    db: DbSession,
    data: Optional[LogoutRequest] = None,
):
    """End one session (refresh_token given) or every session of the caller."""
    await IdentityService(db).logout(
        user_id=user.id,
        refresh_token=data.refresh_token if data else None,
        ip_address=get_client_ip(request),
    )

    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def read_me(user: CurrentUser):
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    request: Request,
    data: UserProfileUpdate,
    user: CurrentUser,
    db: DbSession,
):
    """Edit the public profile: full name, bio and avatar."""
    updated = await IdentityService(db).update_profile(
        user_id=user.id,
        full_name=data.full_name,
        bio=data.bio,
        avatar_url=data.avatar_url,
        ip_address=get_client_ip(request),
    )
    return UserResponse.model_validate(updated)


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    request: Request,
    data: ChangePasswordRequest,
    user: CurrentUser,
    db: DbSession,
):
    """Replace the password and sign out every session."""
    changed = await IdentityService(db).change_password(
        user_id=user.id,
        current_password=data.current_password,
        new_password=data.new_password,
        ip_address=get_client_ip(request),
    )

    if not changed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    return SuccessResponse(message="Password changed successfully. Please log in again.")

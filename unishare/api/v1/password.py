"""
Password reset endpoints.

The request endpoint answers the same way whether or not the address belongs
to an account, and whether or not that account has used up its hourly
requests.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Request, status

from unishare.api.deps import DbSession, Mailer, get_client_ip
from unishare.config import get_settings
from unishare.kernel.identity.password_reset import PasswordResetLimitError, PasswordResetService
from unishare.logging_config import get_logger
from unishare.schemas.common import SuccessResponse
from unishare.schemas.password import (
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetVerify,
)

logger = get_logger(__name__)

router = APIRouter()

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a password reset link has been sent."


def build_reset_url(token: str, email: str) -> str:
    base = get_settings().public_base_url.rstrip("/")
    return f"{base}/password/reset?{urlencode({'token': token, 'email': email})}"


@router.post(
    "/request-reset",
    response_model=SuccessResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_reset(
    request: Request,
    data: PasswordResetRequest,
    db: DbSession,
    mailer: Mailer,
):
    """E-mail a one-time reset link."""
    service = PasswordResetService(db)
    
    try:
        ticket = await service.request_reset(data.email, ip_address=get_client_ip(request))
    except PasswordResetLimitError:
        # Over the hourly cap: same answer as an unknown address, nothing sent
        return SuccessResponse(message=RESET_REQUESTED_MESSAGE)
    
    if ticket:
        sent = await mailer.send_password_reset_email(
            ticket.user.email,
            build_reset_url(ticket.token, ticket.user.email),
        )
        if not sent:
            logger.error("Password reset email not delivered", extra={"user_id": str(ticket.user.id)})
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to send password reset email",
            )
    
    return SuccessResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/verify-token", response_model=SuccessResponse)
async def verify_token(
    data: PasswordResetVerify,
    db: DbSession,
):
    """Check a reset link before showing the new-password form."""
    user = await PasswordResetService(db).verify_token(data.email, data.token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )
    return SuccessResponse(message="Token is valid")


@router.post("/reset", response_model=SuccessResponse)
async def reset_password(
    request: Request,
    data: PasswordResetConfirm,
    db: DbSession,
):
    """Set a new password; every session is signed out."""
    success = await PasswordResetService(db).reset_password(
        email=data.email,
        token=data.token,
        new_password=data.new_password,
        ip_address=get_client_ip(request),
    )
    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )
    return SuccessResponse(message="Password has been reset. Please log in with your new password.")

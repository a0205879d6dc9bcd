"""
Password reset schemas.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from unishare.schemas.auth import check_password_strength


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetVerify(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=1, max_length=128)


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)
    
    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

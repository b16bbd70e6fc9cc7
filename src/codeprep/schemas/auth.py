from pydantic import BaseModel, EmailStr, Field

from .base import BaseSchema
from .user import UserResponse


class Token(BaseModel):
    """Token schema for authentication."""
    access_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """Session token together with the signed-in account."""
    success: bool = True
    token: Token
    user: UserResponse


class OtpVerification(BaseSchema):
    """Email and the one-time code sent to it."""
    email: EmailStr
    otp: str = Field(min_length=1)


class PasswordResetConfirm(OtpVerification):
    """Reset a password with a one-time code."""
    new_password: str = Field(min_length=6)

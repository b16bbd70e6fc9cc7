import hmac
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from src.codeprep.core.config import settings
from src.codeprep.crud.crud_password_reset import password_reset as crud_password_reset
from src.codeprep.crud.crud_user import user as crud_user
from src.codeprep.db.session import SessionDep
from src.codeprep.models.user import User
from src.codeprep.schemas import (
    AuthResponse,
    MessageResponse,
    OAuthUserCreate,
    OtpVerification,
    PasswordResetConfirm,
    Token,
    UserCreate,
    UserResponse,
)
from src.codeprep.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_session(response: Response, user: User) -> Token:
    """Create a session token and mirror it into the session cookie."""
    token = auth_service.create_access_token(user)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )
    return Token(access_token=token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, response: Response, db: SessionDep):
    """
    Register a new user with email and password.

    Args:
        user_in: Email, password, names and an optional username
        db: Database session

    Returns:
        AuthResponse: Session token and the new account

    Raises:
        ConflictError: If the email or username is already registered (409)
    """
    user = await crud_user.create(db, obj_in=user_in)
    logger.info(f"Registered user {user.id}")
    token = _issue_session(response, user)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=Token)
async def login(
    response: Response,
    db: SessionDep,
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    """
    Login with email (sent as ``username``) and password.

    Returns the bearer token and sets it as the session cookie.
    """
    user = await crud_user.authenticate(db, email=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    return _issue_session(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.post("/oauth", response_model=AuthResponse)
async def oauth_login(
    user_in: OAuthUserCreate,
    response: Response,
    db: SessionDep,
    bridge_secret: Annotated[Optional[str], Header(alias="X-Auth-Bridge-Secret")] = None,
):
    """
    Sign in an account that authenticated with an OAuth provider.

    Called by the external auth framework, which proves itself with the
    shared bridge secret. Unknown emails get a new account.
    """
    if not settings.AUTH_BRIDGE_SECRET or not bridge_secret or not hmac.compare_digest(
        bridge_secret, settings.AUTH_BRIDGE_SECRET
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid bridge secret")

    user = await crud_user.get_or_create_oauth_user(db, obj_in=user_in)
    token = _issue_session(response, user)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(otp_in: OtpVerification, db: SessionDep):
    """Check a password reset code without spending it."""
    reset = await crud_password_reset.get_valid(db, email=otp_in.email, otp=otp_in.otp)
    if not reset:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired OTP")
    return MessageResponse(message="OTP verified successfully")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(reset_in: PasswordResetConfirm, db: SessionDep):
    """
    Set a new password with a password reset code.

    The code is spent on success. Accounts created through an OAuth provider
    have no password to reset.
    """
    reset = await crud_password_reset.get_valid(db, email=reset_in.email, otp=reset_in.otp)
    user = await crud_user.get(db, id=reset.user_id) if reset else None
    if not user or user.auth_provider != "credentials":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired OTP")

    await crud_password_reset.reset_password(db, reset=reset, user=user, new_password=reset_in.new_password)
    logger.info(f"Password reset for user {user.id}")
    return MessageResponse(message="Password reset successfully")

"""Authentication dependencies for FastAPI endpoints."""
import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.codeprep.core.config import settings
from src.codeprep.db.session import SessionDep
from src.codeprep.models.user import User
from src.codeprep.services.auth_service import InvalidTokenError, auth_service

logger = logging.getLogger(__name__)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


def _session_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    return bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user_optional(
    request: Request,
    db: SessionDep,
    token: Annotated[Optional[str], Depends(oauth2_scheme)] = None,
) -> Optional[User]:
    """The signed-in user, or None for anonymous callers and unusable tokens."""
    token = _session_token(request, token)
    if not token:
        return None
    try:
        user_id = auth_service.decode_access_token(token)
    except InvalidTokenError:
        return None
    return await db.get(User, user_id)


async def get_current_user(
    request: Request,
    db: SessionDep,
    token: Annotated[Optional[str], Depends(oauth2_scheme)] = None,
) -> User:
    """Get the current authenticated user."""
    token = _session_token(request, token)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user_id = auth_service.decode_access_token(token)
    except InvalidTokenError as e:
        logger.info(f"Rejected session token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, user_id)
    if not user:
        logger.warning(f"Session token names unknown user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def can_view_premium(user: Optional[User]) -> bool:
    """Premium problem details are for active subscribers and admins."""
    return user is not None and (user.is_admin or user.has_active_subscription())


# Type aliases for dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]

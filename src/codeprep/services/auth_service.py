import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from src.codeprep.core.config import settings
from src.codeprep.models.base import utcnow
from src.codeprep.models.user import OAUTH_PASSWORD_SENTINEL, User

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when a session token cannot be decoded or has expired."""
    pass


class AuthService:
    """Password hashing and session tokens."""

    def __init__(self, secret_key: Optional[str] = None, expire_minutes: Optional[int] = None):
        self.secret_key = secret_key or settings.SECRET_KEY
        self.expire_minutes = expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.logger = logging.getLogger(__name__)

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, password: str, hashed_password: str) -> bool:
        """Check a password against a stored hash.

        OAuth-only accounts carry the empty sentinel and always fail here.
        """
        if not hashed_password or hashed_password == OAUTH_PASSWORD_SENTINEL:
            return False
        try:
            return pwd_context.verify(password, hashed_password)
        except ValueError:
            self.logger.warning("Stored password hash could not be parsed")
            return False

    def create_access_token(self, user: User) -> str:
        expire = utcnow() + timedelta(minutes=self.expire_minutes)
        claims = {
            "sub": str(user.id),
            "role": user.role,
            "exp": expire,
        }
        return jwt.encode(claims, self.secret_key, algorithm=ALGORITHM)

    def decode_access_token(self, token: str) -> UUID:
        """Return the user id carried by a session token.

        Raises:
            InvalidTokenError: If the token is malformed, tampered or expired
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e
        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenError("Token has no subject")
        try:
            return UUID(subject)
        except ValueError as e:
            raise InvalidTokenError("Invalid user ID format") from e


auth_service = AuthService()

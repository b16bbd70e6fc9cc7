import logging
import re
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import ConflictError, CRUDBase
from src.codeprep.models.user import OAUTH_PASSWORD_SENTINEL, User as UserModel
from src.codeprep.schemas import OAuthUserCreate, UserCreate, UserUpdate
from src.codeprep.services.auth_service import auth_service

logger = logging.getLogger(__name__)


def username_from_email(email: str) -> str:
    """Local part of an email, reduced to characters usable in a username."""
    local = email.split("@", 1)[0]
    cleaned = re.sub(r"[^A-Za-z0-9_.-]", "", local)
    return cleaned if len(cleaned) >= 3 else f"user{cleaned}"


class CRUDUser(CRUDBase[UserModel, UserCreate, UserUpdate]):
    """CRUD operations for user management."""

    async def get_by_email(self, db: AsyncSession, *, email: str) -> UserModel | None:
        """Get a user by email."""
        stmt = select(UserModel).where(UserModel.email == email.lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, db: AsyncSession, *, username: str) -> UserModel | None:
        """Get a user by username."""
        stmt = select(UserModel).where(UserModel.username == username)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def _free_username(self, db: AsyncSession, base: str) -> str:
        candidate = base
        while await self.get_by_username(db, username=candidate):
            candidate = f"{base}{uuid.uuid4().hex[:6]}"
        return candidate

    async def create(self, db: AsyncSession, *, obj_in: UserCreate) -> UserModel:
        """Register a credentials account.

        Raises:
            ConflictError: If the email or the requested username is taken
        """
        email = obj_in.email.lower()
        if await self.get_by_email(db, email=email):
            raise ConflictError("User already exists")

        if obj_in.username:
            if await self.get_by_username(db, username=obj_in.username):
                raise ConflictError("Username already taken")
            username = obj_in.username
        else:
            username = await self._free_username(db, username_from_email(email))

        return await super().create(db, obj_in={
            "email": email,
            "username": username,
            "password": auth_service.hash_password(obj_in.password),
            "first_name": obj_in.first_name,
            "last_name": obj_in.last_name,
            "auth_provider": "credentials",
        })

    async def get_or_create_oauth_user(self, db: AsyncSession, *, obj_in: OAuthUserCreate) -> UserModel:
        """Find the account for an OAuth login, creating it on first sign-in.

        Accounts created here store the empty password sentinel and can
        never sign in through the credentials path.
        """
        user = await self.get_by_email(db, email=obj_in.email)
        if user:
            if obj_in.profile_picture and not user.profile_picture:
                user = await self.update(db, db_obj=user, obj_in={"profile_picture": obj_in.profile_picture})
            return user

        first_name, _, last_name = (obj_in.name or "").partition(" ")
        username = await self._free_username(db, username_from_email(obj_in.email))
        logger.info(f"Creating {obj_in.provider} account for {obj_in.email}")
        return await super().create(db, obj_in={
            "email": obj_in.email.lower(),
            "username": username,
            "password": OAUTH_PASSWORD_SENTINEL,
            "first_name": first_name or None,
            "last_name": last_name or None,
            "profile_picture": obj_in.profile_picture,
            "auth_provider": obj_in.provider,
        })

    async def authenticate(self, db: AsyncSession, *, email: str, password: str) -> Optional[UserModel]:
        """The user for these credentials, or None."""
        user = await self.get_by_email(db, email=email)
        if not user:
            return None
        if not auth_service.verify_password(password, user.password):
            return None
        return user

    async def update_profile(self, db: AsyncSession, *, db_obj: UserModel, obj_in: UserUpdate) -> UserModel:
        """Partial profile edit.

        Raises:
            ConflictError: If the new username belongs to another account
        """
        changes = obj_in.model_dump(exclude_unset=True)
        if changes.get("username") is None:
            changes.pop("username", None)
        elif changes["username"] != db_obj.username:
            existing = await self.get_by_username(db, username=changes["username"])
            if existing and existing.id != db_obj.id:
                raise ConflictError("Username already taken")
        return await self.update(db, db_obj=db_obj, obj_in=changes)

    async def activate_subscription(
        self, db: AsyncSession, *, db_obj: UserModel, plan_id: str, expires_at: Optional[datetime]
    ) -> UserModel:
        return await self.update(db, db_obj=db_obj, obj_in={
            "is_subscribed": True,
            "subscription_plan": plan_id,
            "subscription_expires_at": expires_at,
        })

    async def set_freemium(self, db: AsyncSession, *, db_obj: UserModel) -> UserModel:
        return await self.update(db, db_obj=db_obj, obj_in={
            "is_subscribed": False,
            "subscription_plan": "freemium",
            "subscription_expires_at": None,
        })


user = CRUDUser(UserModel)

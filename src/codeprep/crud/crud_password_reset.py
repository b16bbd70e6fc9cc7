import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.crud.base import CRUDBase
from src.codeprep.models.base import utcnow
from src.codeprep.models.password_reset import PasswordReset as PasswordResetModel
from src.codeprep.models.user import User as UserModel
from src.codeprep.schemas import OtpVerification
from src.codeprep.services.auth_service import auth_service

logger = logging.getLogger(__name__)

OTP_LIFETIME = timedelta(minutes=10)
OTP_DIGITS = 6


def generate_otp() -> str:
    return f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"


class CRUDPasswordReset(CRUDBase[PasswordResetModel, OtpVerification, OtpVerification]):
    """One-time password reset codes."""

    async def issue(self, db: AsyncSession, *, user: UserModel, now: Optional[datetime] = None) -> PasswordResetModel:
        """Store a fresh code for a user. Delivering it is up to the caller."""
        now = now or utcnow()
        reset = await self.create(db, obj_in={
            "user_id": user.id,
            "email": user.email,
            "otp": generate_otp(),
            "expires_at": now + OTP_LIFETIME,
        })
        logger.info(f"Issued password reset code for user {user.id}")
        return reset

    async def get_valid(
        self, db: AsyncSession, *, email: str, otp: str, now: Optional[datetime] = None
    ) -> Optional[PasswordResetModel]:
        """The unused, unexpired code matching email and otp, or None."""
        stmt = (
            select(PasswordResetModel)
            .where(
                PasswordResetModel.email == email.lower(),
                PasswordResetModel.otp == otp,
                PasswordResetModel.is_used.is_(False),
                PasswordResetModel.expires_at > (now or utcnow()),
            )
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def reset_password(
        self, db: AsyncSession, *, reset: PasswordResetModel, user: UserModel, new_password: str
    ) -> UserModel:
        """Spend the code and store the new password hash in one commit."""
        reset.is_used = True
        reset.updated_at = utcnow()
        user.password = auth_service.hash_password(new_password)
        user.updated_at = utcnow()
        db.add_all([reset, user])
        await db.commit()
        await db.refresh(user)
        return user


password_reset = CRUDPasswordReset(PasswordResetModel)

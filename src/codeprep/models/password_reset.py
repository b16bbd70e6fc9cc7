from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UUID as SQLUUID

from .base import Base


class PasswordReset(Base):
    """One-time code issued to reset a credentials account's password.

    A code is good until ``expires_at`` and only once.
    """
    __tablename__ = "password_resets"

    user_id = Column(SQLUUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, nullable=False, index=True)
    otp = Column(String, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)

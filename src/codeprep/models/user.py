from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String

from .base import Base, utcnow

# Stored in place of a hash for accounts created through an OAuth provider.
# It never matches a bcrypt hash, so such accounts cannot use the credentials login.
OAUTH_PASSWORD_SENTINEL = ""


class User(Base):
    """User model for accounts, roles and subscription state.

    Accounts are never hard-deleted.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    email = Column(String, nullable=False, unique=True, index=True)
    username = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False, default=OAUTH_PASSWORD_SENTINEL)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_picture = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user")
    auth_provider = Column(String, nullable=False, default="credentials")

    # Subscription
    is_subscribed = Column(Boolean, nullable=False, default=False)
    subscription_plan = Column(String, nullable=True)  # freemium, pro, premium, premium_monthly, premium_yearly
    subscription_expires_at = Column(DateTime, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.username

    def has_active_subscription(self, now: Optional[datetime] = None) -> bool:
        """A subscription is active when flagged and not past its expiry."""
        if not self.is_subscribed:
            return False
        if self.subscription_expires_at is None:
            return True
        return self.subscription_expires_at > (now or utcnow())

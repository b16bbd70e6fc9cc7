"""
Payment signature verification and subscription bookkeeping.
"""
import calendar
import hashlib
import hmac
from datetime import datetime
from typing import Optional

from src.codeprep.models.base import utcnow
from src.codeprep.models.user import User
from src.codeprep.schemas.payment import Subscription

PLAN_NAMES = {
    "freemium": "Freemium",
    "pro": "Pro",
    "premium": "Premium",
    "premium_monthly": "Premium Monthly",
    "premium_yearly": "Premium Yearly",
}

PAID_PLANS = frozenset({"pro", "premium", "premium_monthly", "premium_yearly"})


def generate_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``order_id|payment_id``, as the gateway signs it."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret: Optional[str]) -> bool:
    """Constant-time signature check. Without a configured secret nothing verifies."""
    if not secret:
        return False
    expected = generate_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def add_months(moment: datetime, months: int) -> datetime:
    """Same day ``months`` later, clamped to the last day of a shorter month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def compute_expiry(plan_id: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Expiry for a freshly bought plan; ``None`` means it does not expire."""
    now = now or utcnow()
    if plan_id == "premium_monthly":
        return add_months(now, 1)
    if plan_id == "premium_yearly":
        return add_months(now, 12)
    return None


def plan_name(plan_id: Optional[str]) -> str:
    return PLAN_NAMES.get(plan_id or "freemium", "Freemium")


def describe_subscription(user: Optional[User], now: Optional[datetime] = None) -> Subscription:
    """Subscription state of a user, or the freemium default for anonymous callers."""
    if user is None:
        return Subscription(
            plan_id="freemium",
            plan_name="Freemium",
            status="active",
            expires_at=None,
            is_subscribed=False,
        )

    plan_id = user.subscription_plan or "freemium"
    now = now or utcnow()
    if user.is_subscribed:
        expired = user.subscription_expires_at is not None and user.subscription_expires_at <= now
        status = "expired" if expired else "active"
    else:
        status = "active" if plan_id == "freemium" else "inactive"

    return Subscription(
        plan_id=plan_id,
        plan_name=plan_name(plan_id),
        status=status,
        expires_at=user.subscription_expires_at,
        is_subscribed=user.has_active_subscription(now),
    )

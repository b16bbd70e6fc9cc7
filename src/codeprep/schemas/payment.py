from typing import Literal, Optional
from datetime import datetime

from pydantic import Field

from .base import BaseSchema
from .enums import SubscriptionPlan


class Subscription(BaseSchema):
    """Subscription state as shown to the account holder."""
    plan_id: str
    plan_name: str
    status: Literal["active", "inactive", "expired"]
    expires_at: Optional[datetime] = None
    is_subscribed: bool


class SubscriptionChange(BaseSchema):
    plan_id: SubscriptionPlan


class PaymentVerification(BaseSchema):
    """Fields posted back by the payment gateway checkout."""
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    plan_id: SubscriptionPlan

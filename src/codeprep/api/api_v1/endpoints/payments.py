import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from src.codeprep.api.auth_deps import OptionalUser
from src.codeprep.core.config import settings
from src.codeprep.core.pbac import require_permission
from src.codeprep.crud.crud_user import user as crud_user
from src.codeprep.db.session import SessionDep
from src.codeprep.models.user import User
from src.codeprep.schemas import ApiResponse, PaymentVerification, Subscription, SubscriptionChange
from src.codeprep.services import payment_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/subscription", response_model=ApiResponse[Subscription])
async def read_subscription(
    current_user: OptionalUser,
    user_id: Annotated[Optional[UUID], Query(alias="userId")] = None,
):
    """
    Subscription state of the caller.

    Anonymous callers get the freemium default. Naming another user with
    ``userId`` is rejected.
    """
    if user_id is not None and (current_user is None or user_id != current_user.id):
        raise HTTPException(status_code=403, detail="You can only view your own subscription")
    return ApiResponse(data=payment_service.describe_subscription(current_user))


@router.post("/subscription", response_model=ApiResponse[Subscription])
async def change_subscription(
    change: SubscriptionChange,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("update", "payments"))],
):
    """Switch to the free plan. Paid plans are only granted by ``/payments/verify``."""
    if change.plan_id in payment_service.PAID_PLANS:
        raise HTTPException(status_code=400, detail="Paid plans require payment verification")
    user = await crud_user.set_freemium(db, db_obj=current_user)
    return ApiResponse(message="Subscription updated", data=payment_service.describe_subscription(user))


@router.post("/verify", response_model=ApiResponse[Subscription])
async def verify_payment(
    payment: PaymentVerification,
    db: SessionDep,
    current_user: Annotated[User, Depends(require_permission("create", "payments"))],
):
    """
    Verify a gateway payment signature and activate the paid plan.

    A signature that does not match, or a missing gateway secret, leaves the
    account untouched.
    """
    if payment.plan_id not in payment_service.PAID_PLANS:
        raise HTTPException(status_code=400, detail="Plan does not require payment")

    if not payment_service.verify_signature(
        payment.razorpay_order_id,
        payment.razorpay_payment_id,
        payment.razorpay_signature,
        settings.RAZORPAY_KEY_SECRET,
    ):
        logger.warning(f"Payment signature mismatch for user {current_user.id}, order {payment.razorpay_order_id}")
        raise HTTPException(status_code=400, detail="Payment verification failed")

    user = await crud_user.activate_subscription(
        db,
        db_obj=current_user,
        plan_id=payment.plan_id,
        expires_at=payment_service.compute_expiry(payment.plan_id),
    )
    logger.info(f"Activated {payment.plan_id} for user {user.id}, payment {payment.razorpay_payment_id}")
    return ApiResponse(message="Payment verified successfully", data=payment_service.describe_subscription(user))

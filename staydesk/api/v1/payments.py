"""Payments API router: staff review of submitted payments."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.api.deps import get_db, require_staff
from staydesk.models.payment import Payment
from staydesk.models.user import User
from staydesk.schemas.booking import BookingPaymentResponse
from staydesk.schemas.payment import PaymentListResponse, PaymentVerifyRequest
from staydesk.services import booking_service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.get(
    "",
    response_model=PaymentListResponse,
    summary="List payments",
)
async def list_payments(
    status_filter: str | None = Query(None, alias="status", description="Filter by payment status"),
    booking_id: int | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> dict:
    """Return payments, newest first. Use ``status=pending_verification`` for the review queue."""
    filters = []
    if status_filter is not None:
        filters.append(Payment.status == status_filter)
    if booking_id is not None:
        filters.append(Payment.booking_id == booking_id)

    total_result = await db.execute(select(func.count()).select_from(Payment).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Payment).where(*filters).order_by(Payment.created_at.desc(), Payment.id.desc()).offset(skip).limit(limit)
    )
    return {"items": list(result.scalars().all()), "total": total}


@router.post(
    "/{payment_id}/verify",
    response_model=BookingPaymentResponse,
    summary="Approve or reject a payment",
)
async def verify_payment(
    payment_id: int,
    body: PaymentVerifyRequest,
    db: AsyncSession = Depends(get_db),
    staff: User = Depends(require_staff),
) -> dict:
    """Approving confirms the booking; rejecting cancels it."""
    payment, booking = await booking_service.verify_payment(db, payment_id, body.approved, staff)
    return {"booking": booking, "payment": payment}

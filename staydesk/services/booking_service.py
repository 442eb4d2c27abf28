"""Booking service: the persisted Details -> Payment -> Confirmation chain.

Every step re-reads the rows it depends on inside the request transaction,
runs the pure rules from :mod:`staydesk.booking`, and only then writes.
There is no lock between the conflict check and the insert, so two
simultaneous requests for overlapping dates can both succeed.
"""

import logging
import time
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.booking.flow import (
    BookingDraft,
    BookingFlow,
    BookingStep,
    resolve_payment_outcome,
    resolve_verification,
    step_for_status,
    validate_details,
    validate_payment,
)
from staydesk.booking.pricing import (
    compute_base_total,
    compute_nights,
    format_currency,
    is_promotion_eligible,
    quote_stay,
)
from staydesk.booking.window import ACTIVE_STATUSES, CheckoutWindow, find_conflicts, has_booking_conflict
from staydesk.errors import (
    BookingError,
    DateConflict,
    InvalidTransition,
    PromotionNotEligible,
    friendly_backend_error,
)
from staydesk.models.booking import Booking
from staydesk.models.payment import Payment
from staydesk.models.promotion import Promotion
from staydesk.models.room import Room
from staydesk.models.user import User
from staydesk.payments.methods import get_payment_method, is_cash, needs_verification, normalize_method
from staydesk.schemas.booking import BookingCreate, BookingQuoteRequest, PaymentCreate
from staydesk.services.promotion_service import list_current_promotions, record_use
from staydesk.services.settings_service import get_checkout_window, get_payment_policy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _flush(db: AsyncSession, action: str) -> None:
    """Flush pending writes, translating backend failures for the user."""
    try:
        await db.flush()
    except DBAPIError as exc:
        logger.exception("Failed to %s", action)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=friendly_backend_error(exc.orig if exc.orig is not None else exc),
        ) from exc


async def get_room_or_404(db: AsyncSession, room_id: int) -> Room:
    room = await db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


async def get_booking_for_user(db: AsyncSession, booking_id: int, user: User) -> Booking:
    """Fetch a booking the user may see: staff see all, guests their own.

    Raises ``HTTPException 404`` otherwise.
    """
    booking = await db.get(Booking, booking_id)
    if booking is None or (not user.is_staff and booking.user_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def fetch_room_bookings(
    db: AsyncSession,
    room_id: int,
    exclude_booking_id: int | None = None,
) -> list[Booking]:
    """Bookings of a room whose status can block new stays.

    The checkout cutoff is applied afterwards by the window evaluator, since
    it depends on the current time rather than on stored data.
    """
    query = select(Booking).where(Booking.room_id == room_id, Booking.status.in_(ACTIVE_STATUSES))
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    result = await db.execute(query.order_by(Booking.start_date))
    return list(result.scalars().all())


async def find_room_conflicts(
    db: AsyncSession,
    room_id: int,
    start_date: date,
    end_date: date,
    window: CheckoutWindow,
) -> list[Booking]:
    existing = await fetch_room_bookings(db, room_id)
    return find_conflicts(start_date, end_date, existing, window=window)


# ---------------------------------------------------------------------------
# Quote (live pricing for the Details form)
# ---------------------------------------------------------------------------


async def quote_booking(db: AsyncSession, body: BookingQuoteRequest) -> dict:
    """Price a prospective stay and re-check the selected promotion."""
    room = await get_room_or_404(db, body.room_id)
    window = await get_checkout_window(db)
    today = window.today()

    draft = BookingDraft(
        nightly_rate=room.price,
        start_date=body.start_date,
        end_date=body.end_date,
        promotions=await list_current_promotions(db, today),
        selected_promotion_id=body.promotion_id,
    )
    notice = draft.refresh(today)
    quote = draft.quote

    available = room.status == "available" and quote.nights > 0 and not has_booking_conflict(
        body.start_date, body.end_date, await fetch_room_bookings(db, room.id), window=window
    )
    return {
        "room_id": room.id,
        "nights": quote.nights,
        "nightly_rate": quote.nightly_rate,
        "base_total": quote.base_total,
        "discount": quote.discount,
        "final_total": quote.final_total,
        "promotion_id": draft.selected_promotion_id,
        "promotion_cleared": notice is not None,
        "notice": notice,
        "available": available,
        "display_total": format_currency(quote.final_total),
    }


# ---------------------------------------------------------------------------
# Step 1: Details
# ---------------------------------------------------------------------------


async def create_booking(db: AsyncSession, body: BookingCreate, user: User) -> Booking:
    """Validate the Details step and persist a ``pending_payment`` booking."""
    try:
        start_date, end_date = validate_details(body.guest_name, body.guest_email, body.start_date, body.end_date)
    except BookingError as exc:
        raise exc.to_http() from None

    room = await get_room_or_404(db, body.room_id)
    if room.status != "available":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room is not available for booking")

    window = await get_checkout_window(db)

    promotion: Promotion | None = None
    if body.promotion_id is not None:
        promotion = await db.get(Promotion, body.promotion_id)
        nights = compute_nights(start_date, end_date)
        base_total = compute_base_total(nights, room.price)
        if promotion is None or not is_promotion_eligible(promotion, base_total, window.today()):
            raise PromotionNotEligible("The selected promotion is not available for this stay").to_http()

    # Read the room's bookings as late as possible before the insert.
    existing = await fetch_room_bookings(db, room.id)
    if has_booking_conflict(start_date, end_date, existing, window=window):
        raise DateConflict("Room is already booked for the selected dates").to_http()

    quote = quote_stay(start_date, end_date, room.price, promotion)
    booking = Booking(
        room_id=room.id,
        user_id=user.id,
        promotion_id=promotion.id if promotion is not None else None,
        start_date=start_date,
        end_date=end_date,
        status="pending_payment",
        base_price=quote.base_total,
        discount_amount=quote.discount,
        total_price=quote.final_total,
        guest_name=body.guest_name.strip(),
        guest_email=body.guest_email,
        guest_phone=body.guest_phone,
        notes=body.notes,
    )
    db.add(booking)
    if promotion is not None:
        record_use(promotion)
    await _flush(db, "create booking")
    await db.refresh(booking)

    logger.info(
        "Booking %s created for room %s (%s to %s) by user %s, total %s",
        booking.id,
        room.id,
        start_date,
        end_date,
        user.id,
        format_currency(quote.final_total),
    )
    return booking


# ---------------------------------------------------------------------------
# Step 2: Payment
# ---------------------------------------------------------------------------


async def record_payment(db: AsyncSession, booking: Booking, body: PaymentCreate, user: User) -> Payment:
    """Record the payment for a booking and move it to its next status."""
    flow = BookingFlow(step=step_for_status(booking.status), booking_id=booking.id)
    try:
        if flow.step != BookingStep.PAYMENT:
            raise InvalidTransition("Payment has already been submitted for this booking")
        reference = validate_payment(body.method, body.transaction_ref)
        flow.complete_payment()
    except BookingError as exc:
        raise exc.to_http() from None

    method = normalize_method(body.method)
    if is_cash(method) and not reference:
        reference = f"CASH-{int(time.time() * 1000)}"

    policy = await get_payment_policy(db)
    outcome = resolve_payment_outcome(method, recorded_by_staff=user.role in policy.trusted_cash_roles)

    payment = Payment(
        booking_id=booking.id,
        recorded_by=user.id,
        amount=booking.total_price,
        method=method,
        transaction_ref=reference,
        status=outcome.payment_status,
    )
    db.add(payment)
    booking.status = outcome.booking_status
    await _flush(db, "record payment")
    await db.refresh(payment)
    await db.refresh(booking)

    logger.info(
        "Payment %s (%s) recorded for booking %s by user %s; booking is now %s",
        payment.id,
        get_payment_method(method).display_name,
        booking.id,
        user.id,
        booking.status,
    )
    return payment


async def verify_payment(db: AsyncSession, payment_id: int, approved: bool, staff: User) -> tuple[Payment, Booking]:
    """Approve or reject a payment awaiting verification."""
    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    if not needs_verification(payment.status):
        raise InvalidTransition(f"Payment is already {payment.status}").to_http()

    booking = await db.get(Booking, payment.booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    outcome = resolve_verification(approved)
    payment.status = outcome.payment_status
    booking.status = outcome.booking_status
    await _flush(db, "verify payment")
    await db.refresh(payment)
    await db.refresh(booking)

    logger.info(
        "Payment %s %s by %s; booking %s is now %s",
        payment.id,
        "approved" if approved else "rejected",
        staff.id,
        booking.id,
        booking.status,
    )
    return payment, booking


async def cancel_booking(db: AsyncSession, booking: Booking, user: User) -> Booking:
    """Cancel a booking. Guests may only cancel before paying."""
    if booking.status == "cancelled":
        raise InvalidTransition("Booking is already cancelled").to_http()
    if not user.is_staff and booking.status != "pending_payment":
        raise InvalidTransition("Only unpaid bookings can be cancelled; please contact the front desk").to_http()

    booking.status = "cancelled"
    await _flush(db, "cancel booking")
    await db.refresh(booking)
    logger.info("Booking %s cancelled by user %s", booking.id, user.id)
    return booking


# ---------------------------------------------------------------------------
# Step 3: Confirmation
# ---------------------------------------------------------------------------


async def build_receipt(db: AsyncSession, booking: Booking) -> dict:
    """Receipt document for a booking whose payment has been submitted."""
    if step_for_status(booking.status) != BookingStep.CONFIRMATION:
        raise InvalidTransition("A receipt is available once payment has been submitted").to_http()

    room = await get_room_or_404(db, booking.room_id)
    promotion = await db.get(Promotion, booking.promotion_id) if booking.promotion_id is not None else None
    result = await db.execute(
        select(Payment).where(Payment.booking_id == booking.id).order_by(Payment.created_at, Payment.id)
    )
    payments = list(result.scalars().all())

    return {
        "booking_id": booking.id,
        "status": booking.status,
        "issued_at": datetime.now(timezone.utc),
        "guest_name": booking.guest_name,
        "guest_email": booking.guest_email,
        "guest_phone": booking.guest_phone,
        "room_name": room.name,
        "room_type": room.room_type,
        "start_date": booking.start_date,
        "end_date": booking.end_date,
        "nights": compute_nights(booking.start_date, booking.end_date),
        "nightly_rate": format_currency(room.price),
        "base_price": format_currency(booking.base_price),
        "discount": format_currency(booking.discount_amount),
        "total": format_currency(booking.total_price),
        "promotion_title": promotion.title if promotion is not None else None,
        "payments": [
            {
                "method": get_payment_method(p.method).display_name,
                "amount": format_currency(p.amount),
                "status": p.status,
                "transaction_ref": p.transaction_ref,
                "paid_at": p.created_at,
            }
            for p in payments
        ],
    }

"""Bookings API router.

Visibility rule: guests only see bookings they created; receptionists and
administrators see every booking.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.api.deps import get_current_active_user, get_db
from staydesk.models.booking import Booking
from staydesk.models.user import User
from staydesk.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingPaymentResponse,
    BookingQuoteRequest,
    BookingQuoteResponse,
    BookingResponse,
    PaymentCreate,
    ReceiptResponse,
)
from staydesk.services import booking_service

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "/quote",
    response_model=BookingQuoteResponse,
    summary="Price a prospective stay",
)
async def quote_booking(
    body: BookingQuoteRequest,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict:
    """Live pricing for the booking form.

    Re-checks the selected promotion on every call; when it no longer applies
    the response drops it, resets the discount and sets ``promotion_cleared``.
    """
    return await booking_service.quote_booking(db, body)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a booking (details step)",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    """Create a ``pending_payment`` booking.

    Rejects the request when:
    - the dates overlap an active booking of the room (409),
    - the selected promotion is not eligible for the stay (422),
    - a required field is missing or the date range is empty (422).
    """
    return await booking_service.create_booking(db, body, current_user)


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings",
)
async def list_bookings(
    room_id: int | None = Query(None, description="Filter by room"),
    status_filter: str | None = Query(None, alias="status", description="Filter by booking status"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Return a paginated list of bookings visible to the current user."""
    filters = []
    if not current_user.is_staff:
        filters.append(Booking.user_id == current_user.id)
    if room_id is not None:
        filters.append(Booking.room_id == room_id)
    if status_filter is not None:
        filters.append(Booking.status == status_filter)

    total_result = await db.execute(select(func.count()).select_from(Booking).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Booking).where(*filters).order_by(Booking.created_at.desc(), Booking.id.desc()).offset(skip).limit(limit)
    )
    return {"items": list(result.scalars().all()), "total": total}


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    return await booking_service.get_booking_for_user(db, booking_id, current_user)


@router.post(
    "/{booking_id}/payments",
    response_model=BookingPaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit payment for a booking (payment step)",
)
async def submit_payment(
    booking_id: int,
    body: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Record a payment and move the booking on.

    Cash recorded by front-desk staff confirms the booking at once; any other
    payment leaves it ``pending_verification`` until staff review it.
    """
    booking = await booking_service.get_booking_for_user(db, booking_id, current_user)
    payment = await booking_service.record_payment(db, booking, body, current_user)
    return {"booking": booking, "payment": payment}


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    booking = await booking_service.get_booking_for_user(db, booking_id, current_user)
    return await booking_service.cancel_booking(db, booking, current_user)


@router.get(
    "/{booking_id}/receipt",
    response_model=ReceiptResponse,
    summary="Receipt for a paid booking (confirmation step)",
)
async def get_receipt(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    booking = await booking_service.get_booking_for_user(db, booking_id, current_user)
    return await booking_service.build_receipt(db, booking)

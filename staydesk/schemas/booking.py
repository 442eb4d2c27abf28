"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

from staydesk.booking.flow import step_for_status
from staydesk.schemas.payment import PaymentResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Details step: stay dates, guest identity and an optional promotion."""

    room_id: int
    start_date: date
    end_date: date
    guest_name: str = Field(..., max_length=255)
    guest_email: EmailStr
    guest_phone: str | None = Field(None, max_length=50)
    notes: str | None = None
    promotion_id: int | None = None


class BookingQuoteRequest(BaseModel):
    """Live pricing request sent while the Details form changes."""

    room_id: int
    start_date: date
    end_date: date
    promotion_id: int | None = None


class PaymentCreate(BaseModel):
    """Payment step: method and, for non-cash rails, a transaction reference."""

    method: str = Field(..., max_length=50)
    transaction_ref: str | None = Field(None, max_length=255)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response."""

    id: int
    room_id: int
    user_id: uuid.UUID
    promotion_id: int | None = None
    start_date: date
    end_date: date
    status: str
    base_price: float
    discount_amount: float
    total_price: float
    guest_name: str
    guest_email: str
    guest_phone: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def step(self) -> int:
        """Booking-flow step this booking is at (1 details, 2 payment, 3 confirmation)."""
        return int(step_for_status(self.status))


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: list[BookingResponse]
    total: int


class BookingQuoteResponse(BaseModel):
    """Price breakdown and availability of a prospective stay.

    ``promotion_cleared`` is set when the requested promotion no longer
    applies; ``notice`` then holds the message to show the user.
    """

    room_id: int
    nights: int
    nightly_rate: float
    base_total: float
    discount: float
    final_total: float
    promotion_id: int | None = None
    promotion_cleared: bool = False
    notice: str | None = None
    available: bool
    display_total: str


class BookingPaymentResponse(BaseModel):
    """Booking after the Payment step, with the recorded payment."""

    booking: BookingResponse
    payment: PaymentResponse


class ReceiptPayment(BaseModel):
    method: str
    amount: str
    status: str
    transaction_ref: str | None = None
    paid_at: datetime


class ReceiptResponse(BaseModel):
    """Printable summary of a paid booking."""

    booking_id: int
    status: str
    issued_at: datetime
    guest_name: str
    guest_email: str
    guest_phone: str | None = None
    room_name: str
    room_type: str
    start_date: date
    end_date: date
    nights: int
    nightly_rate: str
    base_price: str
    discount: str
    total: str
    promotion_title: str | None = None
    payments: list[ReceiptPayment]

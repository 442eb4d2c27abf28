"""Pydantic v2 request/response schemas for payment endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field

from staydesk.payments.methods import get_payment_method, needs_verification


class PaymentVerifyRequest(BaseModel):
    """Staff decision on a payment awaiting verification."""

    approved: bool


class PaymentResponse(BaseModel):
    """Payment as returned by the API."""

    id: int
    booking_id: int
    recorded_by: uuid.UUID
    amount: float
    method: str
    transaction_ref: str | None = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def method_display(self) -> str:
        return get_payment_method(self.method).display_name

    @computed_field  # type: ignore[prop-decorator]
    @property
    def needs_verification(self) -> bool:
        return needs_verification(self.status)


class PaymentListResponse(BaseModel):
    """Paginated list of payments."""

    items: list[PaymentResponse]
    total: int

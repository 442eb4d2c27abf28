"""Booking flow: Details -> Payment -> Confirmation.

This module holds the state machine and the rules that gate each step. It
does no I/O; :mod:`staydesk.services.booking_service` runs the persisted
version of the same steps.
"""

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from staydesk.booking.pricing import PriceQuote, eligible_promotions, quote_stay
from staydesk.booking.window import as_date
from staydesk.errors import InvalidTransition, ValidationFailed
from staydesk.payments.methods import get_payment_method, is_cash

logger = logging.getLogger(__name__)


class BookingStep(enum.IntEnum):
    DETAILS = 1
    PAYMENT = 2
    CONFIRMATION = 3


_STEP_BY_STATUS: dict[str, BookingStep] = {
    "pending_payment": BookingStep.PAYMENT,
    "pending_verification": BookingStep.CONFIRMATION,
    "confirmed": BookingStep.CONFIRMATION,
    "booked": BookingStep.CONFIRMATION,
    "cancelled": BookingStep.CONFIRMATION,
}


def step_for_status(status: str) -> BookingStep:
    """Step a persisted booking is at. Unknown statuses restart at Details."""
    return _STEP_BY_STATUS.get(status, BookingStep.DETAILS)


@dataclass
class BookingFlow:
    """State of a single booking attempt.

    Steps only move forward by one. A failed attempt keeps the current step
    and records the message for display; the user resubmits.
    """

    step: BookingStep = BookingStep.DETAILS
    booking_id: int | None = None
    error: str | None = None

    def _advance(self, expected: BookingStep) -> None:
        if self.step != expected:
            raise InvalidTransition(f"Cannot leave step {self.step.name.lower()} as {expected.name.lower()}")
        self.step = BookingStep(self.step + 1)
        self.error = None

    def complete_details(self, booking_id: int) -> None:
        self._advance(BookingStep.DETAILS)
        self.booking_id = booking_id

    def complete_payment(self) -> None:
        if self.booking_id is None:
            raise InvalidTransition("No booking to pay for")
        self._advance(BookingStep.PAYMENT)

    def fail(self, message: str) -> None:
        self.error = message

    def reset(self) -> None:
        self.step = BookingStep.DETAILS
        self.booking_id = None
        self.error = None

    @property
    def is_complete(self) -> bool:
        return self.step == BookingStep.CONFIRMATION


@dataclass
class BookingDraft:
    """Details-step form state with live pricing.

    Call :meth:`refresh` after any input changes. It recomputes the quote and
    drops a selected promotion that is no longer eligible, so the displayed
    discount never comes from a promotion the stay does not qualify for.
    """

    nightly_rate: float
    start_date: date | str | None = None
    end_date: date | str | None = None
    promotions: list[Any] = field(default_factory=list)
    selected_promotion_id: int | None = None
    quote: PriceQuote | None = None

    def selected_promotion(self) -> Any | None:
        if self.selected_promotion_id is None:
            return None
        for promotion in self.promotions:
            if _promotion_id(promotion) == self.selected_promotion_id:
                return promotion
        return None

    def eligible(self, today: date) -> list[Any]:
        base = quote_stay(self.start_date, self.end_date, self.nightly_rate)
        return eligible_promotions(self.promotions, base.base_total, today)

    def refresh(self, today: date) -> str | None:
        """Recompute the quote; return a notice if the promotion was cleared."""
        notice = None
        promotion = self.selected_promotion()
        if self.selected_promotion_id is not None:
            eligible_ids = {_promotion_id(p) for p in self.eligible(today)}
            if promotion is None or self.selected_promotion_id not in eligible_ids:
                title = _promotion_title(promotion) if promotion is not None else "The selected promotion"
                notice = f"{title} no longer applies to this stay and was removed."
                logger.info("Cleared promotion %s from draft", self.selected_promotion_id)
                self.selected_promotion_id = None
                promotion = None

        self.quote = quote_stay(self.start_date, self.end_date, self.nightly_rate, promotion)
        return notice


def _promotion_id(promotion: Any) -> Any:
    return promotion.get("id") if isinstance(promotion, Mapping) else getattr(promotion, "id", None)


def _promotion_title(promotion: Any) -> str:
    title = promotion.get("title") if isinstance(promotion, Mapping) else getattr(promotion, "title", None)
    return title or "The selected promotion"


def validate_details(
    guest_name: str | None,
    guest_email: str | None,
    start_date: date | str | None,
    end_date: date | str | None,
) -> tuple[date, date]:
    """Check the Details step fields and return the parsed stay dates.

    Raises:
        ValidationFailed: If a required field is missing or the range is empty.
    """
    missing = [
        label
        for label, value in (
            ("guest name", guest_name),
            ("guest email", guest_email),
            ("start date", start_date),
            ("end date", end_date),
        )
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationFailed(f"Please fill in all required fields: {', '.join(missing)}")

    try:
        start, end = as_date(start_date), as_date(end_date)
    except (TypeError, ValueError):
        raise ValidationFailed("Dates must be in YYYY-MM-DD format") from None

    if end <= start:
        raise ValidationFailed("Check-out date must be after check-in date")
    return start, end


def validate_payment(method: str | None, transaction_ref: str | None) -> str | None:
    """Check the Payment step fields and return the cleaned reference.

    Raises:
        ValidationFailed: If no method is given, or a method that needs a
            transaction reference has none.
    """
    if not method or not method.strip():
        raise ValidationFailed("Please select a payment method")

    reference = transaction_ref.strip() if transaction_ref else None
    if get_payment_method(method).requires_reference and not reference:
        raise ValidationFailed("A transaction reference is required for this payment method")
    return reference


@dataclass(frozen=True)
class PaymentOutcome:
    payment_status: str
    booking_status: str


def resolve_payment_outcome(method: str, recorded_by_staff: bool) -> PaymentOutcome:
    """Status a new payment and its booking move to.

    Cash collected by staff at the front desk is trusted immediately; every
    other case waits for manual verification.
    """
    if is_cash(method) and recorded_by_staff:
        return PaymentOutcome(payment_status="completed", booking_status="confirmed")
    return PaymentOutcome(payment_status="pending_verification", booking_status="pending_verification")


def resolve_verification(approved: bool) -> PaymentOutcome:
    """Status a pending payment and its booking move to after staff review."""
    if approved:
        return PaymentOutcome(payment_status="verified", booking_status="confirmed")
    return PaymentOutcome(payment_status="rejected", booking_status="cancelled")

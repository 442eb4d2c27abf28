"""Booking window evaluation: checkout cutoff and date-range conflicts.

A booking blocks its room from ``start_date`` until the checkout cutoff
(09:30 hotel time by default) on ``end_date``. After the cutoff the room is
treated as vacated even if the booking status has not been updated yet,
which leaves housekeeping the rest of the morning for turnover.

Stay ranges are half-open: ``[start_date, end_date)``. A stay that starts on
the day another one ends does not conflict with it.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from staydesk.config import settings

ACTIVE_STATUSES: frozenset[str] = frozenset({"booked", "confirmed", "pending_verification"})


@dataclass(frozen=True)
class CheckoutWindow:
    """Cutoff time on the checkout date, in the hotel's timezone."""

    cutoff: time
    timezone: str

    @classmethod
    def from_settings(cls) -> "CheckoutWindow":
        return cls(cutoff=settings.checkout_cutoff, timezone=settings.hotel_timezone)

    def now(self) -> datetime:
        """Current wall-clock time at the hotel (naive)."""
        return datetime.now(ZoneInfo(self.timezone)).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()

    def localize(self, moment: datetime) -> datetime:
        """Convert ``moment`` to naive hotel time. Naive values are assumed local already."""
        if moment.tzinfo is None:
            return moment
        return moment.astimezone(ZoneInfo(self.timezone)).replace(tzinfo=None)

    def expires_at(self, end_date: date | str) -> datetime:
        return datetime.combine(as_date(end_date), self.cutoff)


def as_date(value: date | str) -> date:
    """Coerce a ``date`` or ``YYYY-MM-DD`` string to ``date``.

    Raises:
        ValueError: If a string is not an ISO calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _field(booking: Mapping[str, Any] | Any, name: str) -> Any:
    if isinstance(booking, Mapping):
        return booking.get(name)
    return getattr(booking, name, None)


def is_booking_active(
    start_date: date | str,
    end_date: date | str,
    status: str | None,
    now: datetime | None = None,
    window: CheckoutWindow | None = None,
) -> bool:
    """Return True while the booking still blocks its room.

    ``start_date`` does not affect the result: a future booking is active.
    Only the status and the checkout cutoff on ``end_date`` matter.
    An unparseable ``end_date`` makes the booking inactive.
    """
    if not status or status not in ACTIVE_STATUSES:
        return False

    window = window or CheckoutWindow.from_settings()
    current = window.localize(now) if now is not None else window.now()
    try:
        return current < window.expires_at(end_date)
    except (TypeError, ValueError):
        return False


def filter_active_bookings(
    bookings: Iterable[Any],
    now: datetime | None = None,
    window: CheckoutWindow | None = None,
) -> list[Any]:
    """Return the bookings that currently block their room."""
    window = window or CheckoutWindow.from_settings()
    current = window.localize(now) if now is not None else window.now()
    return [
        booking
        for booking in bookings
        if is_booking_active(
            _field(booking, "start_date"),
            _field(booking, "end_date"),
            _field(booking, "status"),
            now=current,
            window=window,
        )
    ]


def overlaps(
    candidate_start: date | str,
    candidate_end: date | str,
    existing_start: date | str,
    existing_end: date | str,
) -> bool:
    """Half-open interval overlap test. Unparseable dates never overlap."""
    try:
        return as_date(candidate_start) < as_date(existing_end) and as_date(candidate_end) > as_date(existing_start)
    except (TypeError, ValueError):
        return False


def find_conflicts(
    candidate_start: date | str,
    candidate_end: date | str,
    existing_bookings: Iterable[Any],
    now: datetime | None = None,
    window: CheckoutWindow | None = None,
) -> list[Any]:
    """Return the active bookings that overlap the candidate range."""
    return [
        booking
        for booking in filter_active_bookings(existing_bookings, now=now, window=window)
        if overlaps(candidate_start, candidate_end, _field(booking, "start_date"), _field(booking, "end_date"))
    ]


def has_booking_conflict(
    candidate_start: date | str,
    candidate_end: date | str,
    existing_bookings: Iterable[Any],
    now: datetime | None = None,
    window: CheckoutWindow | None = None,
) -> bool:
    """Return True if the candidate range overlaps any active booking.

    ``existing_bookings`` must all belong to the same room; each item is a
    mapping or object exposing ``start_date``, ``end_date`` and ``status``.
    This is a pure check. Callers re-fetch bookings right before calling and
    again before committing a write.
    """
    return bool(find_conflicts(candidate_start, candidate_end, existing_bookings, now=now, window=window))

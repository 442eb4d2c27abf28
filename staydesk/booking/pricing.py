"""Stay pricing: nights, base total, promotion discounts and final total.

Money is handled as ``float`` at full precision and only rounded for display
(:func:`format_currency`) or by the storage column. Rounding per night would
compound across long stays.

Fixed-amount promotions are applied **per night**, not once per booking. A
$20 fixed promotion on a 3-night stay takes $60 off.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from staydesk.config import settings

SECONDS_PER_DAY = 24 * 60 * 60


def _value(record: Mapping[str, Any] | Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


def _as_datetime(value: date | datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return datetime.fromisoformat(value)


def compute_nights(start_date: date | datetime | str | None, end_date: date | datetime | str | None) -> int:
    """Number of nights between two dates, rounded up.

    Returns 0 for missing, unparseable or non-positive ranges.
    """
    try:
        seconds = (_as_datetime(end_date) - _as_datetime(start_date)).total_seconds()
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(seconds) or seconds <= 0:
        return 0
    return math.ceil(seconds / SECONDS_PER_DAY)


def compute_base_total(nights: int, nightly_rate: float | None) -> float:
    """``nights * nightly_rate``, or 0 when there are no nights."""
    if nights <= 0 or nightly_rate is None:
        return 0.0
    return nights * float(nightly_rate)


def compute_discount(promotion: Mapping[str, Any] | Any | None, base_total: float, nights: int) -> float:
    """Discount a promotion gives on a stay, clamped to ``[0, base_total]``.

    The minimum-spend rule is applied here as well as in eligibility checks,
    so a stale selection can never discount a stay that no longer qualifies.
    """
    if promotion is None or not base_total > 0 or nights <= 0:
        return 0.0

    minimum_amount = float(_value(promotion, "minimum_amount", 0))
    if minimum_amount > 0 and base_total < minimum_amount:
        return 0.0

    if _value(promotion, "discount_type") == "fixed":
        discount = float(_value(promotion, "discount_amount", 0)) * nights
    else:
        discount = base_total * float(_value(promotion, "discount_percent", 0)) / 100

    if not math.isfinite(discount) or discount < 0:
        return 0.0
    return min(discount, base_total)


def compute_final_total(base_total: float, discount: float) -> float:
    """``max(base_total - discount, 0)``."""
    total = base_total - discount
    if not math.isfinite(total):
        return 0.0
    return max(total, 0.0)


def is_promotion_eligible(
    promotion: Mapping[str, Any] | Any,
    base_total: float,
    today: date,
) -> bool:
    """Active, in its date window, under its usage cap, minimum spend met.

    A ``maximum_uses`` of ``None`` or 0 means the promotion is uncapped.
    """
    if not _value(promotion, "is_active", False):
        return False

    start_date = _value(promotion, "start_date")
    end_date = _value(promotion, "end_date")
    if start_date is not None and _as_datetime(start_date).date() > today:
        return False
    if end_date is not None and _as_datetime(end_date).date() < today:
        return False

    maximum_uses = _value(promotion, "maximum_uses", 0)
    if maximum_uses and _value(promotion, "current_uses", 0) >= maximum_uses:
        return False

    minimum_amount = float(_value(promotion, "minimum_amount", 0))
    if minimum_amount > 0 and base_total < minimum_amount:
        return False

    return True


def eligible_promotions(promotions: Iterable[Any], base_total: float, today: date) -> list[Any]:
    """Filter ``promotions`` down to the ones eligible for a stay of ``base_total``."""
    return [promotion for promotion in promotions if is_promotion_eligible(promotion, base_total, today)]


@dataclass(frozen=True)
class PriceQuote:
    """Computed price of a stay, before rounding."""

    nights: int
    nightly_rate: float
    base_total: float
    discount: float
    final_total: float
    promotion_id: int | None = None


def quote_stay(
    start_date: date | str | None,
    end_date: date | str | None,
    nightly_rate: float | None,
    promotion: Mapping[str, Any] | Any | None = None,
) -> PriceQuote:
    """Price a stay, applying ``promotion`` if given."""
    nights = compute_nights(start_date, end_date)
    base_total = compute_base_total(nights, nightly_rate)
    discount = compute_discount(promotion, base_total, nights)
    return PriceQuote(
        nights=nights,
        nightly_rate=float(nightly_rate or 0),
        base_total=base_total,
        discount=discount,
        final_total=compute_final_total(base_total, discount),
        promotion_id=_value(promotion, "id") if promotion is not None else None,
    )


def format_currency(amount: float, symbol: str | None = None) -> str:
    """Display form of a money value, two decimal places."""
    return f"{settings.currency_symbol if symbol is None else symbol}{float(amount):.2f}"

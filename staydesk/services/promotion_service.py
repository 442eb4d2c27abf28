"""Promotion service: lookups and usage tracking."""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.booking.pricing import compute_discount, compute_final_total, eligible_promotions, quote_stay
from staydesk.models.promotion import Promotion
from staydesk.models.room import Room

logger = logging.getLogger(__name__)


async def list_current_promotions(db: AsyncSession, today: date) -> list[Promotion]:
    """Active promotions whose date window contains ``today``."""
    result = await db.execute(
        select(Promotion)
        .where(
            Promotion.is_active.is_(True),
            Promotion.start_date <= today,
            Promotion.end_date >= today,
        )
        .order_by(Promotion.title)
    )
    return list(result.scalars().all())


async def eligible_for_stay(
    db: AsyncSession,
    room: Room,
    start_date: date,
    end_date: date,
    today: date,
) -> tuple[int, float, list[tuple[Promotion, float, float]]]:
    """Promotions a stay qualifies for, each with its discount and final total.

    Returns ``(nights, base_total, [(promotion, discount, final_total), ...])``.
    """
    quote = quote_stay(start_date, end_date, room.price)
    promotions = eligible_promotions(await list_current_promotions(db, today), quote.base_total, today)
    if not promotions:
        logger.info("No eligible promotions for room %s (%s to %s)", room.id, start_date, end_date)

    items = []
    for promotion in promotions:
        discount = compute_discount(promotion, quote.base_total, quote.nights)
        items.append((promotion, discount, compute_final_total(quote.base_total, discount)))
    return quote.nights, quote.base_total, items


def record_use(promotion: Promotion) -> None:
    """Count one more booking against the promotion's usage cap."""
    promotion.current_uses = (promotion.current_uses or 0) + 1
    logger.info(
        "Promotion %s used (%s/%s)",
        promotion.id,
        promotion.current_uses,
        promotion.maximum_uses or "unlimited",
    )

"""Promotions API router: staff maintenance and eligibility for a stay."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.api.deps import get_current_active_user, get_db, require_staff
from staydesk.models.promotion import Promotion
from staydesk.models.user import User
from staydesk.schemas.promotion import (
    EligiblePromotionsResponse,
    PromotionCreate,
    PromotionListResponse,
    PromotionResponse,
    PromotionUpdate,
)
from staydesk.services.booking_service import get_room_or_404
from staydesk.services.promotion_service import eligible_for_stay
from staydesk.services.settings_service import get_checkout_window

router = APIRouter(prefix="/api/v1/promotions", tags=["promotions"])


@router.post(
    "",
    response_model=PromotionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a promotion",
)
async def create_promotion(
    body: PromotionCreate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Promotion:
    promotion = Promotion(**body.model_dump())
    db.add(promotion)
    await db.flush()
    await db.refresh(promotion)
    return promotion


@router.get(
    "",
    response_model=PromotionListResponse,
    summary="List promotions",
)
async def list_promotions(
    active: bool | None = Query(None, description="Filter on the is_active flag"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> dict:
    filters = [] if active is None else [Promotion.is_active.is_(active)]

    total_result = await db.execute(select(func.count()).select_from(Promotion).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Promotion).where(*filters).order_by(Promotion.start_date.desc(), Promotion.id).offset(skip).limit(limit)
    )
    return {"items": list(result.scalars().all()), "total": total}


# Declared before "/{promotion_id}" so the literal path wins.
@router.get(
    "/eligible",
    response_model=EligiblePromotionsResponse,
    summary="Promotions a stay qualifies for",
)
async def list_eligible_promotions(
    room_id: int = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict:
    """Return eligible promotions with the discount each would give."""
    room = await get_room_or_404(db, room_id)
    window = await get_checkout_window(db)
    nights, base_total, items = await eligible_for_stay(db, room, start_date, end_date, window.today())
    return {
        "nights": nights,
        "base_total": base_total,
        "items": [
            {"promotion": promotion, "discount": discount, "final_total": final_total}
            for promotion, discount, final_total in items
        ],
    }


@router.put(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Update a promotion",
)
async def update_promotion(
    promotion_id: int,
    body: PromotionUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Promotion:
    """Partially update a promotion, re-validating the merged record."""
    promotion = await db.get(Promotion, promotion_id)
    if promotion is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Promotion not found")

    merged = {
        field: getattr(promotion, field)
        for field in PromotionCreate.model_fields
    }
    merged.update(body.model_dump(exclude_unset=True))
    try:
        validated = PromotionCreate.model_validate(merged)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None

    for field, value in validated.model_dump().items():
        setattr(promotion, field, value)
    await db.flush()
    await db.refresh(promotion)
    return promotion

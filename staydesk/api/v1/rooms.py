"""Rooms API router: catalogue, staff maintenance and availability."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.api.deps import get_current_active_user, get_db, require_staff
from staydesk.models.room import Room
from staydesk.models.user import User
from staydesk.schemas.room import (
    RoomAvailabilityResponse,
    RoomCreate,
    RoomListResponse,
    RoomResponse,
    RoomUpdate,
)
from staydesk.services.booking_service import find_room_conflicts, get_room_or_404
from staydesk.services.settings_service import get_checkout_window

router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])


@router.post(
    "",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a room",
)
async def create_room(
    body: RoomCreate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Room:
    room = Room(**body.model_dump())
    db.add(room)
    await db.flush()
    await db.refresh(room)
    return room


@router.get(
    "",
    response_model=RoomListResponse,
    summary="List rooms",
)
async def list_rooms(
    status_filter: str | None = Query(None, alias="status"),
    room_type: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict:
    """Return a paginated list of rooms, cheapest first."""
    filters = []
    if status_filter is not None:
        filters.append(Room.status == status_filter)
    if room_type is not None:
        filters.append(Room.room_type == room_type)

    total_result = await db.execute(select(func.count()).select_from(Room).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(select(Room).where(*filters).order_by(Room.price, Room.id).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get(
    "/{room_id}",
    response_model=RoomResponse,
    summary="Get a room",
)
async def get_room(
    room_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> Room:
    return await get_room_or_404(db, room_id)


@router.put(
    "/{room_id}",
    response_model=RoomResponse,
    summary="Update a room",
)
async def update_room(
    room_id: int,
    body: RoomUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> Room:
    """Partially update a room. Existing bookings keep the price they were quoted."""
    room = await get_room_or_404(db, room_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(room, field, value)
    await db.flush()
    await db.refresh(room)
    return room


@router.get(
    "/{room_id}/availability",
    response_model=RoomAvailabilityResponse,
    summary="Check whether a room is free for a date range",
)
async def room_availability(
    room_id: int,
    start_date: date = Query(..., description="Check-in date (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Check-out date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict:
    """Report whether the stay is free. Staff also see the blocking bookings."""
    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be after start_date",
        )
    room = await get_room_or_404(db, room_id)
    conflicts = await find_room_conflicts(db, room.id, start_date, end_date, await get_checkout_window(db))
    return {
        "room_id": room.id,
        "start_date": start_date,
        "end_date": end_date,
        "available": not conflicts,
        "conflicts": conflicts if current_user.is_staff else [],
    }

"""Pydantic v2 request/response schemas for room endpoints."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from staydesk.schemas.booking import BookingResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RoomCreate(BaseModel):
    """Schema for creating a new room."""

    name: str = Field(..., min_length=1, max_length=255)
    room_type: str = Field(..., min_length=1, max_length=50)
    price: float = Field(..., ge=0)
    capacity: int = Field(2, ge=1)
    description: str | None = None
    status: str = Field("available", pattern="^(available|maintenance|inactive)$")


class RoomUpdate(BaseModel):
    """Schema for partially updating a room. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    room_type: str | None = Field(None, min_length=1, max_length=50)
    price: float | None = Field(None, ge=0)
    capacity: int | None = Field(None, ge=1)
    description: str | None = None
    status: str | None = Field(None, pattern="^(available|maintenance|inactive)$")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RoomResponse(BaseModel):
    """Public room information."""

    id: int
    name: str
    room_type: str
    price: float
    capacity: int
    description: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoomListResponse(BaseModel):
    """Paginated list of rooms."""

    items: list[RoomResponse]
    total: int


class RoomAvailabilityResponse(BaseModel):
    """Whether a room is free for a date range, and what blocks it if not."""

    room_id: int
    start_date: date
    end_date: date
    available: bool
    conflicts: list[BookingResponse]

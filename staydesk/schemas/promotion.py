"""Pydantic v2 request/response schemas for promotion endpoints."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PromotionCreate(BaseModel):
    """Schema for creating a promotion.

    ``discount_percent`` is authoritative for percentage promotions and
    ``discount_amount`` (charged per night) for fixed ones.
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    partner_name: str | None = Field(None, max_length=255)
    discount_type: str = Field("percentage", pattern="^(percentage|fixed)$")
    discount_percent: float = Field(0, ge=0)
    discount_amount: float = Field(0, ge=0)
    minimum_amount: float = Field(0, ge=0)
    maximum_uses: int | None = Field(None, ge=1)
    start_date: date
    end_date: date
    is_active: bool = True

    @model_validator(mode="after")
    def check_discount_mode(self) -> "PromotionCreate":
        """Require the amount matching ``discount_type`` and a valid date window."""
        if self.discount_type == "percentage" and self.discount_percent <= 0:
            raise ValueError("discount_percent must be positive for percentage promotions")
        if self.discount_type == "fixed" and self.discount_amount <= 0:
            raise ValueError("discount_amount must be positive for fixed promotions")
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PromotionUpdate(BaseModel):
    """Schema for partially updating a promotion. All fields optional.

    The discount-mode rule is re-checked in the router against the merged
    record, since a partial update may change only one side of it.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    partner_name: str | None = Field(None, max_length=255)
    discount_type: str | None = Field(None, pattern="^(percentage|fixed)$")
    discount_percent: float | None = Field(None, ge=0)
    discount_amount: float | None = Field(None, ge=0)
    minimum_amount: float | None = Field(None, ge=0)
    maximum_uses: int | None = Field(None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PromotionResponse(BaseModel):
    """Promotion as returned by the API."""

    id: int
    title: str
    description: str | None = None
    partner_name: str | None = None
    discount_type: str
    discount_percent: float
    discount_amount: float
    minimum_amount: float
    maximum_uses: int | None = None
    current_uses: int
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PromotionListResponse(BaseModel):
    """Paginated list of promotions."""

    items: list[PromotionResponse]
    total: int


class EligiblePromotion(BaseModel):
    """A promotion usable for a given stay, with the discount it would give."""

    promotion: PromotionResponse
    discount: float
    final_total: float


class EligiblePromotionsResponse(BaseModel):
    """Eligible promotions for a room and date range."""

    nights: int
    base_total: float
    items: list[EligiblePromotion]

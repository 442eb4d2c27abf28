"""Promotion model: percentage or per-night fixed discounts."""

from datetime import date

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from staydesk.database import Base, IntegerPrimaryKeyMixin, TimestampMixin


class Promotion(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    """A discount offered for stays booked between ``start_date`` and ``end_date``.

    ``discount_type`` selects which amount is authoritative: ``discount_percent``
    for ``percentage``, ``discount_amount`` (per night) for ``fixed``.
    """

    __tablename__ = "promotions"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    partner_name: Mapped[str | None] = mapped_column(String(255), default=None)
    discount_type: Mapped[str] = mapped_column(String(20), default="percentage")  # percentage, fixed
    discount_percent: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=0)
    discount_amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    minimum_amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    maximum_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None = unlimited
    current_uses: Mapped[int] = mapped_column(Integer, default=0)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Promotion(id={self.id}, title={self.title!r}, type={self.discount_type!r})>"

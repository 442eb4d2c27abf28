"""Booking model: room reservations and their price breakdown."""

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from staydesk.database import Base, IntegerPrimaryKeyMixin, TimestampMixin

BOOKING_STATUSES = ("pending_payment", "pending_verification", "confirmed", "cancelled", "booked")


class Booking(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    """A reservation of one room for ``[start_date, end_date)``.

    ``total_price`` is always ``max(base_price - discount_amount, 0)``.
    """

    __tablename__ = "bookings"

    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    promotion_id: Mapped[int | None] = mapped_column(
        ForeignKey("promotions.id", ondelete="SET NULL"),
        nullable=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="pending_payment", index=True)
    base_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    discount_amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    total_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)

    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("ix_bookings_room_dates", "room_id", "start_date", "end_date"),)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, room_id={self.room_id}, status={self.status})>"

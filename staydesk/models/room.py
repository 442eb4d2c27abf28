"""Room model: the bookable units of the hotel."""

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from staydesk.database import Base, IntegerPrimaryKeyMixin, TimestampMixin


class Room(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    """A hotel room with a nightly rate."""

    __tablename__ = "rooms"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    room_type: Mapped[str] = mapped_column(String(50), nullable=False)  # standard, deluxe, suite, ...
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, default=2)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    status: Mapped[str] = mapped_column(String(50), default="available")  # available, maintenance, inactive

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, name={self.name!r}, type={self.room_type!r})>"

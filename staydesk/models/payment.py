"""Payment model: money recorded against a booking."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from staydesk.database import Base, IntegerPrimaryKeyMixin


class Payment(IntegerPrimaryKeyMixin, Base):
    """A payment for a booking, possibly awaiting staff verification."""

    __tablename__ = "payments"

    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recorded_by: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    method: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(50),
        default="pending_verification",
        index=True,
    )  # pending_verification, completed, verified, rejected
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking_id={self.booking_id}, method={self.method!r}, status={self.status})>"

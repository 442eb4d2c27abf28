"""AppSetting model: typed hotel-wide settings stored as JSON."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from staydesk.database import Base, IntegerPrimaryKeyMixin, TimestampMixin


class AppSetting(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    """A settings document, decoded through ``staydesk.schemas.app_setting``."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<AppSetting(key={self.key!r})>"

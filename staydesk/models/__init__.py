"""SQLAlchemy models for StayDesk.

All models are imported here so that ``Base.metadata`` knows every table
for Alembic and for the test-suite's ``create_all``. If you add a new model,
import it in this file and add a migration.
"""

from staydesk.models.app_setting import AppSetting
from staydesk.models.booking import Booking
from staydesk.models.payment import Payment
from staydesk.models.promotion import Promotion
from staydesk.models.room import Room
from staydesk.models.user import User

__all__ = [
    "AppSetting",
    "Booking",
    "Payment",
    "Promotion",
    "Room",
    "User",
]

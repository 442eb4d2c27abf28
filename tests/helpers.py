"""Helpers shared by the API tests."""

from datetime import date, timedelta

from staydesk.auth.security import create_token_pair
from staydesk.booking.window import CheckoutWindow
from staydesk.models.user import User


def hotel_today() -> date:
    """Today's date at the hotel, which may differ from the machine's date."""
    return CheckoutWindow.from_settings().today()


def future_stay(offset_start: int = 30, nights: int = 3) -> tuple[str, str]:
    """Return a (start_date, end_date) pair safely in the future as ISO strings."""
    start = hotel_today() + timedelta(days=offset_start)
    return start.isoformat(), (start + timedelta(days=nights)).isoformat()


def headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id))
    return {"Authorization": f"Bearer {tokens['access_token']}"}

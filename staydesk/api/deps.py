"""Shared API dependencies, a single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from staydesk.api.deps import get_db, get_current_active_user
"""

from staydesk.auth.dependencies import (
    get_current_active_user,
    get_current_user,
    require_admin,
    require_staff,
)
from staydesk.database import get_db

__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "require_staff",
    "require_admin",
]

"""Settings service: typed hotel settings with config-file defaults."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.booking.window import CheckoutWindow
from staydesk.config import settings
from staydesk.models.app_setting import AppSetting
from staydesk.schemas.app_setting import CheckInPolicy, PaymentPolicy, decode_setting

logger = logging.getLogger(__name__)


def default_setting(key: str) -> CheckInPolicy | PaymentPolicy:
    """Value used when no document is stored under ``key``."""
    if key == "check_in":
        return CheckInPolicy(checkout_cutoff=settings.checkout_cutoff, timezone=settings.hotel_timezone)
    if key == "payment":
        return PaymentPolicy()
    raise KeyError(key)


async def get_setting_row(db: AsyncSession, key: str) -> AppSetting | None:
    result = await db.execute(select(AppSetting).where(AppSetting.key == key))
    return result.scalar_one_or_none()


async def get_setting(db: AsyncSession, key: str) -> tuple[CheckInPolicy | PaymentPolicy, bool]:
    """Return ``(value, is_default)`` for a settings key.

    Raises:
        SettingDecodeError: If the stored document does not decode.
    """
    row = await get_setting_row(db, key)
    if row is None:
        logger.info("No stored %r settings, using defaults", key)
        return default_setting(key), True
    return decode_setting(key, row.value), False


async def put_setting(db: AsyncSession, key: str, value: CheckInPolicy | PaymentPolicy) -> AppSetting:
    """Create or replace the document stored under ``key``."""
    document = value.model_dump(mode="json")
    row = await get_setting_row(db, key)
    if row is None:
        row = AppSetting(key=key, value=document)
        db.add(row)
    else:
        row.value = document
    await db.flush()
    logger.info("Stored %r settings: %s", key, document)
    return row


async def get_checkout_window(db: AsyncSession) -> CheckoutWindow:
    """Checkout cutoff and timezone used for conflict checks."""
    policy, _ = await get_setting(db, "check_in")
    return CheckoutWindow(cutoff=policy.checkout_cutoff, timezone=policy.timezone)


async def get_payment_policy(db: AsyncSession) -> PaymentPolicy:
    policy, _ = await get_setting(db, "payment")
    return policy

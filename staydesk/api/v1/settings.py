"""Settings API router: typed hotel-wide policies."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from staydesk.api.deps import get_db, require_admin, require_staff
from staydesk.models.user import User
from staydesk.schemas.app_setting import SETTING_KEYS, SettingDecodeError, SettingResponse, SettingUpdate
from staydesk.services.settings_service import get_setting, put_setting

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])

_KEY_PATTERN = "^(" + "|".join(SETTING_KEYS) + ")$"


@router.get(
    "/{key}",
    response_model=SettingResponse,
    summary="Read a settings document",
)
async def read_setting(
    key: str = Path(..., pattern=_KEY_PATTERN),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_staff),
) -> dict:
    """Return the stored document, or the configured default if none is stored."""
    try:
        value, is_default = await get_setting(db, key)
    except SettingDecodeError as exc:
        logger.error("Stored %r settings do not decode: %s", key, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return {"key": key, "value": value, "is_default": is_default}


@router.put(
    "/{key}",
    response_model=SettingResponse,
    summary="Replace a settings document",
)
async def write_setting(
    body: SettingUpdate,
    key: str = Path(..., pattern=_KEY_PATTERN),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> dict:
    """Store a document. Its ``kind`` must match the key."""
    value = body.value
    if value.kind != key:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Settings document of kind {value.kind!r} cannot be stored under {key!r}",
        )
    await put_setting(db, key, value)
    return {"key": key, "value": value, "is_default": False}

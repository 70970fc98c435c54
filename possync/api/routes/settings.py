"""Terminal settings endpoints backed by the remote state cache."""

from fastapi import APIRouter, Depends

from possync.api.dependencies import get_cache
from possync.application.dto.requests import UpdateSettingsRequest
from possync.application.dto.responses import SettingsResponse
from possync.core.services import RemoteStateCache

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _response(cache: RemoteStateCache, scope_key: str, value: dict) -> SettingsResponse:
    entry = cache.peek(scope_key)
    return SettingsResponse(
        scope_key=scope_key,
        value=value,
        fetched_at=entry.fetched_at if entry else None,
        is_default=entry.is_default if entry else False,
    )


@router.get("/{scope_key}", response_model=SettingsResponse)
async def get_settings_document(
    scope_key: str,
    cache: RemoteStateCache = Depends(get_cache),
) -> SettingsResponse:
    """Settings for a user: cached, fetched, stale or default, in that order."""
    value = await cache.get(scope_key)
    return _response(cache, scope_key, value)


@router.patch("/{scope_key}", response_model=SettingsResponse)
async def update_settings_document(
    scope_key: str,
    request: UpdateSettingsRequest,
    cache: RemoteStateCache = Depends(get_cache),
) -> SettingsResponse:
    """Apply a change locally at once and queue it for the remote."""
    value = await cache.set(scope_key, request.changes)
    return _response(cache, scope_key, value)

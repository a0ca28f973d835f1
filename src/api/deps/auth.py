"""API-key dependency."""

from __future__ import annotations

import hmac
import logging

from fastapi import Depends, Header, HTTPException, status

from ..settings import APISettings, get_settings

LOGGER = logging.getLogger("voicespan.auth")


async def get_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    settings: APISettings = Depends(get_settings),
) -> str:
    """Return the caller's key; an empty key list leaves the API open."""
    if not settings.api_keys:
        return "anonymous"
    if x_api_key and any(hmac.compare_digest(x_api_key, key) for key in settings.api_keys):
        return x_api_key
    LOGGER.warning("Rejected request with missing or unknown API key")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

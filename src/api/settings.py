"""API settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field


class APISettings(BaseModel):
    app_name: str = Field(default="voicespan API")
    version: str = Field(default="1.0.0")
    api_keys: List[str] = Field(default_factory=lambda: _split_keys())
    max_upload_bytes: int = Field(
        default=int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))
    )
    max_samples: int = Field(default=int(os.getenv("MAX_SAMPLES", str(10 * 60 * 48000))))
    default_threshold_db: float = Field(
        default=float(os.getenv("DEFAULT_THRESHOLD_DB", "-40"))
    )
    default_min_silence_ms: float = Field(
        default=float(os.getenv("DEFAULT_MIN_SILENCE_MS", "500"))
    )
    default_padding_ms: float = Field(default=float(os.getenv("DEFAULT_PADDING_MS", "100")))
    default_chunk_ms: float = Field(default=float(os.getenv("DEFAULT_CHUNK_MS", "10")))
    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))


def _split_keys() -> List[str]:
    raw = os.getenv("API_KEYS") or os.getenv("API_KEY") or ""
    return [key.strip() for key in raw.split(",") if key.strip()]


@lru_cache()
def get_settings() -> APISettings:
    return APISettings()

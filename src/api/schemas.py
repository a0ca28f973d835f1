"""Pydantic schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, model_validator


class TimeRange(BaseModel):
    start: float
    end: float


class SettingsPayload(BaseModel):
    threshold: float
    min_silence_duration: float
    padding: float
    chunk_size: float


class AnalyzeSamplesRequest(BaseModel):
    samples: List[float]
    sample_rate: int
    threshold: float | None = None
    threshold_amplitude: float | None = Field(default=None, ge=0.0)
    min_silence_duration: float | None = None
    padding: float | None = None
    chunk_size: float | None = None

    @model_validator(mode="after")
    def _one_threshold_encoding(self) -> "AnalyzeSamplesRequest":
        if self.threshold is not None and self.threshold_amplitude is not None:
            raise ValueError("pass either threshold (dB) or threshold_amplitude, not both")
        return self


class AnalyzeResponse(BaseModel):
    sample_rate: int
    duration: float
    settings: SettingsPayload
    intervals: List[TimeRange] | None = None
    channels: List[List[TimeRange]] | None = None


class HealthResponse(BaseModel):
    ok: bool
    version: str
    timestamp: datetime

"""Dataclasses shared across the segmentation pipeline."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import InvalidConfiguration


@dataclass(frozen=True, slots=True)
class AnalysisSettings:
    """Thresholds for one analysis call. Durations are in milliseconds, threshold in dBFS."""

    threshold: float
    min_silence_duration: float
    padding: float
    chunk_size: float

    def __post_init__(self) -> None:
        for name in ("threshold", "min_silence_duration", "padding", "chunk_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidConfiguration(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidConfiguration(f"{name} must be finite, got {value!r}")
        if self.chunk_size <= 0:
            raise InvalidConfiguration("chunk_size must be positive")
        if self.min_silence_duration < 0:
            raise InvalidConfiguration("min_silence_duration must not be negative")
        if self.padding < 0:
            raise InvalidConfiguration("padding must not be negative")

    def chunk_size_samples(self, sample_rate: int) -> int:
        """Samples per chunk, rounded half-up to the nearest integer."""
        samples = int(math.floor(sample_rate * self.chunk_size / 1000.0 + 0.5))
        if samples < 1:
            raise InvalidConfiguration(
                f"chunk_size {self.chunk_size} ms is shorter than one sample at {sample_rate} Hz"
            )
        return samples

    def to_dict(self) -> Dict[str, float]:
        return {
            "threshold": float(self.threshold),
            "min_silence_duration": float(self.min_silence_duration),
            "padding": float(self.padding),
            "chunk_size": float(self.chunk_size),
        }

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any]) -> "AnalysisSettings":
        missing = [name for name in ("threshold", "min_silence_duration", "padding", "chunk_size") if name not in raw]
        if missing:
            raise InvalidConfiguration(f"missing settings: {', '.join(missing)}")
        try:
            return cls(
                threshold=float(raw["threshold"]),
                min_silence_duration=float(raw["min_silence_duration"]),
                padding=float(raw["padding"]),
                chunk_size=float(raw["chunk_size"]),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(str(exc)) from exc


@dataclass(frozen=True, slots=True)
class SilentRun:
    """Half-open chunk-index range ``[start, end)`` of silent chunks."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """Voiced window in seconds, relative to the start of the buffer."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, float]:
        return {"start": self.start, "end": self.end}


@dataclass(slots=True)
class AnalysisResult:
    """Outcome of one pipeline run over a single channel."""

    voiced: List[TimeInterval]
    silent_runs: List[SilentRun]
    total_chunks: int
    chunk_size_samples: int
    sample_rate: int
    duration: float
    settings: AnalysisSettings

    def intervals(self) -> List[Dict[str, float]]:
        return [interval.to_dict() for interval in self.voiced]

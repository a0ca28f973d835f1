"""Chunked RMS silence detection over decoded sample buffers."""

from .errors import AnalysisError, EmptyInput, InvalidConfiguration
from .loudness import amplitude_to_db, db_to_amplitude
from .silence_segmenter import (
    SilenceSegmenter,
    analyze,
    analyze_channels,
    downmix,
    find_voiced_segments,
)
from .types import AnalysisResult, AnalysisSettings, SilentRun, TimeInterval

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "AnalysisSettings",
    "EmptyInput",
    "InvalidConfiguration",
    "SilenceSegmenter",
    "SilentRun",
    "TimeInterval",
    "amplitude_to_db",
    "analyze",
    "analyze_channels",
    "db_to_amplitude",
    "downmix",
    "find_voiced_segments",
]

"""Silence-trimming segmenter: RMS chunks, padded silent runs, voiced complement."""

from __future__ import annotations

import logging
import math
import numbers

import numpy as np

from .errors import EmptyInput, InvalidConfiguration
from .loudness import chunk_loudness_db, classify
from .types import AnalysisResult, AnalysisSettings, SilentRun, TimeInterval

LOGGER = logging.getLogger("voicespan.segmenter")

# Voiced intervals shorter than this are float noise from clamping, not audio.
_MIN_INTERVAL_SECONDS = 1e-9

# Quotients such as 0.3 / 0.1 come out as 2.9999999999999996; rounding first keeps ceil/floor honest.
_RATIO_DIGITS = 9


class SilenceSegmenter:
    """Detect voiced windows by removing silence runs that survive duration filtering."""

    def __init__(self, settings: AnalysisSettings) -> None:
        if not isinstance(settings, AnalysisSettings):
            raise InvalidConfiguration("settings must be an AnalysisSettings instance")
        self.settings = settings
        self.min_silence_chunks = math.ceil(_chunk_ratio(settings.min_silence_duration, settings.chunk_size))
        self.padding_chunks = math.floor(_chunk_ratio(settings.padding, settings.chunk_size))
        self.seconds_per_chunk = settings.chunk_size / 1000.0

    def process(self, samples: np.ndarray, sample_rate: int) -> AnalysisResult:
        rate = _check_sample_rate(sample_rate)
        mono = self._validate_samples(samples)
        chunk_samples = self.settings.chunk_size_samples(rate)

        loudness = chunk_loudness_db(mono, chunk_samples)
        silent = classify(loudness, self.settings.threshold)
        total_chunks = len(silent)

        runs = self._extract_runs(silent)
        kept = [run for run in runs if run.length >= self.min_silence_chunks]
        merged = self._merge_runs(self._pad_runs(kept, total_chunks))

        duration = len(mono) / rate
        voiced = self._invert(merged, total_chunks, duration)
        LOGGER.debug(
            "segmented %d samples into %d chunks: %d silent runs, %d kept, %d after merge, %d voiced",
            len(mono),
            total_chunks,
            len(runs),
            len(kept),
            len(merged),
            len(voiced),
        )
        return AnalysisResult(
            voiced=voiced,
            silent_runs=merged,
            total_chunks=total_chunks,
            chunk_size_samples=chunk_samples,
            sample_rate=rate,
            duration=duration,
            settings=self.settings,
        )

    def process_channels(self, samples: np.ndarray, sample_rate: int) -> list[AnalysisResult]:
        """Analyse each column of a ``(frames, channels)`` buffer independently."""
        data = np.asarray(samples)
        if data.ndim == 1:
            return [self.process(data, sample_rate)]
        if data.ndim != 2 or data.shape[1] == 0:
            raise InvalidConfiguration(f"expected (frames, channels) audio, got shape {data.shape}")
        return [self.process(data[:, channel], sample_rate) for channel in range(data.shape[1])]

    def _extract_runs(self, silent: np.ndarray) -> list[SilentRun]:
        runs: list[SilentRun] = []
        start: int | None = None
        for idx, is_silent in enumerate(silent.tolist()):
            if is_silent:
                if start is None:
                    start = idx
            elif start is not None:
                runs.append(SilentRun(start, idx))
                start = None
        if start is not None:
            runs.append(SilentRun(start, len(silent)))
        return runs

    def _pad_runs(self, runs: list[SilentRun], total_chunks: int) -> list[SilentRun]:
        pad = self.padding_chunks
        return [SilentRun(max(0, run.start - pad), min(total_chunks, run.end + pad)) for run in runs]

    def _merge_runs(self, runs: list[SilentRun]) -> list[SilentRun]:
        if not runs:
            return []
        merged: list[SilentRun] = []
        cur_start, cur_end = runs[0].start, runs[0].end
        for run in runs[1:]:
            if run.start <= cur_end:
                cur_end = max(cur_end, run.end)
            else:
                merged.append(SilentRun(cur_start, cur_end))
                cur_start, cur_end = run.start, run.end
        merged.append(SilentRun(cur_start, cur_end))
        return merged

    def _invert(self, runs: list[SilentRun], total_chunks: int, duration: float) -> list[TimeInterval]:
        voiced: list[TimeInterval] = []
        cursor = 0
        for run in runs:
            if cursor < run.start:
                self._append_interval(voiced, cursor, run.start, duration)
            cursor = run.end
        if cursor < total_chunks:
            self._append_interval(voiced, cursor, total_chunks, duration)
        return voiced

    def _append_interval(self, voiced: list[TimeInterval], start: int, end: int, duration: float) -> None:
        # The tail chunk may be partial, so chunk time can overshoot the buffer.
        start_s = start * self.seconds_per_chunk
        end_s = min(end * self.seconds_per_chunk, duration)
        if end_s - start_s > _MIN_INTERVAL_SECONDS:
            voiced.append(TimeInterval(start=start_s, end=end_s))

    def _validate_samples(self, samples: np.ndarray) -> np.ndarray:
        data = np.asarray(samples)
        if data.ndim != 1:
            raise InvalidConfiguration(f"expected a 1-D sample buffer, got shape {data.shape}")
        if data.size == 0:
            raise EmptyInput("sample buffer is empty")
        if np.issubdtype(data.dtype, np.signedinteger):
            return data.astype(np.float64) / float(np.iinfo(data.dtype).max + 1)
        if not np.issubdtype(data.dtype, np.floating):
            raise InvalidConfiguration(f"unsupported sample dtype {data.dtype}")
        if not np.isfinite(data).all():
            raise InvalidConfiguration("sample buffer contains NaN or infinite values")
        return data


def downmix(samples: np.ndarray) -> np.ndarray:
    """Average a ``(frames, channels)`` buffer down to one channel."""
    data = np.asarray(samples)
    if data.ndim == 1:
        return data
    if data.ndim != 2 or data.shape[1] == 0:
        raise InvalidConfiguration(f"expected (frames, channels) audio, got shape {data.shape}")
    return data.mean(axis=1)


def analyze(samples: np.ndarray, sample_rate: int, settings: AnalysisSettings) -> AnalysisResult:
    return SilenceSegmenter(settings).process(samples, sample_rate)


def analyze_channels(
    samples: np.ndarray, sample_rate: int, settings: AnalysisSettings
) -> list[AnalysisResult]:
    return SilenceSegmenter(settings).process_channels(samples, sample_rate)


def find_voiced_segments(
    samples: np.ndarray, sample_rate: int, settings: AnalysisSettings
) -> list[TimeInterval]:
    """Voiced ``[start, end)`` windows in seconds, ascending and non-overlapping."""
    return analyze(samples, sample_rate, settings).voiced


def _chunk_ratio(duration_ms: float, chunk_ms: float) -> float:
    return round(duration_ms / chunk_ms, _RATIO_DIGITS)


def _check_sample_rate(sample_rate: int) -> int:
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, numbers.Real):
        raise InvalidConfiguration(f"sample_rate must be a positive integer, got {sample_rate!r}")
    if not math.isfinite(sample_rate) or sample_rate <= 0 or not float(sample_rate).is_integer():
        raise InvalidConfiguration(f"sample_rate must be a positive integer, got {sample_rate!r}")
    return int(sample_rate)

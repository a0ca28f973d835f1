"""Helpers for turning uploads and raw sample payloads into voiced intervals."""

from __future__ import annotations

import io
import logging
import time
from typing import Any, Dict

import numpy as np
import soundfile as sf
from fastapi import UploadFile

from voicespan.audio import (
    AnalysisError,
    AnalysisSettings,
    InvalidConfiguration,
    amplitude_to_db,
    analyze,
    analyze_channels,
    downmix,
)

from ..metrics import ANALYSIS_COUNTER, ANALYSIS_DURATION
from ..settings import APISettings

LOGGER = logging.getLogger("voicespan.service")


class UploadTooLarge(Exception):
    """Raised when an upload exceeds ``max_upload_bytes`` or a sample payload ``max_samples``."""


class UndecodableAudio(Exception):
    """Raised when soundfile cannot read an upload."""


class AnalysisService:
    """Decode audio, apply configured defaults and run the segmenter."""

    def __init__(self, settings: APISettings) -> None:
        self.settings = settings

    def resolve_settings(
        self,
        threshold: float | None = None,
        min_silence_duration: float | None = None,
        padding: float | None = None,
        chunk_size: float | None = None,
        threshold_amplitude: float | None = None,
    ) -> AnalysisSettings:
        """Fill omitted fields from the service defaults."""
        if threshold is not None and threshold_amplitude is not None:
            raise InvalidConfiguration("pass either threshold or threshold_amplitude, not both")
        if threshold_amplitude is not None:
            try:
                threshold = amplitude_to_db(threshold_amplitude)
            except ValueError as exc:
                raise InvalidConfiguration(str(exc)) from exc
        return AnalysisSettings(
            threshold=_pick(threshold, self.settings.default_threshold_db),
            min_silence_duration=_pick(min_silence_duration, self.settings.default_min_silence_ms),
            padding=_pick(padding, self.settings.default_padding_ms),
            chunk_size=_pick(chunk_size, self.settings.default_chunk_ms),
        )

    async def analyze_upload(
        self,
        file: UploadFile,
        analysis_settings: AnalysisSettings,
        per_channel: bool = False,
    ) -> Dict[str, Any]:
        payload = await file.read()
        if len(payload) > self.settings.max_upload_bytes:
            raise UploadTooLarge(
                f"upload is {len(payload)} bytes, limit is {self.settings.max_upload_bytes}"
            )
        audio, sample_rate = self._decode(payload, file.filename)
        if not per_channel:
            audio = downmix(audio)
        return self.analyze_samples(audio, sample_rate, analysis_settings, per_channel=per_channel)

    def check_sample_count(self, count: int) -> None:
        if count > self.settings.max_samples:
            raise UploadTooLarge(f"payload has {count} samples, limit is {self.settings.max_samples}")

    def analyze_samples(
        self,
        samples: np.ndarray,
        sample_rate: int,
        analysis_settings: AnalysisSettings,
        per_channel: bool = False,
    ) -> Dict[str, Any]:
        start_time = time.perf_counter()
        try:
            if per_channel:
                results = analyze_channels(samples, sample_rate, analysis_settings)
            else:
                results = [analyze(samples, sample_rate, analysis_settings)]
        except AnalysisError as exc:
            ANALYSIS_COUNTER.labels(status="rejected").inc()
            LOGGER.warning("Analysis rejected: %s", exc)
            raise
        ANALYSIS_COUNTER.labels(status="success").inc()
        ANALYSIS_DURATION.observe(time.perf_counter() - start_time)

        first = results[0]
        LOGGER.info(
            "Analysed %.3fs at %d Hz across %d channel(s): %s voiced interval(s)",
            first.duration,
            first.sample_rate,
            len(results),
            "/".join(str(len(result.voiced)) for result in results),
        )
        body: Dict[str, Any] = {
            "sample_rate": first.sample_rate,
            "duration": first.duration,
            "settings": analysis_settings.to_dict(),
        }
        if per_channel:
            body["channels"] = [result.intervals() for result in results]
        else:
            body["intervals"] = first.intervals()
        return body

    def _decode(self, payload: bytes, filename: str | None) -> tuple[np.ndarray, int]:
        try:
            audio, sample_rate = sf.read(io.BytesIO(payload), dtype="float32", always_2d=True)
        except RuntimeError as exc:
            raise UndecodableAudio(f"cannot decode {filename or 'upload'}: {exc}") from exc
        return audio, int(sample_rate)


def _pick(value: float | None, fallback: float) -> float:
    return fallback if value is None else value

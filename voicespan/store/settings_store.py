"""Persistent analysis presets stored as JSON."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path

from ..audio.errors import InvalidConfiguration
from ..audio.types import AnalysisSettings

LOGGER = logging.getLogger("voicespan.store")

DEFAULT_PRESET = AnalysisSettings(
    threshold=-40.0,
    min_silence_duration=500.0,
    padding=100.0,
    chunk_size=10.0,
)


class SettingsStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._settings = self._load()

    def _load(self) -> AnalysisSettings:
        if not self.path.exists():
            return DEFAULT_PRESET
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable preset %s: %s", self.path, exc)
            return DEFAULT_PRESET
        if not isinstance(raw, dict):
            LOGGER.warning("Ignoring preset %s: expected a JSON object", self.path)
            return DEFAULT_PRESET
        merged = {**DEFAULT_PRESET.to_dict(), **raw}
        return AnalysisSettings.from_mapping(merged)

    def get(self) -> AnalysisSettings:
        return self._settings

    def update(self, **kwargs: float) -> AnalysisSettings:
        changes = {}
        for key, value in kwargs.items():
            if value is None:
                continue
            if key not in DEFAULT_PRESET.to_dict():
                raise InvalidConfiguration(f"unknown setting {key!r}")
            changes[key] = float(value)
        self._settings = replace(self._settings, **changes)
        self._persist()
        return self._settings

    def _persist(self) -> None:
        self.path.write_text(json.dumps(self._settings.to_dict(), indent=2), encoding="utf-8")

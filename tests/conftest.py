"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()


def chunk_pattern(pattern: str, samples_per_chunk: int = 10, loud: float = 1.0) -> np.ndarray:
    """Build a float buffer where each character is one chunk: ``S`` is digital silence, ``L`` is loud."""
    pieces = []
    for mark in pattern:
        value = 0.0 if mark == "S" else loud
        pieces.append(np.full(samples_per_chunk, value, dtype=np.float64))
    return np.concatenate(pieces)


@pytest.fixture()
def pattern_audio():
    return chunk_pattern

"""Chunked RMS loudness estimation and threshold classification."""

from __future__ import annotations

import numpy as np


def chunk_count(total_samples: int, chunk_size_samples: int) -> int:
    """Number of chunks covering the buffer; a partial tail chunk counts as one."""
    if chunk_size_samples < 1:
        raise ValueError("chunk_size_samples must be >= 1")
    return -(-total_samples // chunk_size_samples)


def chunk_offsets(total_samples: int, chunk_size_samples: int) -> np.ndarray:
    """Start sample of each chunk; every chunk but the last spans exactly ``chunk_size_samples``."""
    return np.arange(chunk_count(total_samples, chunk_size_samples)) * chunk_size_samples


def chunk_rms(samples: np.ndarray, chunk_size_samples: int) -> np.ndarray:
    """RMS amplitude per chunk.

    The buffer must hold at least one sample so that every chunk is non-empty.
    """
    data = np.asarray(samples, dtype=np.float64)
    total = data.shape[0]
    if total == 0:
        raise ValueError("chunk_rms needs a non-empty buffer")
    offsets = chunk_offsets(total, chunk_size_samples)
    sums = np.add.reduceat(data * data, offsets)
    counts = np.diff(np.append(offsets, total))
    return np.sqrt(sums / counts)


def rms_to_dbfs(rms: np.ndarray) -> np.ndarray:
    # log10(0) is -inf, which sorts below every finite threshold.
    with np.errstate(divide="ignore"):
        return 20.0 * np.log10(np.asarray(rms, dtype=np.float64))


def chunk_loudness_db(samples: np.ndarray, chunk_size_samples: int) -> np.ndarray:
    return rms_to_dbfs(chunk_rms(samples, chunk_size_samples))


def db_to_amplitude(threshold_db: float) -> float:
    """Linear amplitude ratio for a dBFS value."""
    return float(10.0 ** (threshold_db / 20.0))


def amplitude_to_db(amplitude: float) -> float:
    if amplitude < 0:
        raise ValueError("amplitude must not be negative")
    if amplitude == 0:
        return float("-inf")
    return float(20.0 * np.log10(amplitude))


def classify(loudness_db: np.ndarray, threshold_db: float) -> np.ndarray:
    """Boolean silence verdict per chunk; a chunk exactly at the threshold is voiced."""
    return np.asarray(loudness_db) < threshold_db


__all__ = [
    "amplitude_to_db",
    "chunk_count",
    "chunk_offsets",
    "chunk_loudness_db",
    "chunk_rms",
    "classify",
    "db_to_amplitude",
    "rms_to_dbfs",
]

"""Exceptions raised by the segmentation pipeline."""


class AnalysisError(ValueError):
    """Base class for rejected analysis inputs."""


class InvalidConfiguration(AnalysisError):
    """Raised when settings, sample rate or buffer shape cannot be analysed."""


class EmptyInput(InvalidConfiguration):
    """Raised for a zero-length sample buffer."""

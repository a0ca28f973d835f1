"""voicespan: find the audible parts of a decoded audio buffer."""

__version__ = "1.0.0"

from __future__ import annotations


class GazeWarpError(Exception):
    """Base class for gazewarp errors."""


class ConfigurationInvalid(GazeWarpError, ValueError):
    """A threshold or tuning value is outside its declared range."""


class CaptureUnavailable(GazeWarpError):
    """Screen capture failed or is unsupported on this display."""

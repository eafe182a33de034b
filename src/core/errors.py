"""Exception types shared by the core and adapters."""

from __future__ import annotations


class TeleWatchError(Exception):
    """Base class for telewatch errors."""


class RoomServiceError(TeleWatchError):
    """The room service did not report success (transport, HTTP, or payload)."""


class ConfigError(TeleWatchError):
    """Startup configuration is missing or malformed."""

"""Settings package."""

from souvella.settings.settings import Environment, LogLevel, Settings, StoreBackend, settings

__all__ = ["Environment", "LogLevel", "Settings", "StoreBackend", "settings"]

"""Configuration module - settings and constants."""

from shopee_sync.config.settings import Settings, settings

__all__ = ["Settings", "settings"]

"""Core module - Logging, errors, token storage and mapping configuration."""

from shopee_sync.core.errors import ShopeeSyncError
from shopee_sync.core.logger import setup_logger

__all__ = ["setup_logger", "ShopeeSyncError"]

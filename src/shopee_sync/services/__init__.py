"""Services - stock sync and its scheduler."""

from .scheduler import SyncScheduler
from .sync_service import SyncService

__all__ = ["SyncService", "SyncScheduler"]

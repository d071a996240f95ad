"""Database module."""

from .base import Base, get_engine, get_session_factory, init_db
from .models import SyncLog
from .product_repository import ProductRepository
from .repository import SyncLogRepository

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "SyncLog",
    "ProductRepository",
    "SyncLogRepository",
]

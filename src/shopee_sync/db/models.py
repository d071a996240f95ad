"""SQLAlchemy models for sync bookkeeping."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SyncLog(Base):
    """
    One row per stock sync attempt.

    Rows are only ever inserted; nothing in the service updates or deletes them.
    """

    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    shop_id: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    product_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shopee_item_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)

    old_stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    new_stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False, index=True
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "product_id": self.product_id,
            "shopee_item_id": self.shopee_item_id,
            "action": self.action,
            "old_stock": self.old_stock,
            "new_stock": self.new_stock,
            "success": self.success,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

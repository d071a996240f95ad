"""Repository for the append-only sync log."""

from typing import List, Optional

from sqlalchemy import func, select

from .models import SyncLog


class SyncLogRepository:
    """Data access layer for SyncLog model."""

    def __init__(self, session_factory):
        """Initialize repository with a session factory."""
        self.session_factory = session_factory

    def log_sync(
        self,
        shop_id: int,
        product_id: Optional[str],
        shopee_item_id: Optional[str],
        action: str,
        success: bool,
        old_stock: Optional[int] = None,
        new_stock: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> SyncLog:
        """Append one sync attempt and return the stored row."""
        entry = SyncLog(
            shop_id=int(shop_id),
            product_id=str(product_id) if product_id is not None else None,
            shopee_item_id=str(shopee_item_id) if shopee_item_id is not None else None,
            action=action,
            old_stock=old_stock,
            new_stock=new_stock,
            success=bool(success),
            error_message=error_message,
        )
        with self.session_factory() as session:
            session.add(entry)
            session.commit()
            session.refresh(entry)
        return entry

    def recent(self, shop_id: int, limit: int = 10) -> List[SyncLog]:
        """Most recent entries for a shop, newest first."""
        query = (
            select(SyncLog)
            .where(SyncLog.shop_id == int(shop_id))
            .order_by(SyncLog.created_at.desc(), SyncLog.id.desc())
            .limit(limit)
        )
        with self.session_factory() as session:
            return list(session.execute(query).scalars().all())

    def count(self, shop_id: Optional[int] = None) -> int:
        query = select(func.count()).select_from(SyncLog)
        if shop_id is not None:
            query = query.where(SyncLog.shop_id == int(shop_id))
        with self.session_factory() as session:
            return session.execute(query).scalar_one()

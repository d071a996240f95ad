"""
Stock Sync Service.

Pushes stock quantities from the local product table to Shopee. Supports a
single product, a batch run, a dry run and a cron run; every push attempt is
written to the sync log.
"""

import time
from typing import Callable, List, Optional

from shopee_sync.api.product_api import ShopeeProductAPI, build_stock_list, first_item
from shopee_sync.config.constants import (
    DEFAULT_CRON_DELAY_MS,
    DEFAULT_CRON_MAX_PRODUCTS,
    DEFAULT_RUN_SYNC_DELAY_MS,
    DEFAULT_RUN_SYNC_LIMIT,
    DEFAULT_TEST_SYNC_LIMIT,
    SYNC_ACTION_STOCK,
)
from shopee_sync.core.errors import (
    NotFoundError,
    ShopeeSyncError,
    StockSyncError,
    UnauthenticatedError,
    ValidationError,
)
from shopee_sync.core.logger import setup_logger
from shopee_sync.core.mapping_config import MappingConfigStore
from shopee_sync.core.monitoring import capture_exception, sync_tags
from shopee_sync.db.product_repository import ProductRepository
from shopee_sync.db.repository import SyncLogRepository
from shopee_sync.models.mapping import MappingConfig
from shopee_sync.models.product import BatchSummary, SyncCandidate, SyncResult

logger = setup_logger(__name__)


class SyncService:
    """
    Reconciles local stock values into Shopee's location-based stock lists.

    Products are processed strictly one at a time with a fixed delay between
    Shopee calls. A failed product is recorded and the batch moves on.
    """

    def __init__(
        self,
        product_api: ShopeeProductAPI,
        mapping_store: MappingConfigStore,
        products: ProductRepository,
        sync_log: SyncLogRepository,
        run_delay_ms: int = DEFAULT_RUN_SYNC_DELAY_MS,
        cron_delay_ms: int = DEFAULT_CRON_DELAY_MS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.product_api = product_api
        self.mapping_store = mapping_store
        self.products = products
        self.sync_log = sync_log
        self.run_delay_ms = run_delay_ms
        self.cron_delay_ms = cron_delay_ms
        self.sleep = sleep

    @property
    def token_store(self):
        return self.product_api.token_store

    def require_token(self, shop_id: int) -> None:
        if not self.token_store.is_valid(shop_id):
            raise UnauthenticatedError(
                f"No valid token for shop {shop_id}. Please authorize first via /shopee/auth"
            )

    # ------------------------------------------------------------------
    # Single product
    # ------------------------------------------------------------------

    def sync_one(
        self,
        shop_id: int,
        product: SyncCandidate,
        mapping: Optional[MappingConfig] = None,
    ) -> SyncResult:
        """
        Push one product's current stock to every Shopee stock location of its item.

        Steps:
        1. Fetch item base info and its seller_stock locations
        2. Rebuild the stock list with the local quantity at every location
        3. Push update_stock
        4. Write the stock back locally and log the attempt

        Raises:
            ValidationError: If the product has no Shopee item ID (callers skip these)
        """
        if not product.shopee_item_id:
            raise ValidationError(f"Product {product.product_id} has no Shopee item ID")

        started_at = time.perf_counter()

        try:
            info = self.product_api.get_item_base_info(
                shop_id,
                product.shopee_item_id,
                error_context="Failed to get Shopee item info",
            )

            item = first_item(info)
            if not item:
                raise StockSyncError("Item not found in Shopee")

            seller_stock = (item.get("stock_info_v2") or {}).get("seller_stock") or []
            if not seller_stock:
                raise StockSyncError("No stock locations found")

            stock_list = build_stock_list(seller_stock, stock=product.current_stock)
            if not stock_list:
                raise StockSyncError("Could not build stock update payload")

            self.product_api.update_stock(shop_id, int(product.shopee_item_id), stock_list)

            if mapping is None:
                mapping = self.mapping_store.load(shop_id)
            self.products.update_stock_after_sync(
                product.product_id, product.current_stock, mapping
            )

            self.sync_log.log_sync(
                shop_id=shop_id,
                product_id=product.product_id,
                shopee_item_id=product.shopee_item_id,
                action=SYNC_ACTION_STOCK,
                new_stock=product.current_stock,
                success=True,
            )

            logger.info(
                f"Synced product {product.product_id} -> item {product.shopee_item_id} "
                f"(stock={product.current_stock}, locations={sum(len(g['seller_stock']) for g in stock_list)})"
            )

            return SyncResult(
                success=True,
                product_id=product.product_id,
                shopee_item_id=product.shopee_item_id,
                new_stock=product.current_stock,
                duration_ms=self._elapsed_ms(started_at),
            )

        except Exception as e:
            message = e.message if isinstance(e, ShopeeSyncError) else str(e)
            logger.error(
                f"Sync failed for product {product.product_id} (item {product.shopee_item_id}): {message}",
                exc_info=not isinstance(e, ShopeeSyncError),
            )

            capture_exception(
                e,
                context={"shop_id": shop_id, "product_id": product.product_id},
                level="warning",
                tags=sync_tags(shop_id, product.product_id, product.shopee_item_id),
            )

            self.sync_log.log_sync(
                shop_id=shop_id,
                product_id=product.product_id,
                shopee_item_id=product.shopee_item_id,
                action=SYNC_ACTION_STOCK,
                success=False,
                error_message=message,
            )

            return SyncResult(
                success=False,
                product_id=product.product_id,
                shopee_item_id=product.shopee_item_id,
                error=message,
                duration_ms=self._elapsed_ms(started_at),
            )

    def sync_product(self, shop_id: int, product_id: str) -> SyncResult:
        """Look up one product by its local ID and sync it."""
        mapping = self.mapping_store.load(shop_id)
        self.require_token(shop_id)

        product = self.products.get_product_by_id(product_id, mapping)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        if not product.shopee_item_id:
            raise ValidationError(f"Product {product_id} has no Shopee item ID")

        return self.sync_one(shop_id, product, mapping)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def _sync_batch(
        self,
        shop_id: int,
        candidates: List[SyncCandidate],
        mapping: MappingConfig,
        delay_ms: int,
    ) -> BatchSummary:
        summary = BatchSummary()

        for product in candidates:
            summary.total_processed += 1

            if not product.shopee_item_id:
                summary.skipped += 1
                summary.details.append(
                    {
                        "product_id": product.product_id,
                        "status": "skipped",
                        "reason": "No Shopee item ID",
                    }
                )
                continue

            try:
                result = self.sync_one(shop_id, product, mapping)
            except Exception as e:
                logger.error(f"Unexpected error syncing product {product.product_id}: {e}", exc_info=True)
                summary.failed += 1
                summary.details.append(
                    {"product_id": product.product_id, "status": "error", "error": str(e)}
                )
                continue

            if result.success:
                summary.successful += 1
            else:
                summary.failed += 1
            summary.details.append(result.model_dump())

            # Rate limiting delay
            if delay_ms > 0:
                self.sleep(delay_ms / 1000)

        return summary

    def run_sync(
        self,
        shop_id: int,
        limit: int = DEFAULT_RUN_SYNC_LIMIT,
        delay_ms: Optional[int] = None,
    ) -> BatchSummary:
        """Sync the first ``limit`` candidates of the shop's mapping."""
        mapping = self.mapping_store.load(shop_id)
        self.require_token(shop_id)

        delay = self.run_delay_ms if delay_ms is None else delay_ms
        candidates = self.products.get_products_for_sync(mapping)[: max(0, limit)]

        logger.info(f"Starting sync for shop {shop_id}: {len(candidates)} products, delay={delay}ms")
        summary = self._sync_batch(shop_id, candidates, mapping, delay)
        logger.info(
            f"Sync completed for shop {shop_id}: {summary.successful} ok, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary

    def test_sync(self, shop_id: int, limit: int = DEFAULT_TEST_SYNC_LIMIT) -> dict:
        """Dry run: report what run_sync would do without calling Shopee."""
        mapping = self.mapping_store.load(shop_id)
        self.require_token(shop_id)

        products = self.products.get_products_for_sync(mapping)
        results = []
        for product in products[: max(0, limit)]:
            entry = {
                "product_id": product.product_id,
                "product_name": product.product_name,
                "current_stock": product.current_stock,
                "shopee_item_id": product.shopee_item_id,
                "sku": product.sku,
            }
            if product.shopee_item_id:
                entry["status"] = "ready"
                entry["action"] = f"Would update stock to {product.current_stock}"
            else:
                entry["status"] = "skip"
                entry["reason"] = "No Shopee item ID"
            results.append(entry)

        return {
            "total_products": len(products),
            "tested_products": len(results),
            "test_results": results,
            "ready_to_sync": sum(1 for r in results if r["status"] == "ready"),
        }

    def cron(
        self,
        shop_id: int,
        max_products: Optional[int] = None,
        delay_ms: Optional[int] = None,
    ) -> dict:
        """
        Scheduled sync for one shop.

        A shop without a valid token is skipped rather than treated as an error,
        so a scheduler can keep calling this for every configured shop.
        """
        logger.info(f"CRON: Starting sync for shop {shop_id}")
        mapping = self.mapping_store.load(shop_id)

        if not self.token_store.is_valid(shop_id):
            logger.warning(f"CRON: No valid token for shop {shop_id}, skipping")
            return {"success": False, "message": "No valid token, sync skipped"}

        limit = DEFAULT_CRON_MAX_PRODUCTS if max_products is None else max_products
        delay = self.cron_delay_ms if delay_ms is None else delay_ms

        products = self.products.get_products_for_sync(mapping)
        summary = self._sync_batch(shop_id, products[:limit], mapping, delay)
        counts = summary.model_dump(exclude={"details"})

        logger.info(f"CRON: Completed sync for shop {shop_id}: {counts}")
        return {
            "success": True,
            "cron_summary": counts,
            "next_run_recommendation": "immediate" if len(products) > limit else "next_scheduled",
        }

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self, shop_id: int, recent_limit: int = 10) -> dict:
        mapping = self.mapping_store.load(shop_id)
        return {
            "token_status": self.token_store.status(shop_id),
            "sync_statistics": self.products.get_sync_stats(mapping),
            "mapping_config": {
                "table_name": mapping.table_name,
                "configured_at": mapping.created_at,
            },
            "recent_syncs": [entry.to_dict() for entry in self.sync_log.recent(shop_id, recent_limit)],
        }

    @staticmethod
    def _elapsed_ms(started_at: float) -> float:
        return round((time.perf_counter() - started_at) * 1000, 2)

"""Pydantic models for sync candidates, stock updates and sync results."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from shopee_sync.config.constants import DEFAULT_RUN_SYNC_LIMIT


class SyncCandidate(BaseModel):
    """A local product row read through a shop's mapping configuration."""

    product_id: str
    product_name: Optional[str] = None
    current_stock: int = 0
    shopee_item_id: Optional[str] = None
    sku: Optional[str] = None
    last_updated: Optional[Any] = None

    @field_validator("product_id", "product_name", "sku", mode="before")
    @classmethod
    def _stringify(cls, value):
        return str(value) if value is not None else None

    @field_validator("shopee_item_id", mode="before")
    @classmethod
    def _normalize_item_id(cls, value):
        # Empty strings and 0 mean the product is not listed on Shopee
        if value is None or str(value).strip() in ("", "0"):
            return None
        return str(value).strip()

    @field_validator("current_stock", mode="before")
    @classmethod
    def _stock_as_int(cls, value):
        if value is None or value == "":
            return 0
        return int(value)


class StockUpdateRequest(BaseModel):
    """Body of POST /shopee/update_stock/{shop_id}."""

    item_id: int
    stock_list: List[Dict[str, Any]]


class RunSyncRequest(BaseModel):
    """Body of POST /sync/run_sync/{shop_id}."""

    limit: int = Field(DEFAULT_RUN_SYNC_LIMIT, ge=0)
    delay_ms: Optional[int] = Field(None, ge=0)


class CronRequest(BaseModel):
    """Body of POST /sync/cron/{shop_id}."""

    max_products: Optional[int] = Field(None, ge=0)


class SyncResult(BaseModel):
    """Outcome of pushing one product's stock to Shopee."""

    success: bool
    product_id: str
    shopee_item_id: Optional[str] = None
    new_stock: Optional[int] = None
    error: Optional[str] = None
    duration_ms: float = 0.0


class BatchSummary(BaseModel):
    """Counters and per-item detail of a batch sync."""

    total_processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    details: List[Dict[str, Any]] = Field(default_factory=list)

"""Tests for pushing local stock to Shopee."""

import pytest
from sqlalchemy import text

from shopee_sync.api import endpoints
from shopee_sync.core.errors import (
    ConfigNotFoundError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from shopee_sync.models.product import SyncCandidate
from tests.conftest import SHOP_ID, item_detail

UPDATE_OK = {"error": "", "message": "", "response": {"success_list": [], "failure_list": []}}


def detail_by_item(request):
    item_id = int(request.url.params["item_id_list"])
    return item_detail(item_id, ["ID1", "ID2"])


@pytest.fixture
def shopee_ok(shopee):
    shopee.on(endpoints.GET_ITEM_BASE_INFO, detail_by_item)
    shopee.on(endpoints.UPDATE_STOCK, UPDATE_OK)
    return shopee


class TestSyncOne:
    def test_pushes_local_stock_to_every_location(
        self, sync_service, shopee_ok, authorized, mapping, sync_log, engine
    ):
        product = SyncCandidate(product_id="P1", current_stock=42, shopee_item_id="999")

        result = sync_service.sync_one(SHOP_ID, product, mapping)

        assert result.success is True
        assert result.new_stock == 42
        update = shopee_ok.calls_to(endpoints.UPDATE_STOCK)[0]
        assert shopee_ok.json_body(update) == {
            "item_id": 999,
            "stock_list": [
                {
                    "model_id": 0,
                    "seller_stock": [
                        {"location_id": "ID1", "stock": 42},
                        {"location_id": "ID2", "stock": 42},
                    ],
                }
            ],
        }

        entries = sync_log.recent(SHOP_ID)
        assert len(entries) == 1
        assert entries[0].success is True
        assert entries[0].new_stock == 42
        assert entries[0].action == "sync_stock"

        with engine.connect() as conn:
            updated_at = conn.execute(
                text("SELECT updated_at FROM products WHERE code = 'P1'")
            ).scalar_one()
        assert not str(updated_at).startswith("2024-01-03")

    def test_upstream_error_body_is_reported_not_raised(
        self, sync_service, shopee, authorized, mapping, sync_log
    ):
        shopee.on(
            endpoints.GET_ITEM_BASE_INFO,
            {"error": "error_item_not_found", "message": "Item not found"},
        )
        product = SyncCandidate(product_id="P1", current_stock=42, shopee_item_id="999")

        result = sync_service.sync_one(SHOP_ID, product, mapping)

        assert result.success is False
        assert result.error == "Failed to get Shopee item info: Item not found"
        assert shopee.calls_to(endpoints.UPDATE_STOCK) == []
        entry = sync_log.recent(SHOP_ID)[0]
        assert entry.success is False
        assert entry.error_message == result.error

    def test_empty_item_list(self, sync_service, shopee, authorized, mapping):
        shopee.on(endpoints.GET_ITEM_BASE_INFO, {"error": "", "response": {"item_list": []}})
        product = SyncCandidate(product_id="P1", current_stock=1, shopee_item_id="999")

        result = sync_service.sync_one(SHOP_ID, product, mapping)
        assert result.error == "Item not found in Shopee"

    def test_item_without_locations(self, sync_service, shopee, authorized, mapping):
        shopee.on(
            endpoints.GET_ITEM_BASE_INFO,
            {"error": "", "response": {"item_list": [{"item_id": 999, "stock_info_v2": {}}]}},
        )
        product = SyncCandidate(product_id="P1", current_stock=1, shopee_item_id="999")

        result = sync_service.sync_one(SHOP_ID, product, mapping)
        assert result.error == "No stock locations found"

    def test_update_rejected_by_shopee(self, sync_service, shopee, authorized, mapping, sync_log):
        shopee.on(endpoints.GET_ITEM_BASE_INFO, detail_by_item)
        shopee.on(endpoints.UPDATE_STOCK, {"error": "error_param", "message": "stock too large"})
        product = SyncCandidate(product_id="P1", current_stock=42, shopee_item_id="999")

        result = sync_service.sync_one(SHOP_ID, product, mapping)

        assert result.success is False
        assert result.error == "Shopee update failed: stock too large"
        assert sync_log.count(SHOP_ID) == 1

    def test_product_without_item_id_fails_fast(self, sync_service, shopee, mapping, sync_log):
        product = SyncCandidate(product_id="P3", current_stock=0, shopee_item_id=None)

        with pytest.raises(ValidationError):
            sync_service.sync_one(SHOP_ID, product, mapping)
        assert shopee.requests == []
        assert sync_log.count() == 0


class TestSyncProduct:
    def test_syncs_by_local_id(self, sync_service, shopee_ok, authorized, mapping):
        result = sync_service.sync_product(SHOP_ID, "P2")
        assert result.success is True
        assert result.shopee_item_id == "888"

    def test_unknown_product(self, sync_service, authorized, mapping):
        with pytest.raises(NotFoundError):
            sync_service.sync_product(SHOP_ID, "nope")

    def test_product_not_listed_on_shopee(self, sync_service, authorized, mapping):
        with pytest.raises(ValidationError):
            sync_service.sync_product(SHOP_ID, "P3")

    def test_requires_token(self, sync_service, mapping):
        with pytest.raises(UnauthenticatedError):
            sync_service.sync_product(SHOP_ID, "P1")

    def test_requires_mapping(self, sync_service, authorized):
        with pytest.raises(ConfigNotFoundError):
            sync_service.sync_product(SHOP_ID, "P1")


class TestRunSync:
    def test_counts_skipped_and_attempted(self, sync_service, shopee_ok, authorized, mapping, sleeps):
        attempted = []
        original = sync_service.sync_one

        def spy(shop_id, product, mapping=None):
            attempted.append(product)
            return original(shop_id, product, mapping)

        sync_service.sync_one = spy

        summary = sync_service.run_sync(SHOP_ID, limit=10, delay_ms=100)

        assert summary.total_processed == 3
        assert summary.skipped == 1
        assert summary.successful + summary.failed == 2
        assert summary.successful == 2
        assert all(product.shopee_item_id for product in attempted)
        assert sleeps == [0.1, 0.1]
        skipped = [d for d in summary.details if d.get("status") == "skipped"]
        assert skipped == [{"product_id": "P3", "status": "skipped", "reason": "No Shopee item ID"}]

    def test_limit_caps_candidates(self, sync_service, shopee_ok, authorized, mapping):
        summary = sync_service.run_sync(SHOP_ID, limit=1, delay_ms=0)
        assert summary.total_processed == 1

    def test_zero_delay_never_sleeps(self, sync_service, shopee_ok, authorized, mapping, sleeps):
        sync_service.run_sync(SHOP_ID, delay_ms=0)
        assert sleeps == []

    def test_default_delay(self, sync_service, shopee_ok, authorized, mapping, sleeps):
        sync_service.run_sync(SHOP_ID)
        assert sleeps == [0.5, 0.5]

    def test_one_failure_does_not_stop_batch(self, sync_service, shopee, authorized, mapping):
        def detail(request):
            item_id = int(request.url.params["item_id_list"])
            if item_id == 999:
                return {"error": "error_server", "message": "busy"}
            return item_detail(item_id, ["ID1"])

        shopee.on(endpoints.GET_ITEM_BASE_INFO, detail)
        shopee.on(endpoints.UPDATE_STOCK, UPDATE_OK)

        summary = sync_service.run_sync(SHOP_ID, delay_ms=0)

        assert summary.successful == 1
        assert summary.failed == 1

    def test_requires_token(self, sync_service, mapping):
        with pytest.raises(UnauthenticatedError):
            sync_service.run_sync(SHOP_ID)


def test_test_sync_makes_no_shopee_calls(sync_service, shopee, authorized, mapping):
    report = sync_service.test_sync(SHOP_ID, limit=5)

    assert shopee.requests == []
    assert report["total_products"] == 3
    assert report["tested_products"] == 3
    assert report["ready_to_sync"] == 2
    statuses = {r["product_id"]: r["status"] for r in report["test_results"]}
    assert statuses == {"P1": "ready", "P2": "ready", "P3": "skip"}


class TestCron:
    def test_skips_shop_without_token(self, sync_service, shopee, mapping):
        result = sync_service.cron(SHOP_ID)
        assert result == {"success": False, "message": "No valid token, sync skipped"}
        assert shopee.requests == []

    def test_summary_has_counts_only(self, sync_service, shopee_ok, authorized, mapping, sleeps):
        result = sync_service.cron(SHOP_ID, max_products=2)

        assert result["success"] is True
        assert "details" not in result["cron_summary"]
        assert result["cron_summary"]["total_processed"] == 2
        assert result["next_run_recommendation"] == "immediate"
        assert sleeps == [0.2, 0.2]

    def test_recommends_next_scheduled_when_all_processed(
        self, sync_service, shopee_ok, authorized, mapping
    ):
        result = sync_service.cron(SHOP_ID, max_products=20, delay_ms=0)
        assert result["next_run_recommendation"] == "next_scheduled"


def test_status(sync_service, shopee_ok, authorized, mapping):
    sync_service.sync_product(SHOP_ID, "P1")

    status = sync_service.status(SHOP_ID)

    assert status["token_status"]["is_valid"] is True
    assert status["sync_statistics"]["total_products"] == 3
    assert status["mapping_config"]["table_name"] == "products"
    assert len(status["recent_syncs"]) == 1
    assert status["recent_syncs"][0]["product_id"] == "P1"

"""Tests for mapping-driven reads and writes of the local product table."""

from datetime import datetime

import pytest
from sqlalchemy import text

from shopee_sync.core.errors import ConfigInvalidError
from shopee_sync.models.mapping import MappingConfig
from tests.conftest import COLUMN_MAPPINGS, SHOP_ID


def make_mapping(**overrides) -> MappingConfig:
    data = {
        "shop_id": SHOP_ID,
        "table_name": "products",
        "column_mappings": dict(COLUMN_MAPPINGS),
        "where_condition": "",
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }
    data.update(overrides)
    return MappingConfig(**data)


class TestCandidates:
    def test_reads_all_rows_through_mapping(self, products):
        candidates = products.get_products_for_sync(make_mapping())

        assert [c.product_id for c in candidates] == ["P1", "P2", "P3"]
        first = candidates[0]
        assert first.product_name == "Kopi Susu"
        assert first.current_stock == 42
        assert first.shopee_item_id == "999"
        assert first.sku == "KS-1"
        assert candidates[2].shopee_item_id is None

    def test_where_condition_filters_rows(self, products):
        candidates = products.get_products_for_sync(make_mapping(where_condition="WHERE qty > 10"))
        assert [c.product_id for c in candidates] == ["P1"]

    def test_where_condition_without_keyword(self, products):
        candidates = products.get_products_for_sync(make_mapping(where_condition="shopee_id IS NOT NULL"))
        assert {c.product_id for c in candidates} == {"P1", "P2"}

    @pytest.mark.parametrize(
        "condition",
        ["qty > 0; DROP TABLE products", "qty > 0 -- comment", "qty > 0 /* x */"],
    )
    def test_where_condition_with_statement_breaks_is_rejected(self, products, condition):
        with pytest.raises(ConfigInvalidError):
            products.get_products_for_sync(make_mapping(where_condition=condition))

    def test_unknown_table_is_rejected(self, products):
        with pytest.raises(ConfigInvalidError, match="does not exist"):
            products.get_products_for_sync(make_mapping(table_name="inventory"))

    def test_table_name_with_sql_is_rejected(self, products, engine):
        with pytest.raises(ConfigInvalidError, match="Invalid table name"):
            products.get_products_for_sync(make_mapping(table_name="products; DROP TABLE products"))

        with engine.connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM products")).scalar_one() == 3

    def test_unknown_column_is_rejected(self, products):
        columns = dict(COLUMN_MAPPINGS, stock_quantity="stock")
        with pytest.raises(ConfigInvalidError, match="Unknown column"):
            products.get_products_for_sync(make_mapping(column_mappings=columns))

    def test_column_expression_is_rejected(self, products):
        columns = dict(COLUMN_MAPPINGS, sku="sku, (SELECT 1)")
        with pytest.raises(ConfigInvalidError):
            products.get_products_for_sync(make_mapping(column_mappings=columns))

    def test_missing_column_mapping_is_rejected(self, products):
        columns = dict(COLUMN_MAPPINGS)
        del columns["sku"]
        with pytest.raises(ConfigInvalidError, match="Missing column mapping for sku"):
            products.get_products_for_sync(make_mapping(column_mappings=columns))


class TestValidate:
    def test_accepts_usable_mapping(self, products):
        products.validate(make_mapping(where_condition="WHERE qty > 0"))

    def test_rejects_column_with_sql(self, products):
        columns = dict(COLUMN_MAPPINGS, stock_quantity="qty; DROP TABLE products")
        with pytest.raises(ConfigInvalidError):
            products.validate(make_mapping(column_mappings=columns))

    def test_rejects_where_condition_on_unknown_column(self, products):
        with pytest.raises(ConfigInvalidError, match="where_condition"):
            products.validate(make_mapping(where_condition="no_such_column > 1"))


class TestLookups:
    def test_get_product_by_id(self, products):
        product = products.get_product_by_id("P2", make_mapping())
        assert product.product_name == "Teh Tarik"
        assert product.current_stock == 7

    def test_get_product_by_id_missing(self, products):
        assert products.get_product_by_id("nope", make_mapping()) is None

    def test_get_product_by_integer_primary_key(self, products):
        columns = dict(COLUMN_MAPPINGS, product_id="id")
        product = products.get_product_by_id("1", make_mapping(column_mappings=columns))
        assert product.product_id == "1"
        assert product.sku == "KS-1"

    def test_get_product_by_shopee_id(self, products):
        assert products.get_product_by_shopee_id("888", make_mapping()).product_id == "P2"


class TestWrites:
    def test_update_stock_after_sync(self, products, engine):
        changed = products.update_stock_after_sync("P2", 15, make_mapping())

        assert changed == 1
        with engine.connect() as conn:
            qty, updated_at = conn.execute(
                text("SELECT qty, updated_at FROM products WHERE code = 'P2'")
            ).one()
        assert qty == 15
        assert str(updated_at) > str(datetime(2024, 1, 2))

    def test_update_unknown_product_changes_nothing(self, products):
        assert products.update_stock_after_sync("nope", 5, make_mapping()) == 0


def test_sync_stats(products):
    stats = products.get_sync_stats(make_mapping())
    assert stats == {"total_products": 3, "has_shopee_id": 2, "in_stock": 2}


def test_sync_stats_respect_where_condition(products):
    stats = products.get_sync_stats(make_mapping(where_condition="qty > 10"))
    assert stats == {"total_products": 1, "has_shopee_id": 1, "in_stock": 1}


def test_analyze_database_lists_product_tables(products):
    analysis = products.analyze_database()

    names = [table["table_name"] for table in analysis]
    assert names == ["products"]
    fields = {field["name"] for field in analysis[0]["fields"]}
    assert {"code", "qty", "shopee_id", "updated_at"} <= fields
    assert len(analysis[0]["sample_data"]) == 3

"""
Product repository for the merchant's own product table.

Reads and writes the table named in a shop's mapping configuration. Table and
column names are checked against an identifier pattern and against the
reflected table before any statement is built, and all values are bound as
parameters.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import MetaData, Table, and_, case, func, inspect, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from shopee_sync.config.constants import PRODUCT_TABLE_HINTS, REQUIRED_MAPPING_FIELDS
from shopee_sync.core.errors import ConfigInvalidError
from shopee_sync.core.logger import setup_logger
from shopee_sync.models.mapping import MappingConfig
from shopee_sync.models.product import SyncCandidate

logger = setup_logger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
WHERE_PREFIX = re.compile(r"^\s*where\s+", re.IGNORECASE)
FORBIDDEN_WHERE_TOKENS = (";", "--", "/*")

# Canonical field -> label used in the candidate row
CANDIDATE_LABELS = {
    "product_id": "product_id",
    "product_name": "product_name",
    "stock_quantity": "current_stock",
    "shopee_item_id": "shopee_item_id",
    "sku": "sku",
    "last_updated": "last_updated",
}


def _python_type(column) -> Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _coerce(column, value: Any) -> Any:
    """Convert a path/query string to the column's type where that is unambiguous."""
    if _python_type(column) is int and isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


class ProductRepository:
    """Mapping-driven access to the local product table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    # ------------------------------------------------------------------
    # Mapping resolution
    # ------------------------------------------------------------------

    def _table(self, mapping: MappingConfig) -> Table:
        name = mapping.table_name
        if not IDENTIFIER_PATTERN.match(name or ""):
            raise ConfigInvalidError(f"Invalid table name: {name!r}")
        try:
            return Table(name, MetaData(), autoload_with=self.engine)
        except NoSuchTableError as e:
            raise ConfigInvalidError(f"Table {name} does not exist") from e

    def _columns(self, mapping: MappingConfig, table: Table) -> Dict[str, Any]:
        """Resolve every required canonical field to a real column of the table."""
        columns = {}
        for field in REQUIRED_MAPPING_FIELDS:
            column_name = mapping.column_mappings.get(field)
            if not column_name:
                raise ConfigInvalidError(f"Missing column mapping for {field}")
            if not IDENTIFIER_PATTERN.match(column_name) or column_name not in table.c:
                raise ConfigInvalidError(
                    f"Unknown column {column_name!r} mapped to {field} in table {table.name}"
                )
            columns[field] = table.c[column_name]
        return columns

    def _where(self, mapping: MappingConfig):
        """Operator-supplied filter, applied as written after basic screening."""
        condition = (mapping.where_condition or "").strip()
        if not condition:
            return None
        if any(token in condition for token in FORBIDDEN_WHERE_TOKENS):
            raise ConfigInvalidError("where_condition may not contain ';' or SQL comments")
        condition = WHERE_PREFIX.sub("", condition, count=1)
        return text(condition) if condition else None

    def _candidate_select(self, mapping: MappingConfig):
        table = self._table(mapping)
        columns = self._columns(mapping, table)
        query = select(
            *[columns[field].label(label) for field, label in CANDIDATE_LABELS.items()]
        )
        return query, table, columns

    def validate(self, mapping: MappingConfig) -> None:
        """
        Check a mapping against the live table without reading any rows.

        Raises:
            ConfigInvalidError: If the table, a column or the where condition cannot be used
        """
        query, _, _ = self._candidate_select(mapping)
        where = self._where(mapping)
        if where is not None:
            query = query.where(where)

        try:
            with self.engine.connect() as conn:
                conn.execute(query.limit(0)).all()
        except SQLAlchemyError as e:
            logger.error(f"Mapping for shop {mapping.shop_id} rejected by the database: {e}")
            raise ConfigInvalidError(
                f"where_condition cannot be applied to table {mapping.table_name}"
            ) from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_products_for_sync(self, mapping: MappingConfig) -> List[SyncCandidate]:
        """All products matching the mapping's filter, most recently updated first."""
        query, _, columns = self._candidate_select(mapping)
        where = self._where(mapping)
        if where is not None:
            query = query.where(where)
        query = query.order_by(columns["last_updated"].desc())

        with self.engine.connect() as conn:
            rows = conn.execute(query).mappings().all()
        return [SyncCandidate(**row) for row in rows]

    def get_product_by_id(self, product_id: Any, mapping: MappingConfig) -> Optional[SyncCandidate]:
        query, _, columns = self._candidate_select(mapping)
        column = columns["product_id"]
        query = query.where(column == _coerce(column, product_id))

        with self.engine.connect() as conn:
            row = conn.execute(query).mappings().first()
        return SyncCandidate(**row) if row else None

    def get_product_by_shopee_id(
        self, shopee_item_id: Any, mapping: MappingConfig
    ) -> Optional[SyncCandidate]:
        query, _, columns = self._candidate_select(mapping)
        column = columns["shopee_item_id"]
        query = query.where(column == _coerce(column, shopee_item_id))

        with self.engine.connect() as conn:
            row = conn.execute(query).mappings().first()
        return SyncCandidate(**row) if row else None

    def update_stock_after_sync(
        self, product_id: Any, new_stock: int, mapping: MappingConfig
    ) -> int:
        """Write the pushed stock and an update timestamp back. Returns rows changed."""
        table = self._table(mapping)
        columns = self._columns(mapping, table)

        now = datetime.now()
        last_updated = columns["last_updated"]
        if _python_type(last_updated) is not datetime:
            now = now.strftime("%Y-%m-%d %H:%M:%S")

        id_column = columns["product_id"]
        stmt = (
            update(table)
            .where(id_column == _coerce(id_column, product_id))
            .values({columns["stock_quantity"].name: int(new_stock), last_updated.name: now})
        )
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount

    def get_sync_stats(self, mapping: MappingConfig) -> Dict[str, int]:
        """Counts of products, products listed on Shopee, and listed products in stock."""
        table = self._table(mapping)
        columns = self._columns(mapping, table)
        item_id = columns["shopee_item_id"]
        stock = columns["stock_quantity"]

        query = select(
            func.count().label("total_products"),
            func.count(case((item_id.isnot(None), 1))).label("has_shopee_id"),
            func.count(case((and_(item_id.isnot(None), stock > 0), 1))).label("in_stock"),
        ).select_from(table)
        where = self._where(mapping)
        if where is not None:
            query = query.where(where)

        with self.engine.connect() as conn:
            row = conn.execute(query).mappings().one()
        return {key: int(value or 0) for key, value in row.items()}

    def analyze_database(self) -> List[Dict[str, Any]]:
        """Describe tables that look like they hold products, with a few sample rows."""
        inspector = inspect(self.engine)
        analysis = []

        for table_name in inspector.get_table_names():
            lowered = table_name.lower()
            if not any(hint in lowered for hint in PRODUCT_TABLE_HINTS):
                continue

            fields = [
                {
                    "name": column["name"],
                    "type": str(column["type"]),
                    "nullable": column.get("nullable", True),
                }
                for column in inspector.get_columns(table_name)
            ]

            try:
                table = Table(table_name, MetaData(), autoload_with=self.engine)
                with self.engine.connect() as conn:
                    sample = [dict(row) for row in conn.execute(select(table).limit(3)).mappings()]
            except SQLAlchemyError as e:
                logger.warning(f"Could not sample table {table_name}: {e}")
                sample = []

            analysis.append({"table_name": table_name, "fields": fields, "sample_data": sample})

        return analysis

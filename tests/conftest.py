"""Shared fixtures: fake clock, mocked Shopee API, in-memory product database."""

import json
import os
from datetime import datetime

# Keep test runs from writing log files
os.environ.setdefault("LOG_DIR", "")

import httpx
import pytest
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table
from sqlalchemy.pool import StaticPool

from shopee_sync.api.client import ShopeeSigner
from shopee_sync.api.product_api import ShopeeProductAPI
from shopee_sync.core.mapping_config import MappingConfigStore
from shopee_sync.core.token_store import InMemoryTokenBackend, TokenStore
from shopee_sync.db import ProductRepository, SyncLogRepository, get_engine, get_session_factory, init_db
from shopee_sync.services.sync_service import SyncService

PARTNER_ID = 2012584
PARTNER_KEY = "test_partner_key"
HOST = "https://partner.shopeemobile.com"
SHOP_ID = 37419605

COLUMN_MAPPINGS = {
    "product_id": "code",
    "product_name": "name",
    "stock_quantity": "qty",
    "shopee_item_id": "shopee_id",
    "sku": "sku",
    "last_updated": "updated_at",
}


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeShopee:
    """
    Mock Shopee API for httpx.MockTransport.

    Register a JSON body (or a callable taking the request) per path; every
    request is recorded for assertions.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, path: str, response) -> None:
        self.routes[path] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, json={"error": "error_not_found", "message": "no route"})
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def calls_to(self, path: str):
        return [r for r in self.requests if r.url.path == path]

    @staticmethod
    def json_body(request: httpx.Request) -> dict:
        return json.loads(request.content.decode("utf-8"))


def item_detail(item_id: int, locations):
    """Build a get_item_base_info response with one seller-stock group."""
    return {
        "error": "",
        "message": "",
        "response": {
            "item_list": [
                {
                    "item_id": item_id,
                    "stock_info_v2": {
                        "summary_info": {"total_reserved_stock": 1, "total_available_stock": 12},
                        "seller_stock": [
                            {"stock": [{"location_id": loc, "stock": 6} for loc in locations]}
                        ],
                    },
                }
            ]
        },
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_store(clock):
    return TokenStore(InMemoryTokenBackend(), clock=clock)


@pytest.fixture
def authorized(token_store):
    """Token store holding a fresh token for SHOP_ID."""
    token_store.set(SHOP_ID, "access-token-123", "refresh-token-456", 14400)
    return token_store


@pytest.fixture
def shopee():
    return FakeShopee()


@pytest.fixture
def http_client(shopee):
    client = httpx.Client(transport=httpx.MockTransport(shopee.handler))
    yield client
    client.close()


@pytest.fixture
def signer(token_store, http_client, clock):
    return ShopeeSigner(
        partner_id=PARTNER_ID,
        partner_key=PARTNER_KEY,
        token_store=token_store,
        host_api=HOST,
        http_client=http_client,
        clock=clock,
    )


@pytest.fixture
def product_api(signer):
    return ShopeeProductAPI(signer, redirect_uri="http://localhost:8000/shopee/callback")


@pytest.fixture
def engine():
    engine = get_engine("sqlite://", poolclass=StaticPool)
    metadata = MetaData()
    products = Table(
        "products",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("code", String(20), nullable=False),
        Column("name", String(100)),
        Column("qty", Integer),
        Column("shopee_id", String(32), nullable=True),
        Column("sku", String(50)),
        Column("updated_at", DateTime),
    )
    metadata.create_all(engine)

    with engine.begin() as conn:
        conn.execute(
            products.insert(),
            [
                {"code": "P1", "name": "Kopi Susu", "qty": 42, "shopee_id": "999",
                 "sku": "KS-1", "updated_at": datetime(2024, 1, 3)},
                {"code": "P2", "name": "Teh Tarik", "qty": 7, "shopee_id": "888",
                 "sku": "TT-1", "updated_at": datetime(2024, 1, 2)},
                {"code": "P3", "name": "Roti Bakar", "qty": 0, "shopee_id": None,
                 "sku": "RB-1", "updated_at": datetime(2024, 1, 1)},
            ],
        )

    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def mapping_store(tmp_path):
    return MappingConfigStore(tmp_path / "sync")


@pytest.fixture
def mapping(mapping_store):
    return mapping_store.save(SHOP_ID, "products", dict(COLUMN_MAPPINGS))


@pytest.fixture
def products(engine):
    return ProductRepository(engine)


@pytest.fixture
def sync_log(engine):
    return SyncLogRepository(get_session_factory(engine))


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def sync_service(product_api, mapping_store, products, sync_log, sleeps):
    return SyncService(
        product_api,
        mapping_store,
        products,
        sync_log,
        sleep=sleeps.append,
    )

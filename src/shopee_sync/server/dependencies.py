"""Service wiring shared by the routers."""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

import httpx
from fastapi import Request
from sqlalchemy.engine import Engine

from shopee_sync.api.client import ShopeeSigner
from shopee_sync.api.product_api import ShopeeProductAPI
from shopee_sync.config.settings import Settings
from shopee_sync.core.mapping_config import MappingConfigStore
from shopee_sync.core.token_store import TokenStore, create_token_store
from shopee_sync.db import (
    ProductRepository,
    SyncLogRepository,
    get_engine,
    get_session_factory,
    init_db,
)
from shopee_sync.services.scheduler import SyncScheduler
from shopee_sync.services.sync_service import SyncService


@dataclass
class AppServices:
    """Everything the routes need, built once per application."""

    settings: Settings
    engine: Engine
    token_store: TokenStore
    signer: ShopeeSigner
    product_api: ShopeeProductAPI
    mapping_store: MappingConfigStore
    products: ProductRepository
    sync_log: SyncLogRepository
    sync_service: SyncService
    scheduler: Optional[SyncScheduler] = None

    def close(self) -> None:
        if self.scheduler:
            self.scheduler.stop()
        self.signer.close()
        self.engine.dispose()


def build_services(
    settings: Settings,
    token_store: Optional[TokenStore] = None,
    http_client: Optional[httpx.Client] = None,
    engine: Optional[Engine] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> AppServices:
    """Create the object graph from settings; tests pass their own collaborators."""
    engine = engine or get_engine(settings.database_url)
    init_db(engine)

    token_store = token_store or create_token_store(settings.token_storage, settings.token_file)
    signer = ShopeeSigner(
        partner_id=settings.partner_id,
        partner_key=settings.partner_key,
        token_store=token_store,
        host_api=settings.host_api,
        http_client=http_client,
        timeout=settings.request_timeout,
    )
    product_api = ShopeeProductAPI(signer, redirect_uri=settings.redirect_uri)
    mapping_store = MappingConfigStore(Path(settings.mapping_dir))
    products = ProductRepository(engine)
    sync_log = SyncLogRepository(get_session_factory(engine))

    service_kwargs = {}
    if sleep is not None:
        service_kwargs["sleep"] = sleep
    sync_service = SyncService(
        product_api,
        mapping_store,
        products,
        sync_log,
        run_delay_ms=settings.rate_delay_ms,
        cron_delay_ms=settings.cron_delay_ms,
        **service_kwargs,
    )

    scheduler = None
    if settings.scheduler_enabled and settings.cron_shop_ids:
        scheduler = SyncScheduler(
            sync_service,
            settings.cron_shop_ids,
            interval_minutes=settings.cron_interval_minutes,
            max_products=settings.cron_max_products,
        )

    return AppServices(
        settings=settings,
        engine=engine,
        token_store=token_store,
        signer=signer,
        product_api=product_api,
        mapping_store=mapping_store,
        products=products,
        sync_log=sync_log,
        sync_service=sync_service,
        scheduler=scheduler,
    )


def get_services(request: Request) -> AppServices:
    """FastAPI dependency returning the application's services."""
    return request.app.state.services


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

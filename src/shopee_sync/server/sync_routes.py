"""Mapping setup and stock sync routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from shopee_sync.config.constants import DEFAULT_TEST_SYNC_LIMIT, MAPPING_FIELD_DESCRIPTIONS
from shopee_sync.core.logger import setup_logger
from shopee_sync.models.mapping import MappingSetupRequest
from shopee_sync.models.product import CronRequest, RunSyncRequest
from shopee_sync.server.dependencies import AppServices, get_services, now_iso

logger = setup_logger(__name__)
router = APIRouter(prefix="/sync")


@router.get("/analyze_database")
def analyze_database(services: AppServices = Depends(get_services)) -> dict:
    """List tables that look like product tables, to help write a mapping."""
    analysis = services.products.analyze_database()
    return {
        "success": True,
        "database_analysis": {"total_tables": len(analysis), "tables": analysis},
        "mapping_suggestions": {
            "message": "Analyze the tables above and create mapping configuration",
            "required_mappings": MAPPING_FIELD_DESCRIPTIONS,
        },
        "next_step": "/sync/setup_mapping",
        "timestamp": now_iso(),
    }


@router.post("/setup_mapping")
def setup_mapping(
    body: MappingSetupRequest,
    services: AppServices = Depends(get_services),
) -> dict:
    """Save a shop's mapping and show a sample of the products it selects."""
    config = services.mapping_store.save(
        shop_id=body.shop_id,
        table_name=body.table_name,
        column_mappings=body.column_mappings,
        where_condition=body.where_condition,
        validate=services.products.validate,
    )

    products = services.products.get_products_for_sync(config)
    shop_id = config.shop_id

    return {
        "success": True,
        "message": "Mapping configuration saved successfully",
        "config_file": str(services.mapping_store.path_for(shop_id)),
        "sample_mapped_data": [product.model_dump(mode="json") for product in products[:5]],
        "total_products_found": len(products),
        "next_steps": [
            f"Test sync: /sync/test_sync/{shop_id}",
            f"Run sync: /sync/run_sync/{shop_id}",
            f"Check status: /sync/status/{shop_id}",
        ],
        "timestamp": now_iso(),
    }


@router.get("/status/{shop_id}")
def sync_status(shop_id: int, services: AppServices = Depends(get_services)) -> dict:
    status = services.sync_service.status(shop_id)
    return {
        "success": True,
        "shop_id": shop_id,
        **status,
        "available_actions": {
            "test_sync": f"/sync/test_sync/{shop_id}",
            "run_sync": f"/sync/run_sync/{shop_id}",
            "sync_product": f"/sync/sync_product/{shop_id}/PRODUCT_ID",
        },
        "timestamp": now_iso(),
    }


@router.get("/test_sync/{shop_id}")
def test_sync(
    shop_id: int,
    limit: int = Query(DEFAULT_TEST_SYNC_LIMIT, ge=0),
    services: AppServices = Depends(get_services),
) -> dict:
    """Dry run of run_sync."""
    report = services.sync_service.test_sync(shop_id, limit)
    return {
        "success": True,
        "shop_id": shop_id,
        "test_mode": True,
        **report,
        "next_step": f"/sync/run_sync/{shop_id}",
        "timestamp": now_iso(),
    }


@router.post("/run_sync/{shop_id}")
def run_sync(
    shop_id: int,
    body: Optional[RunSyncRequest] = None,
    services: AppServices = Depends(get_services),
) -> dict:
    body = body or RunSyncRequest()
    summary = services.sync_service.run_sync(shop_id, body.limit, body.delay_ms)
    return {
        "success": True,
        "shop_id": shop_id,
        "sync_completed": True,
        "summary": summary.model_dump(),
        "timestamp": now_iso(),
    }


@router.post("/sync_product/{shop_id}/{product_id}")
def sync_product(
    shop_id: int,
    product_id: str,
    services: AppServices = Depends(get_services),
) -> dict:
    result = services.sync_service.sync_product(shop_id, product_id)
    return {
        "success": result.success,
        "shop_id": shop_id,
        "product_id": product_id,
        "sync_result": result.model_dump(),
        "timestamp": now_iso(),
    }


@router.post("/cron/{shop_id}")
def cron(
    shop_id: int,
    body: Optional[CronRequest] = None,
    services: AppServices = Depends(get_services),
) -> dict:
    """Entry point for an external scheduler (e.g. system cron hitting this URL)."""
    body = body or CronRequest()
    max_products = body.max_products
    if max_products is None:
        max_products = services.settings.cron_max_products
    result = services.sync_service.cron(shop_id, max_products)
    return {"shop_id": shop_id, **result, "timestamp": now_iso()}

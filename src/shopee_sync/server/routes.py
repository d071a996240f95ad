"""Service info, health and Shopee API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shopee_sync import __version__
from shopee_sync.config.constants import (
    DEFAULT_DETAIL_PAGE_SIZE,
    DEFAULT_ITEM_PAGE_SIZE,
    DEFAULT_ITEM_STATUS,
)
from shopee_sync.core.errors import ValidationError
from shopee_sync.core.logger import setup_logger
from shopee_sync.models.product import StockUpdateRequest
from shopee_sync.server.dependencies import AppServices, get_services, now_iso

logger = setup_logger(__name__)
router = APIRouter()


@router.get("/")
def root() -> dict:
    """Root endpoint with basic service info."""
    return {
        "service": "Shopee Stock Sync",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "auth": "GET /shopee/auth",
            "callback": "GET /shopee/callback?code=CODE&shop_id=SHOP_ID",
            "status": "GET /shopee/status",
            "item_list": "GET /shopee/item_list/{shop_id}",
            "base_info": "GET /shopee/base_info/{shop_id}?item_ids=ITEM_IDS",
            "update_stock": "POST /shopee/update_stock/{shop_id}",
            "stock_helper": "GET /shopee/stock_helper/{shop_id}/{item_id}",
            "shop_info": "GET /shopee/shop_info/{shop_id}",
            "setup_mapping": "POST /sync/setup_mapping",
            "run_sync": "POST /sync/run_sync/{shop_id}",
            "health": "GET /health",
            "docs": "GET /docs",
        },
    }


@router.get("/health")
def health_check(services: AppServices = Depends(get_services)) -> dict:
    """Health check endpoint for monitoring."""
    settings = services.settings
    health_status = {"status": "healthy", "service": "shopee-stock-sync", "checks": {}}

    env_checks = {
        "partner_id": "ok" if settings.partner_id else "missing",
        "partner_key": "ok" if settings.partner_key else "missing",
    }
    if "missing" in env_checks.values():
        health_status["status"] = "degraded"
    health_status["checks"]["environment"] = env_checks

    try:
        with services.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        health_status["checks"]["database"] = "error"
        health_status["status"] = "degraded"

    scheduler = services.scheduler
    health_status["checks"]["scheduler"] = (
        "running" if scheduler and scheduler.is_running else "disabled"
    )

    return health_status


# ----------------------------------------------------------------------
# Authorization
# ----------------------------------------------------------------------


@router.get("/shopee/auth")
def shopee_auth(services: AppServices = Depends(get_services)) -> RedirectResponse:
    """Step 1: redirect the seller to Shopee's authorization page."""
    return RedirectResponse(services.product_api.auth_url())


@router.get("/shopee/callback")
def shopee_callback(
    code: Optional[str] = Query(None),
    shop_id: Optional[int] = Query(None),
    services: AppServices = Depends(get_services),
) -> dict:
    """Step 2: exchange the authorization code for shop tokens."""
    if not code or not shop_id:
        raise ValidationError("Missing code or shop_id parameter")

    logger.info(f"Processing callback for shop_id: {shop_id}")
    token_info = services.product_api.exchange_code(code, shop_id)
    logger.info(f"Token stored successfully for shop {shop_id}")

    return {
        "success": True,
        "message": "Authorization successful! You can now use API endpoints.",
        "shop_id": shop_id,
        "token_info": token_info,
        "available_endpoints": {
            "item_list": f"/shopee/item_list/{shop_id}",
            "base_info": f"/shopee/base_info/{shop_id}?item_ids=ITEM_IDS",
            "update_stock": f"/shopee/update_stock/{shop_id}",
            "shop_info": f"/shopee/shop_info/{shop_id}",
            "stock_helper": f"/shopee/stock_helper/{shop_id}/ITEM_ID",
        },
        "timestamp": now_iso(),
    }


@router.get("/shopee/status")
def shopee_status(services: AppServices = Depends(get_services)) -> dict:
    """Authorization status for every shop that has tokens."""
    shops = services.token_store.all_status()
    return {
        "success": True,
        "message": "Authorization status for all shops",
        "shops": {str(shop_id): status for shop_id, status in shops.items()},
        "total_authorized_shops": len(shops),
        "timestamp": now_iso(),
    }


# ----------------------------------------------------------------------
# Items and stock
# ----------------------------------------------------------------------


@router.get("/shopee/item_list/{shop_id}")
def item_list(
    shop_id: int,
    offset: int = Query(0, ge=0),
    page_size: int = Query(DEFAULT_ITEM_PAGE_SIZE, ge=1, le=100),
    item_status: str = Query(DEFAULT_ITEM_STATUS),
    services: AppServices = Depends(get_services),
) -> dict:
    response = services.product_api.get_item_list(shop_id, offset, page_size, item_status)
    return {
        "success": True,
        "shop_id": shop_id,
        "data": response,
        "total_items": (response.get("response") or {}).get("total_count", 0),
        "params_used": {"offset": offset, "page_size": page_size, "item_status": item_status},
        "timestamp": now_iso(),
    }


@router.get("/shopee/item_list_with_details/{shop_id}")
def item_list_with_details(
    shop_id: int,
    offset: int = Query(0, ge=0),
    page_size: int = Query(DEFAULT_DETAIL_PAGE_SIZE, ge=1, le=50),
    item_status: str = Query(DEFAULT_ITEM_STATUS),
    services: AppServices = Depends(get_services),
) -> dict:
    result = services.product_api.get_item_list_with_details(
        shop_id, offset, page_size, item_status
    )
    return {"success": True, "shop_id": shop_id, **result, "timestamp": now_iso()}


@router.get("/shopee/base_info/{shop_id}")
def base_info(
    shop_id: int,
    item_ids: Optional[str] = Query(None),
    services: AppServices = Depends(get_services),
) -> dict:
    if not item_ids:
        raise ValidationError("Missing item_ids parameter. Example: ?item_ids=123,456,789")

    response = services.product_api.get_item_base_info(shop_id, item_ids)
    return {
        "success": True,
        "shop_id": shop_id,
        "requested_items": item_ids.split(","),
        "data": response,
        "timestamp": now_iso(),
    }


@router.get("/shopee/stock_helper/{shop_id}/{item_id}")
def stock_helper(
    shop_id: int,
    item_id: int,
    services: AppServices = Depends(get_services),
) -> dict:
    """Current stock of an item and a payload template for update_stock."""
    helper = services.product_api.stock_helper(shop_id, item_id)
    return {
        "success": True,
        "message": "Stock helper information",
        "shop_id": shop_id,
        **helper,
        "update_stock_endpoint": f"/shopee/update_stock/{shop_id}",
        "timestamp": now_iso(),
    }


@router.post("/shopee/update_stock/{shop_id}")
def update_stock(
    shop_id: int,
    body: StockUpdateRequest,
    services: AppServices = Depends(get_services),
) -> dict:
    response = services.product_api.update_stock(shop_id, body.item_id, body.stock_list)
    return {
        "success": True,
        "message": f"Stock updated successfully for item {body.item_id}",
        "shop_id": shop_id,
        "item_id": body.item_id,
        "updated_stock": body.stock_list,
        "shopee_response": response,
        "timestamp": now_iso(),
    }


@router.get("/shopee/shop_info/{shop_id}")
def shop_info(shop_id: int, services: AppServices = Depends(get_services)) -> dict:
    response = services.product_api.get_shop_info(shop_id)
    return {"success": True, "shop_id": shop_id, "data": response, "timestamp": now_iso()}

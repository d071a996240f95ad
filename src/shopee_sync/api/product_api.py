"""Shopee product, stock, shop and authorization calls built on the signer."""

from typing import Any, Dict, Iterable, List, Optional, Union

from shopee_sync.api import endpoints
from shopee_sync.api.client import ShopeeSigner, raise_for_api_error
from shopee_sync.config.constants import (
    DEFAULT_DETAIL_PAGE_SIZE,
    DEFAULT_ITEM_PAGE_SIZE,
    DEFAULT_ITEM_STATUS,
    DEFAULT_MODEL_ID,
)
from shopee_sync.core.errors import NotFoundError, UpstreamError
from shopee_sync.core.logger import preview_secret, setup_logger

logger = setup_logger(__name__)


def build_stock_list(
    seller_stock: Iterable[Dict[str, Any]],
    stock: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Rebuild Shopee's nested stock list from seller_stock entries.

    Every location found under each seller-stock group is kept. When ``stock``
    is given it replaces the quantity at every location; otherwise the current
    quantity is carried over (used for update templates).
    """
    stock_list = []
    for seller in seller_stock:
        locations = seller.get("stock")
        if not isinstance(locations, list) or not locations:
            continue

        stock_list.append(
            {
                "model_id": DEFAULT_MODEL_ID,
                "seller_stock": [
                    {
                        "location_id": location["location_id"],
                        "stock": stock if stock is not None else location.get("stock", 0),
                    }
                    for location in locations
                ],
            }
        )
    return stock_list


def first_item(response: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first entry of response.item_list, if any."""
    item_list = (response.get("response") or {}).get("item_list") or []
    return item_list[0] if item_list else None


class ShopeeProductAPI:
    """Product and shop endpoints used by the routes and the sync service."""

    def __init__(self, signer: ShopeeSigner, redirect_uri: Optional[str] = None):
        self.signer = signer
        self.redirect_uri = redirect_uri

    @property
    def token_store(self):
        return self.signer.token_store

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def auth_url(self, redirect: Optional[str] = None) -> str:
        """Build the signed shop authorization URL to redirect the seller to."""
        path = endpoints.AUTH_PARTNER
        timestamp = self.signer.now_sec()
        params = {
            "partner_id": self.signer.partner_id,
            "timestamp": timestamp,
            "sign": self.signer.sign(path, timestamp),
            "redirect": redirect or self.redirect_uri,
        }
        url = self.signer.build_url(path, params)
        logger.info(f"Shopee auth URL: {url}")
        return url

    def exchange_code(self, code: str, shop_id: int) -> Dict[str, Any]:
        """
        Exchange an authorization code for shop tokens and store them.

        Returns:
            Token summary with previews instead of the raw tokens
        """
        payload = {
            "code": code,
            "partner_id": int(self.signer.partner_id),
            "shop_id": int(shop_id),
        }
        response = self.signer.signed_post(endpoints.GET_ACCESS_TOKEN, payload)
        raise_for_api_error(response, "Token exchange failed")

        access_token = response.get("access_token")
        if not access_token:
            raise UpstreamError("No access token received")

        refresh_token = response.get("refresh_token", "")
        expire_in = response.get("expire_in")
        credentials = self.token_store.set(shop_id, access_token, refresh_token, expire_in)

        return {
            "expires_in": int(credentials.expires_at - self.token_store.clock()),
            "token_type": "Bearer",
            "access_token_preview": preview_secret(access_token),
            "refresh_token_preview": preview_secret(refresh_token),
        }

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get_item_list(
        self,
        shop_id: int,
        offset: int = 0,
        page_size: int = DEFAULT_ITEM_PAGE_SIZE,
        item_status: str = DEFAULT_ITEM_STATUS,
    ) -> Dict[str, Any]:
        params = {
            "offset": int(offset),
            "page_size": int(page_size),
            "item_status": item_status,
        }
        response = self.signer.signed_get(endpoints.GET_ITEM_LIST, shop_id, params)
        raise_for_api_error(response, "Shopee API error")
        return response

    def get_item_base_info(
        self,
        shop_id: int,
        item_ids: Union[str, int, Iterable[Union[str, int]]],
        error_context: str = "Shopee API error",
    ) -> Dict[str, Any]:
        """Fetch base info (including stock_info_v2) for one or more items."""
        if isinstance(item_ids, (str, int)):
            item_id_list = str(item_ids)
        else:
            item_id_list = ",".join(str(item_id) for item_id in item_ids)

        response = self.signer.signed_get(
            endpoints.GET_ITEM_BASE_INFO,
            shop_id,
            {"item_id_list": item_id_list},
        )
        raise_for_api_error(response, error_context)
        return response

    def get_item_list_with_details(
        self,
        shop_id: int,
        offset: int = 0,
        page_size: int = DEFAULT_DETAIL_PAGE_SIZE,
        item_status: str = DEFAULT_ITEM_STATUS,
    ) -> Dict[str, Any]:
        """Item list page merged with base info for each item."""
        list_response = self.get_item_list(shop_id, offset, page_size, item_status)
        page = list_response.get("response") or {}
        items = page.get("item") or []

        items_with_details = []
        if items:
            item_ids = ",".join(str(item["item_id"]) for item in items)
            detail_response = self.signer.signed_get(
                endpoints.GET_ITEM_BASE_INFO,
                shop_id,
                {"item_id_list": item_ids},
            )

            if detail_response.get("error"):
                logger.warning(
                    f"Item details failed for shop {shop_id}: {detail_response.get('message')}"
                )
                items_with_details = [
                    {**item, "detail_error": "Failed to fetch details"} for item in items
                ]
            else:
                details_by_id = {
                    detail["item_id"]: detail
                    for detail in (detail_response.get("response") or {}).get("item_list") or []
                }
                for item in items:
                    detail = details_by_id.get(item["item_id"])
                    items_with_details.append(
                        {**item, "details": detail, "has_details": detail is not None}
                    )

        return {
            "total_items": page.get("total_count", 0),
            "returned_items": len(items_with_details),
            "items_with_details": items_with_details,
            "pagination": {
                "offset": int(offset),
                "page_size": int(page_size),
                "has_more": bool(page.get("has_next_page", False)),
            },
        }

    def stock_helper(self, shop_id: int, item_id: int) -> Dict[str, Any]:
        """Current stock of an item plus a ready-to-edit update payload."""
        response = self.get_item_base_info(shop_id, item_id)
        item = first_item(response)
        if not item:
            raise NotFoundError(f"Item {item_id} not found in shop {shop_id}")

        stock_info = item.get("stock_info_v2") or {}
        summary = stock_info.get("summary_info") or {}
        seller_stock = stock_info.get("seller_stock") or []

        return {
            "item_id": int(item_id),
            "current_stock_summary": {
                "total_reserved_stock": summary.get("total_reserved_stock", 0),
                "total_available_stock": summary.get("total_available_stock", 0),
            },
            "current_stock_detail": seller_stock,
            "update_payload_template": {
                "item_id": int(item_id),
                "stock_list": build_stock_list(seller_stock),
            },
        }

    def update_stock(
        self,
        shop_id: int,
        item_id: int,
        stock_list: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        payload = {"item_id": int(item_id), "stock_list": stock_list}
        response = self.signer.signed_post(endpoints.UPDATE_STOCK, payload, shop_id)
        raise_for_api_error(response, "Shopee update failed")

        logger.info(f"Stock updated for item {item_id} in shop {shop_id}")
        return response

    # ------------------------------------------------------------------
    # Shop
    # ------------------------------------------------------------------

    def get_shop_info(self, shop_id: int) -> Dict[str, Any]:
        response = self.signer.signed_get(endpoints.GET_SHOP_INFO, shop_id)
        raise_for_api_error(response, "Shopee API error")
        return response

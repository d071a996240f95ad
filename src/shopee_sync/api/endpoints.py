"""Shopee Open Platform v2 endpoint paths."""

AUTH_PARTNER = "/api/v2/shop/auth_partner"
GET_ACCESS_TOKEN = "/api/v2/auth/token/get"

GET_ITEM_LIST = "/api/v2/product/get_item_list"
GET_ITEM_BASE_INFO = "/api/v2/product/get_item_base_info"
UPDATE_STOCK = "/api/v2/product/update_stock"

GET_SHOP_INFO = "/api/v2/shop/get_shop_info"

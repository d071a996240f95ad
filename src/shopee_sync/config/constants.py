"""
Centralized application constants.

Single point of truth for Shopee limits and sync defaults shared by the
signer, the token store and the sync service.
"""

# ==============================================================================
# TOKENS
# ==============================================================================

# Lifetime assumed when the token exchange response omits expire_in (4 hours)
TOKEN_EXPIRATION_DEFAULT = 14400

# A token expiring within this window is reported as needing refresh
TOKEN_REFRESH_WINDOW_SECONDS = 300

# ==============================================================================
# MAPPING
# ==============================================================================

# Canonical product fields every mapping must provide a column for
REQUIRED_MAPPING_FIELDS = [
    "product_id",
    "product_name",
    "stock_quantity",
    "shopee_item_id",
    "sku",
    "last_updated",
]

# Descriptions shown by the database analysis endpoint
MAPPING_FIELD_DESCRIPTIONS = {
    "product_id": "Unique product ID (integer/string)",
    "product_name": "Product name",
    "stock_quantity": "Stock quantity (integer)",
    "shopee_item_id": "Shopee item ID (if any)",
    "sku": "Product SKU (if any)",
    "last_updated": "Timestamp of the last stock update",
}

# Table name fragments that suggest a product table
PRODUCT_TABLE_HINTS = ["product", "item", "stock"]

# ==============================================================================
# SYNC
# ==============================================================================

SYNC_ACTION_STOCK = "sync_stock"

# Shopee uses model_id 0 for items without variations
DEFAULT_MODEL_ID = 0

DEFAULT_RUN_SYNC_LIMIT = 10
DEFAULT_TEST_SYNC_LIMIT = 5
DEFAULT_CRON_MAX_PRODUCTS = 20

# Delay between API calls to avoid rate limiting (in milliseconds)
DEFAULT_RUN_SYNC_DELAY_MS = 500
DEFAULT_CRON_DELAY_MS = 200

# ==============================================================================
# ITEM LISTING
# ==============================================================================

DEFAULT_ITEM_STATUS = "NORMAL"
DEFAULT_ITEM_PAGE_SIZE = 20
DEFAULT_DETAIL_PAGE_SIZE = 5

"""
GlitchTip Error Monitoring Utilities

Initialization and helpers for error tracking around stock syncs.
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from shopee_sync.core.logger import setup_logger

logger = setup_logger(__name__)


def init_monitoring(dsn: Optional[str], environment: str) -> bool:
    """
    Initialize GlitchTip (Sentry-compatible) error monitoring.

    Args:
        dsn: GlitchTip DSN, monitoring stays off when empty
        environment: Deployment environment name

    Returns:
        True if monitoring was initialized
    """
    if not dsn:
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(
                    level=None,  # Capture all log levels as breadcrumbs
                    event_level=logging.ERROR,  # Send ERROR logs as events
                ),
            ],
            traces_sample_rate=0.1,
            profiles_sample_rate=0.0,
            send_default_pii=False,
        )
        logger.info("GlitchTip error monitoring initialized")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize GlitchTip: {e}")
        return False


def sync_tags(
    shop_id: int,
    product_id: Optional[str] = None,
    shopee_item_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Tags identifying the shop and product of a sync failure."""
    tags = {"sync.shop_id": shop_id}
    if product_id:
        tags["sync.product_id"] = product_id
    if shopee_item_id:
        tags["sync.shopee_item_id"] = shopee_item_id
    return tags


def capture_exception(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: str = "error",
    tags: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture an exception and send to GlitchTip.

    Tags and context are set on a fresh scope, so they only apply to this
    event. A no-op when monitoring was never initialized.
    """
    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            if context:
                scope.set_context("sync", context)
            scope.set_level(level)
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.warning(f"Failed to capture exception in GlitchTip: {e}")

"""Shopee Open Platform API module."""

from .client import ShopeeSigner
from .product_api import ShopeeProductAPI

__all__ = ["ShopeeSigner", "ShopeeProductAPI"]

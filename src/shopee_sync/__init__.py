"""Shopee stock sync - keeps a local product table and Shopee stock in step."""

__version__ = "1.0.0"

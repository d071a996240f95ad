"""Pydantic models for mappings, products and sync results."""

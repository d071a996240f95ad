"""Pydantic models for mapping configuration."""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class MappingConfig(BaseModel):
    """Per-shop descriptor mapping canonical product fields to local columns."""

    shop_id: int
    table_name: str
    column_mappings: Dict[str, str]
    where_condition: str = ""
    created_at: str
    updated_at: str


class MappingSetupRequest(BaseModel):
    """Body of POST /sync/setup_mapping.

    Fields are optional here so that missing ones are reported by the
    mapping store with the field name instead of a generic schema error.
    """

    table_name: Optional[str] = None
    shop_id: Optional[int] = None
    column_mappings: Optional[Dict[str, str]] = None
    where_condition: Optional[str] = Field(None, description="Raw filter, e.g. WHERE active = 1")

"""
Mapping Configuration Store

Persists one mapping descriptor per shop as a JSON file. Column names and the
where condition are stored exactly as given; checking them against the real
table is left to the ``validate`` hook the caller passes to ``save``.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from shopee_sync.core.errors import ConfigInvalidError, ConfigNotFoundError, ValidationError
from shopee_sync.core.logger import setup_logger
from shopee_sync.models.mapping import MappingConfig

logger = setup_logger(__name__)


class MappingConfigStore:
    """Saves and loads mapping configurations under a directory."""

    def __init__(self, config_dir: Path):
        self.config_dir = Path(config_dir)

    def path_for(self, shop_id: int) -> Path:
        return self.config_dir / f"mapping_{shop_id}.json"

    def exists(self, shop_id: int) -> bool:
        return self.path_for(shop_id).exists()

    def save(
        self,
        shop_id: Optional[int],
        table_name: Optional[str],
        column_mappings: Optional[Dict[str, str]],
        where_condition: Optional[str] = None,
        validate: Optional[Callable[[MappingConfig], None]] = None,
    ) -> MappingConfig:
        """
        Validate and persist a mapping, replacing any previous one for the shop.

        ``validate`` runs on the built config before anything is written, so a
        rejected mapping leaves the previous file in place.

        Raises:
            ValidationError: If table_name, shop_id or column_mappings is missing
        """
        required = {
            "table_name": table_name,
            "shop_id": shop_id,
            "column_mappings": column_mappings,
        }
        for field, value in required.items():
            if value is None or value == "":
                raise ValidationError(f"Missing required field: {field}")

        now = datetime.now(timezone.utc).isoformat()
        config = MappingConfig(
            shop_id=int(shop_id),
            table_name=table_name,
            column_mappings=column_mappings,
            where_condition=where_condition or "",
            created_at=now,
            updated_at=now,
        )
        if validate is not None:
            validate(config)

        path = self.path_for(config.shop_id)
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config.model_dump(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save mapping for shop {shop_id}: {e}")
            raise ConfigInvalidError("Failed to save mapping configuration") from e

        logger.info(f"Saved mapping for shop {shop_id} to {path}")
        return config

    def load(self, shop_id: int) -> MappingConfig:
        """
        Load the mapping for a shop.

        Raises:
            ConfigNotFoundError: If no mapping was saved for the shop
            ConfigInvalidError: If the saved file cannot be parsed
        """
        path = self.path_for(shop_id)
        if not path.exists():
            raise ConfigNotFoundError(
                f"Mapping configuration not found for shop {shop_id}. "
                "Please setup mapping first via /sync/setup_mapping"
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return MappingConfig(**data)
        except (OSError, json.JSONDecodeError, TypeError, PydanticValidationError) as e:
            logger.error(f"Invalid mapping file {path}: {e}")
            raise ConfigInvalidError(f"Invalid mapping configuration for shop {shop_id}") from e

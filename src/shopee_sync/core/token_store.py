"""Per-shop token storage for Shopee API authentication."""

import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

from shopee_sync.config.constants import (
    TOKEN_EXPIRATION_DEFAULT,
    TOKEN_REFRESH_WINDOW_SECONDS,
)
from shopee_sync.core.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class ShopCredentials:
    """Tokens issued to one shop by the authorization callback."""

    shop_id: int
    access_token: str
    refresh_token: str
    expires_at: float


class InMemoryTokenBackend:
    """Keeps credentials for the lifetime of the process."""

    def __init__(self):
        self._tokens: Dict[int, ShopCredentials] = {}

    def get(self, shop_id: int) -> Optional[ShopCredentials]:
        return self._tokens.get(shop_id)

    def put(self, credentials: ShopCredentials) -> None:
        self._tokens[credentials.shop_id] = credentials

    def all(self) -> Dict[int, ShopCredentials]:
        return dict(self._tokens)


class JsonFileTokenBackend:
    """Keeps credentials in a JSON file keyed by shop id."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load tokens from {self.path}: {e}")
            return {}

    def get(self, shop_id: int) -> Optional[ShopCredentials]:
        data = self._read().get(str(shop_id))
        if not data:
            return None
        return ShopCredentials(**data)

    def put(self, credentials: ShopCredentials) -> None:
        tokens = self._read()
        tokens[str(credentials.shop_id)] = asdict(credentials)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(tokens, f, indent=2)

    def all(self) -> Dict[int, ShopCredentials]:
        return {int(k): ShopCredentials(**v) for k, v in self._read().items()}


class TokenStore:
    """
    Holds and answers queries about per-shop authorization state.

    There is no refresh-token exchange: once a token expires the shop must be
    authorized again through the callback flow.
    """

    def __init__(self, backend=None, clock: Callable[[], float] = time.time):
        self.backend = backend if backend is not None else InMemoryTokenBackend()
        self.clock = clock

    def set(
        self,
        shop_id: int,
        access_token: str,
        refresh_token: str,
        ttl_seconds: Optional[int] = None,
    ) -> ShopCredentials:
        """Store tokens for a shop, expiring ttl_seconds from now."""
        ttl = ttl_seconds or TOKEN_EXPIRATION_DEFAULT
        credentials = ShopCredentials(
            shop_id=int(shop_id),
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=self.clock() + ttl,
        )
        self.backend.put(credentials)
        logger.info(f"Token stored for shop {shop_id} (expires in {ttl}s)")
        return credentials

    def get(self, shop_id: int) -> Optional[ShopCredentials]:
        return self.backend.get(int(shop_id))

    def is_valid(self, shop_id: int) -> bool:
        credentials = self.get(shop_id)
        if not credentials or not credentials.access_token:
            return False
        return credentials.expires_at > self.clock()

    def needs_refresh(self, shop_id: int) -> bool:
        credentials = self.get(shop_id)
        if not credentials or not credentials.access_token:
            return True
        return credentials.expires_at <= self.clock() + TOKEN_REFRESH_WINDOW_SECONDS

    def status(self, shop_id: int) -> dict:
        """Read-only snapshot of a shop's authorization state."""
        credentials = self.get(shop_id)
        expires_at = None
        expires_in = 0
        if credentials:
            expires_at = datetime.fromtimestamp(
                credentials.expires_at, tz=timezone.utc
            ).isoformat()
            expires_in = max(0, int(credentials.expires_at - self.clock()))

        return {
            "has_token": bool(credentials and credentials.access_token),
            "has_refresh_token": bool(credentials and credentials.refresh_token),
            "expires_at": expires_at,
            "expires_in_seconds": expires_in,
            "is_valid": self.is_valid(shop_id),
            "needs_refresh": self.needs_refresh(shop_id),
        }

    def all_status(self) -> Dict[int, dict]:
        return {shop_id: self.status(shop_id) for shop_id in self.backend.all()}


def create_token_store(storage: str, token_file: str) -> TokenStore:
    """Build a token store for the configured backend ("memory" or "file")."""
    if storage == "file":
        logger.info(f"Using file token storage at {token_file}")
        return TokenStore(JsonFileTokenBackend(Path(token_file)))
    return TokenStore(InMemoryTokenBackend())

"""Error taxonomy for Shopee calls, tokens and mapping configuration.

Every error carries a ``kind`` and the HTTP status the server answers with.
Services raise these; the FastAPI exception handler in ``server.app``
turns them into ``{"error": ..., "message": ...}`` responses.
"""

from typing import Optional


class ShopeeSyncError(Exception):
    """Base class for all errors surfaced to API callers."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class UnauthenticatedError(ShopeeSyncError):
    """No access token for the shop, or the token has expired."""

    kind = "unauthenticated"
    status_code = 401


class UpstreamError(ShopeeSyncError):
    """Shopee answered with a non-2xx status or an error body."""

    kind = "upstream_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.upstream_status is not None:
            data["upstream_status"] = self.upstream_status
        return data


class TransportError(ShopeeSyncError):
    """Network, timeout or TLS failure talking to Shopee."""

    kind = "transport_error"
    status_code = 504


class DecodeError(ShopeeSyncError):
    """Shopee returned a body that is not a JSON object."""

    kind = "decode_error"
    status_code = 502


class ConfigNotFoundError(ShopeeSyncError):
    """No mapping configuration saved for the shop."""

    kind = "configuration_error"
    status_code = 404


class ConfigInvalidError(ShopeeSyncError):
    """Mapping configuration exists but cannot be parsed or used."""

    kind = "configuration_error"
    status_code = 500


class ValidationError(ShopeeSyncError):
    """Request is missing required fields or carries bad values."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(ShopeeSyncError):
    """Requested product or item does not exist."""

    kind = "not_found"
    status_code = 404


class StockSyncError(ShopeeSyncError):
    """Shopee's item data does not allow a stock update (no item, no locations)."""

    kind = "sync_error"
    status_code = 502

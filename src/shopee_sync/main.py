"""Shopee Stock Sync - Main Entry Point."""

import os

from shopee_sync.config.settings import settings
from shopee_sync.server.app import create_app

# Create FastAPI application
app = create_app()


def run() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    reload = os.getenv("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "shopee_sync.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=120,
        timeout_keep_alive=5,
        access_log=False,  # Disable uvicorn access log (we use structured logging)
    )


if __name__ == "__main__":
    run()

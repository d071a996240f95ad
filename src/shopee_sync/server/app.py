"""FastAPI application setup and configuration."""

from typing import Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from shopee_sync import __version__
from shopee_sync.config.settings import Settings, settings as default_settings
from shopee_sync.core.errors import ShopeeSyncError
from shopee_sync.core.logger import setup_logger
from shopee_sync.core.monitoring import init_monitoring
from shopee_sync.core.token_store import TokenStore
from shopee_sync.server.dependencies import build_services

logger = setup_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    token_store: Optional[TokenStore] = None,
    http_client: Optional[httpx.Client] = None,
    engine: Optional[Engine] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title="Shopee Stock Sync",
        version=__version__,
        description="Authorizes Shopee shops and pushes local product stock to Shopee",
    )

    init_monitoring(settings.glitchtip_dsn, settings.environment)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = build_services(
        settings,
        token_store=token_store,
        http_client=http_client,
        engine=engine,
        sleep=sleep,
    )

    @app.exception_handler(ShopeeSyncError)
    async def shopee_sync_error_handler(request: Request, exc: ShopeeSyncError) -> JSONResponse:
        """Translate service errors into {error, message} responses."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(f"{request.method} {request.url.path} failed ({exc.kind}): {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        logger.warning(f"{request.method} {request.url.path} invalid request: {errors}")
        return JSONResponse(
            status_code=400,
            content={"error": "validation_error", "message": errors},
        )

    # Import and include routers
    from shopee_sync.server import routes, sync_routes

    app.include_router(routes.router)
    app.include_router(sync_routes.router)

    @app.on_event("startup")
    def startup_handler():
        """Start the scheduled sync if configured."""
        scheduler = app.state.services.scheduler
        if scheduler:
            scheduler.start()
        logger.info("Application startup completed")

    @app.on_event("shutdown")
    def shutdown_handler():
        """Stop the scheduler and release HTTP and database connections."""
        logger.info("Starting graceful shutdown...")
        try:
            app.state.services.close()
            logger.info("Graceful shutdown completed successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

    return app

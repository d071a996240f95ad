"""HTTP server - FastAPI application and routers."""

"""
Catalog Sync - FastAPI Application Entry Point

Keeps HubSpot products in step with the Shopify catalog: on-demand sync
runs streamed over SSE, plus Shopify product webhooks.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_sync.api.endpoints import health, sync, webhooks
from catalog_sync.core.config import get_settings
from catalog_sync.db.base import Base
from catalog_sync.db.session import get_async_engine
from catalog_sync.services.provider_factory import close_providers

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def init_database():
    """Initialize database tables."""
    # Import all models to ensure they're registered with Base
    from catalog_sync.models import sync_history  # noqa: F401

    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs startup and shutdown logic.
    """
    # Startup
    logger.info("🚀 Starting Catalog Sync...")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"Debug Mode: {settings.app_debug}")
    logger.info(f"Sync concurrency: {settings.sync_concurrency}")

    try:
        await init_database()
        logger.info("✅ Database tables initialized")
    except Exception as e:
        # Sync runs still work; only history persistence is affected
        logger.error(f"❌ Database initialization failed: {e}", exc_info=True)

    logger.info("✅ Startup complete! Ready to accept requests.")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("👋 Shutting down Catalog Sync...")
    await close_providers()
    await get_async_engine().dispose()
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="Catalog Sync",
    description="Shopify → HubSpot product catalog synchronization",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, tags=["Health"])
app.include_router(sync.router, prefix="/api/v1", tags=["Sync"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "Catalog Sync",
        "version": "0.1.0",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog_sync.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
    )

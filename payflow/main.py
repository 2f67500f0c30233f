"""payflow API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery); the resource proxy last
    - Global error handlers map PaymentError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Pipeline, resource store, and cache lifecycle built once in the lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - A failed cache install is not fatal: the interceptor passes requests
      through to the origin while a background task retries the install
      every cache_install_retry_seconds
    - Shutdown cleanup runs in finally: clients and engine close even if
      draining write-backs or cancelling the retry fails
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from payflow.api.error_handlers import register_error_handlers
from payflow.api.routes import health, payments, resources
from payflow.config import get_settings
from payflow.infrastructure.connectivity import ConnectivityMonitor
from payflow.infrastructure.database import init_db
from payflow.infrastructure.observability import setup_logging
from payflow.infrastructure.origin_client import OriginClient
from payflow.infrastructure.resource_store import CacheStorage
from payflow.services.fetch_interceptor import CacheFirstInterceptor
from payflow.services.payment_pipeline import build_pipeline
from payflow.services.resource_cache_manager import ResourceCacheManager

logger = logging.getLogger(__name__)


async def retry_cache_install(manager: ResourceCacheManager, retry_seconds: float) -> int:
    """Drive start() again every `retry_seconds` until the manager controls clients.

    Returns the number of retries it took.
    """
    attempts = 0
    while not manager.controlling:
        await asyncio.sleep(retry_seconds)
        attempts += 1
        await manager.start()
    return attempts


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await db.create_schema()

    http_client = httpx.AsyncClient(timeout=settings.origin_timeout_seconds)
    monitor = ConnectivityMonitor(
        online=settings.assume_online,
        probe_url=settings.connectivity_probe_url,
        client=http_client,
        timeout_seconds=settings.connectivity_timeout_seconds,
    )
    await monitor.refresh()
    origin = OriginClient(http_client, settings.origin_url)
    manager = ResourceCacheManager(
        CacheStorage(db), origin, settings.cache_version, settings.cache_manifest,
    )

    app.state.connectivity = monitor
    app.state.pipeline = build_pipeline(settings, monitor)
    app.state.cache_manager = manager
    app.state.interceptor = CacheFirstInterceptor(manager, origin)

    installer: asyncio.Task | None = None
    if not await manager.start():
        installer = asyncio.create_task(
            retry_cache_install(manager, settings.cache_install_retry_seconds),
        )
    logger.info("payflow API started")
    try:
        yield
    finally:
        logger.info("payflow API shutting down")
        try:
            if installer is not None:
                installer.cancel()
                await asyncio.gather(installer, return_exceptions=True)
            await app.state.interceptor.drain()
        finally:
            await http_client.aclose()
            await db.dispose()


app = FastAPI(title="payflow API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Explicit registration; the catch-all resource proxy must stay last
app.include_router(health.router)
app.include_router(payments.router)
app.include_router(resources.router)

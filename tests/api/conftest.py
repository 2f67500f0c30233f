"""API test fixtures — FastAPI app with lifespan components built from test fixtures.

Invariants:
    - app.state holds the same component types the lifespan builds
    - State restored after each test

Design Decisions:
    - ASGITransport does not run the lifespan: components are injected directly,
      so no test needs the real origin or database URL
"""

import pytest
from httpx import ASGITransport, AsyncClient

import payflow.infrastructure.database as db_module
from payflow.main import app
from payflow.services.fetch_interceptor import CacheFirstInterceptor
from payflow.services.resource_cache_manager import ResourceCacheManager


@pytest.fixture
async def cache_manager(storage, origin_client):
    return ResourceCacheManager(
        storage, origin_client, "v1", ["./", "./index.html", "./css/style.css", "./js/app.js"],
    )


@pytest.fixture
async def client(db, fast_pipeline, cache_manager, origin_client):
    interceptor = CacheFirstInterceptor(cache_manager, origin_client)
    app.state.pipeline = fast_pipeline
    app.state.cache_manager = cache_manager
    app.state.interceptor = interceptor
    original_manager = db_module.db_manager
    db_module.db_manager = db

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c

    await interceptor.drain()
    db_module.db_manager = original_manager
    for name in ("pipeline", "cache_manager", "interceptor"):
        delattr(app.state, name)

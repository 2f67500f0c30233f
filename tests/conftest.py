"""Root conftest — shared fixtures for store, origin, and stage wiring.

Invariants:
    - Every test gets a fresh file-backed SQLite store under tmp_path
    - The origin is an httpx.MockTransport: no test touches the network
    - Stage delays are a few milliseconds; orderings that matter are forced
      with distinct delays or asyncio.Event gates

Design Decisions:
    - File-backed SQLite over :memory:: concurrent sessions (write-back,
      parallel evictions) each get their own connection
    - Fakes live in tests/services/fakes.py; conftests only hold fixtures
"""

import os

import httpx
import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test_resource_cache.db")
os.environ.setdefault("LOG_FORMAT", "text")

from payflow.infrastructure.connectivity import ConnectivityMonitor  # noqa: E402
from payflow.infrastructure.database import DatabaseSessionManager  # noqa: E402
from payflow.infrastructure.origin_client import OriginClient  # noqa: E402
from payflow.infrastructure.resource_store import CacheStorage  # noqa: E402
from payflow.services.payment_pipeline import PaymentPipeline  # noqa: E402
from payflow.services.post_task_stage import PostTaskStage, PostTaskTimings  # noqa: E402
from payflow.services.processing_stage import ProcessingStage  # noqa: E402
from payflow.services.validation_stage import ValidationStage  # noqa: E402

from tests.services.fakes import ORIGIN, FakeOrigin, FixedRandom  # noqa: E402


@pytest.fixture
async def db(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def storage(db):
    return CacheStorage(db)


@pytest.fixture
def fake_origin():
    origin = FakeOrigin()
    origin.add("/", b"<html>home</html>", headers={"content-type": "text/html"})
    origin.add("/index.html", b"<html>index</html>", headers={"content-type": "text/html"})
    origin.add("/css/style.css", b"body{}", headers={"content-type": "text/css"})
    origin.add("/js/app.js", b"console.log(1)", headers={"content-type": "text/javascript"})
    return origin


@pytest.fixture
async def origin_client(fake_origin):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_origin.handler))
    yield OriginClient(client, ORIGIN)
    await client.aclose()


@pytest.fixture
def monitor():
    return ConnectivityMonitor(online=True)


@pytest.fixture
def fast_pipeline(monitor):
    """Pipeline with millisecond timings and always-successful post-tasks."""
    return PaymentPipeline(
        validation=ValidationStage(monitor, delay_ms=1),
        processing=ProcessingStage(processing_delay_ms=5, deadline_ms=500),
        post_tasks=PostTaskStage(
            timings=PostTaskTimings(1, 1, 1, 1), rng=FixedRandom(0.0),
        ),
    )

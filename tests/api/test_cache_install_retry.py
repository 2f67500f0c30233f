"""Startup Install Retry — a failed startup install is driven again until it succeeds.

Invariants:
    - Requests pass through to the origin while retries are pending
    - Retries stop as soon as the manager controls clients
"""

import asyncio

from payflow.core.domain_types import WorkerState
from payflow.main import retry_cache_install
from payflow.services.resource_cache_manager import ResourceCacheManager

MANIFEST = ["./", "./index.html", "./css/style.css", "./js/app.js"]


async def test_retries_until_origin_recovers(storage, origin_client, fake_origin):
    fake_origin.unreachable.add("origin.test/js/app.js")
    manager = ResourceCacheManager(storage, origin_client, "v3", MANIFEST)
    assert await manager.start() is False

    retrying = asyncio.create_task(retry_cache_install(manager, 0.01))
    while fake_origin.calls_to("/js/app.js") < 3:
        await asyncio.sleep(0.005)
    assert manager.controlling is False

    fake_origin.unreachable.clear()
    attempts = await asyncio.wait_for(retrying, timeout=5)

    assert attempts >= 2
    assert manager.state is WorkerState.ACTIVATED
    stored = await (await storage.open("v3")).match("/js/app.js")
    assert stored.body == b"console.log(1)"


async def test_no_retry_once_controlling(storage, origin_client):
    manager = ResourceCacheManager(storage, origin_client, "v3", MANIFEST)
    await manager.start()
    assert await retry_cache_install(manager, 60) == 0

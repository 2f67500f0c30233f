"""Cache-First Fetch Interceptor — hits, misses, write-back, and pass-through.

Invariants:
    - Store hit: zero origin calls
    - Miss: exactly one origin call; 200 same-origin responses written back
    - Non-GET and pre-activation requests bypass the store entirely
    - Origin failures propagate; nothing stale is served
"""

import pytest

from tests.services.fakes import ORIGIN
from payflow.core.errors import DatabaseError, OriginFetchFailedError
from payflow.core.resources import ResourceRequest, StoredResponse
from payflow.services.fetch_interceptor import CacheFirstInterceptor
from payflow.services.resource_cache_manager import ResourceCacheManager


@pytest.fixture
async def manager(storage, origin_client):
    manager = ResourceCacheManager(
        storage, origin_client, "v1", ["./", "./index.html", "./css/style.css", "./js/app.js"],
    )
    await manager.start()
    return manager


@pytest.fixture
def interceptor(manager, origin_client):
    return CacheFirstInterceptor(manager, origin_client)


def _get(key: str) -> ResourceRequest:
    return ResourceRequest("GET", key)


async def test_manifest_resource_served_from_store(interceptor, fake_origin):
    fake_origin.calls.clear()
    response = await interceptor.handle(_get("/index.html"))
    assert response.body == b"<html>index</html>"
    assert fake_origin.calls == []


async def test_miss_fetches_once_and_writes_back(interceptor, manager, fake_origin):
    fake_origin.add("/img/logo.png", b"PNG", headers={"content-type": "image/png"})

    response = await interceptor.handle(_get("/img/logo.png"))
    await interceptor.drain()

    assert response.body == b"PNG"
    assert fake_origin.calls_to("/img/logo.png") == 1
    stored = await (await manager.active_store()).match("/img/logo.png")
    assert stored.body == b"PNG"
    assert stored.content_type == "image/png"


async def test_second_request_after_write_back_is_a_hit(interceptor, fake_origin):
    fake_origin.add("/data.json", b"{}")
    await interceptor.handle(_get("/data.json"))
    await interceptor.drain()
    await interceptor.handle(_get("/data.json"))
    assert fake_origin.calls_to("/data.json") == 1


async def test_query_string_is_part_of_the_key(interceptor, fake_origin):
    fake_origin.add("/app.js?v=2", b"v2")
    await interceptor.handle(_get("/app.js?v=2"))
    await interceptor.drain()
    assert await interceptor.handle(_get("/app.js?v=2")) is not None
    assert fake_origin.calls_to("/app.js?v=2") == 1


async def test_non_200_response_not_stored(interceptor, manager, fake_origin):
    response = await interceptor.handle(_get("/nope"))
    await interceptor.drain()
    assert response.status_code == 404
    assert await (await manager.active_store()).match("/nope") is None


async def test_cross_origin_redirect_not_stored(interceptor, manager, fake_origin):
    fake_origin.add("/cdn/lib.js", status=302, headers={"location": "http://cdn.test/lib.js"})
    fake_origin.add("/lib.js", b"lib", host="cdn.test")

    response = await interceptor.handle(_get("/cdn/lib.js"))
    await interceptor.drain()

    assert response.body == b"lib"
    assert interceptor.pending_writes == 0
    assert await (await manager.active_store()).match("/cdn/lib.js") is None


async def test_non_get_passes_through_without_store(interceptor, manager, fake_origin):
    fake_origin.routes["origin.test/index.html"] = (200, b"posted", {})
    response = await interceptor.handle(ResourceRequest("POST", "/index.html", body=b"x"))
    assert response.body == b"posted"
    assert fake_origin.calls[-1] == ("POST", "/index.html")
    assert (await (await manager.active_store()).match("/index.html")).body == b"<html>index</html>"


async def test_requests_before_activation_bypass_store(storage, origin_client, fake_origin):
    manager = ResourceCacheManager(storage, origin_client, "v1", ["./index.html"])
    interceptor = CacheFirstInterceptor(manager, origin_client)

    await interceptor.handle(_get("/index.html"))

    assert fake_origin.calls_to("/index.html") == 1
    assert interceptor.pending_writes == 0
    assert await storage.keys() == []


async def test_origin_failure_propagates(interceptor, fake_origin):
    fake_origin.unreachable.add("origin.test/offline.html")
    with pytest.raises(OriginFetchFailedError) as exc:
        await interceptor.handle(_get("/offline.html"))
    assert exc.value.url == f"{ORIGIN}/offline.html"


async def test_returned_copy_independent_of_stored_copy(interceptor, manager, fake_origin):
    fake_origin.add("/a.txt", b"A", headers={"set-cookie": "sid=1"})
    response = await interceptor.handle(_get("/a.txt"))
    await interceptor.drain()
    stored = await (await manager.active_store()).match("/a.txt")
    assert ("set-cookie", "sid=1") in response.headers
    assert all(name != "set-cookie" for name, _ in stored.headers)


async def test_write_back_failure_is_logged_not_raised(interceptor, manager, fake_origin, caplog):
    fake_origin.add("/late.css", b"late")

    async def broken_store():
        raise DatabaseError("database is locked", "commit")

    response = await interceptor.handle(_get("/late.css"))
    manager.active_store = broken_store
    with caplog.at_level("WARNING"):
        await interceptor.drain()
    assert response.body == b"late"
    assert any("write-back failed" in r.getMessage() for r in caplog.records)


async def test_stored_response_type(interceptor):
    assert isinstance(await interceptor.handle(_get("/")), StoredResponse)


async def test_drain_survives_crashed_write_back(interceptor, manager, fake_origin, caplog):
    fake_origin.add("/crash.css", b"x")

    async def crashing_store():
        raise RuntimeError("store handle lost")

    await interceptor.handle(_get("/crash.css"))
    manager.active_store = crashing_store
    with caplog.at_level("ERROR"):
        await interceptor.drain()

    assert interceptor.pending_writes == 0
    assert any("write-back crashed" in r.getMessage() for r in caplog.records)

"""Resource Proxy API — catch-all route through the cache-first interceptor."""

from tests.services.fakes import ORIGIN


async def test_get_served_from_store_after_activation(client, cache_manager, fake_origin):
    await cache_manager.start()
    fake_origin.calls.clear()

    res = await client.get("/css/style.css")

    assert res.status_code == 200
    assert res.content == b"body{}"
    assert res.headers["content-type"] == "text/css"
    assert fake_origin.calls == []


async def test_root_path_maps_to_manifest_root(client, cache_manager, fake_origin):
    await cache_manager.start()
    fake_origin.calls.clear()
    res = await client.get("/")
    assert res.content == b"<html>home</html>"
    assert fake_origin.calls == []


async def test_post_passes_through(client, cache_manager, fake_origin):
    await cache_manager.start()
    fake_origin.add("/submit", b"accepted", status=202)
    res = await client.post("/submit", content=b"payload")
    assert res.status_code == 202
    assert ("POST", "/submit") in fake_origin.calls


async def test_origin_down_returns_502(client, cache_manager, fake_origin):
    await cache_manager.start()
    fake_origin.unreachable.add("origin.test/news.html")
    res = await client.get("/news.html")
    assert res.status_code == 502
    assert res.json()["error"]["code"] == "ORIGIN_FETCH_FAILED"
    assert f"{ORIGIN}/news.html" in res.json()["error"]["message"]


async def test_before_activation_requests_go_to_origin(client, fake_origin):
    res = await client.get("/index.html")
    assert res.content == b"<html>index</html>"
    assert fake_origin.calls_to("/index.html") == 1

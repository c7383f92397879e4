"""Lifecycle tests: a real listener on an ephemeral port."""
import asyncio
import socket

import httpx
import pytest

from apps.blog import server as blog_server
from apps.shared.database import DocumentStore


async def test_start_serves_requests_until_stopped(database_url):
    running = await blog_server.start(database_url, port=0, host="127.0.0.1")
    try:
        assert running.port != 0
        assert running.store.connected

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{running.port}") as client:
            created = await client.post(
                "/blog-posts",
                json={"title": "A", "content": "B", "author": {"firstName": "J", "lastName": "Doe"}},
            )
            listing = await client.get("/blog-posts")
    finally:
        await blog_server.stop(running)

    assert created.status_code == 201
    assert listing.json()["blogposts"] == [created.json()]
    assert not running.store.connected
    assert running.task.done()

    with pytest.raises(httpx.ConnectError):
        async with httpx.AsyncClient() as client:
            await client.get(f"http://127.0.0.1:{running.port}/blog-posts")


async def test_bind_failure_disconnects_store(database_url, monkeypatch):
    stores = []

    class RecordingStore(DocumentStore):
        def __init__(self, url):
            super().__init__(url)
            stores.append(self)

    monkeypatch.setattr(blog_server, "DocumentStore", RecordingStore)

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]

        with pytest.raises(OSError):
            await blog_server.start(database_url, port=port, host="127.0.0.1")

    assert len(stores) == 1
    assert not stores[0].connected


async def test_stop_is_safe_after_store_already_disconnected(database_url):
    running = await blog_server.start(database_url, port=0, host="127.0.0.1")

    await running.store.disconnect()
    await blog_server.stop(running)

    assert running.task.done()


def test_bind_socket_rejects_port_in_use():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]

        with pytest.raises(OSError):
            blog_server.bind_socket("127.0.0.1", port)


@pytest.fixture
def recorded(monkeypatch):
    """Capture the store and socket that start() acquires."""
    acquired = {"stores": [], "sockets": []}

    class RecordingStore(DocumentStore):
        def __init__(self, url):
            super().__init__(url)
            acquired["stores"].append(self)

    def recording_bind(host, port):
        sock = real_bind(host, port)
        acquired["sockets"].append(sock)
        return sock

    real_bind = blog_server.bind_socket
    monkeypatch.setattr(blog_server, "DocumentStore", RecordingStore)
    monkeypatch.setattr(blog_server, "bind_socket", recording_bind)
    return acquired


async def test_cancelled_start_releases_store_and_socket(database_url, recorded, monkeypatch):
    async def never_ready(self, sockets=None):
        await asyncio.Event().wait()

    monkeypatch.setattr(blog_server.uvicorn.Server, "serve", never_ready)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(
            blog_server.start(database_url, port=0, host="127.0.0.1"),
            timeout=0.5,
        )

    assert not recorded["stores"][0].connected
    assert recorded["sockets"][0].fileno() == -1


async def test_failed_app_setup_releases_store_and_socket(database_url, recorded, monkeypatch):
    def broken_create_app(store):
        raise RuntimeError("bad configuration")

    monkeypatch.setattr(blog_server, "create_app", broken_create_app)

    with pytest.raises(RuntimeError, match="bad configuration"):
        await blog_server.start(database_url, port=0, host="127.0.0.1")

    assert not recorded["stores"][0].connected
    assert recorded["sockets"][0].fileno() == -1


async def test_stop_reraises_listener_error_and_disconnects(database_url, recorded, monkeypatch):
    async def fails_on_close(self, sockets=None):
        self.started = True
        while not self.should_exit:
            await asyncio.sleep(0.01)
        raise RuntimeError("listener failed to close")

    monkeypatch.setattr(blog_server.uvicorn.Server, "serve", fails_on_close)

    running = await blog_server.start(database_url, port=0, host="127.0.0.1")
    try:
        with pytest.raises(RuntimeError, match="listener failed to close"):
            await blog_server.stop(running)
    finally:
        recorded["sockets"][0].close()

    assert not running.store.connected
    assert running.task.done()

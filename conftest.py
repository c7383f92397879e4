"""Shared fixtures: a throwaway SQLite store and an HTTP client bound to the app."""
import httpx
import pytest
import pytest_asyncio

from apps.blog.main import create_app
from apps.shared.database import DocumentStore


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    store = DocumentStore(database_url)
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
def app(store, tmp_path):
    public_dir = tmp_path / "public"
    public_dir.mkdir()
    (public_dir / "index.html").write_text("<h1>Blog</h1>")
    return create_app(store, public_dir=str(public_dir))


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def new_post():
    return {
        "title": "Hello",
        "content": "First post",
        "author": {"firstName": "Jane", "lastName": "Doe"},
    }

import pytest
from httpx import ASGITransport, AsyncClient

from fileservice import api
from fileservice.api.common import get_link_cache, get_store
from fileservice.objectstorage.linkcache import LinkCache
from fileservice.objectstorage.s3bucket import ObjectStore
from tests.tools import TEST_BUCKET, FakeClock, FakeS3Client


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
def s3_client():
    return FakeS3Client()


@pytest.fixture(scope="function")
def store(s3_client) -> ObjectStore:
    return ObjectStore(s3_client, TEST_BUCKET)


@pytest.fixture(scope="function")
def clock():
    return FakeClock()


@pytest.fixture(scope="function")
def cache(clock) -> LinkCache:
    return LinkCache(max_entries=100, clock=clock)


@pytest.fixture(scope="function")
def docs(s3_client):
    """A small tree: docs/ with a file, an empty subfolder and a nested folder with files"""
    s3_client.add("docs/")
    s3_client.add("docs/a.txt", b"hello")
    s3_client.add("docs/sub/")
    s3_client.add("docs/nested/")
    s3_client.add("docs/nested/b.txt", b"b")
    s3_client.add("docs/nested/deeper/")
    s3_client.add("docs/nested/deeper/c.txt", b"cc")
    s3_client.add("other/d.txt", b"ddd")
    return "docs/"


@pytest.fixture(scope="function")
def app():
    return api.app


@pytest.fixture(scope="function")
async def client(app, store, cache):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_link_cache] = lambda: cache
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()

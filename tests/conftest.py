"""Pytest configuration.

Settings are read from the environment when ``cmscore`` is first imported, so
test defaults are set before any application import. MongoDB is replaced by an
in-memory mongomock-motor client for every test.
"""

import os

os.environ.setdefault("MONGODB_DATABASE", "cms_test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("COPY_CONCURRENCY", "2")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from cmscore.core.cache import cache_service
from cmscore.core.mongodb import mongodb
from cmscore.main import app
from cmscore.services.content_registry import content_registry

USER_ID = "65f1c0a2e4b0a1b2c3d4e5f0"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database per test."""
    await mongodb.connect(client=AsyncMongoMockClient())
    cache_service.clear()

    yield mongodb.database

    cache_service.clear()
    mongodb.client = None
    mongodb.database = None


@pytest.fixture
def page_service():
    return content_registry.get("page")


@pytest.fixture
def block_service():
    return content_registry.get("block")


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client calling the app in-process as ``USER_ID``."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": USER_ID},
    ) as ac:
        yield ac

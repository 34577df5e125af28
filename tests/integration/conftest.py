"""
MongoDB testcontainer fixtures for integration tests.

The container is started once per session; tests are skipped when Docker
is not reachable.
"""

import uuid

import pytest
import pytest_asyncio
from pymongo import AsyncMongoClient
from testcontainers.mongodb import MongoDbContainer

MONGO_IMAGE = "mongo:7.0"


@pytest.fixture(scope="session")
def mongo_url():
    """Start a MongoDB container and yield its connection URL."""
    container = MongoDbContainer(MONGO_IMAGE)
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")

    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest.fixture
def database_name() -> str:
    return f"marketplace_test_{uuid.uuid4().hex[:8]}"


@pytest_asyncio.fixture
async def mongo_db(mongo_url, database_name):
    """Fresh database per test, dropped afterwards."""
    client = AsyncMongoClient(mongo_url, tz_aware=True)
    try:
        yield client[database_name]
    finally:
        await client.drop_database(database_name)
        await client.close()

"""Pytest configuration and shared fixtures for backend tests."""
import pytest
import pytest_asyncio
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from notekeeper.storage import LocalStorage, BridgeStorage
from tests.test_utils import LoopbackBridge, make_settings


@pytest.fixture
def settings():
    """Settings with no cloud credentials and no desktop host."""
    return make_settings()


@pytest.fixture
def local_storage():
    """In-memory local embedded store."""
    return LocalStorage()


@pytest_asyncio.fixture
async def bridge_storage():
    """Desktop storage talking to an in-process host over an in-memory database."""
    storage = BridgeStorage(LoopbackBridge())
    yield storage
    await storage.close()


@pytest_asyncio.fixture(params=["local", "desktop"])
async def storage(request):
    """Each backend that can run without external services."""
    if request.param == "local":
        yield LocalStorage()
    else:
        backend = BridgeStorage(LoopbackBridge())
        yield backend
        await backend.close()


@pytest_asyncio.fixture
async def notebook(storage):
    """A "Work" notebook in the parametrized backend."""
    return await storage.create_notebook("Work")

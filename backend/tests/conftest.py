"""Shared pytest fixtures for category tree tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from cattree.commands.dispatcher import CommandDispatcher
from cattree.commands.router import get_dispatcher
from cattree.db.connection import Database
from cattree.events.projector import StateProjector
from cattree.events.store import EventStore
from cattree.export.router import get_export_service
from cattree.export.service import ExportService
from cattree.importer.router import get_import_service
from cattree.importer.service import ImportService
from cattree.main import app
from cattree.trees.renderer import TreeRenderer
from cattree.trees.router import get_tree_renderer, get_tree_service
from cattree.trees.service import TreeService
from cattree.trees.store import CategoryStore


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def event_store(db):
    """EventStore backed by in-memory database."""
    return EventStore(db)


@pytest.fixture
async def projector(db):
    """StateProjector backed by in-memory database."""
    return StateProjector(db)


@pytest.fixture
async def category_store(db, event_store, projector):
    return CategoryStore(db, event_store, projector)


@pytest.fixture
async def tree_service(db, category_store):
    return TreeService(db, category_store)


@pytest.fixture
async def renderer(db, category_store):
    return TreeRenderer(db, category_store)


@pytest.fixture
async def export_service(db, category_store):
    return ExportService(db, category_store)


@pytest.fixture
async def import_service(db, category_store):
    return ImportService(db, category_store)


@pytest.fixture
async def dispatcher(tree_service, renderer, export_service, import_service):
    return CommandDispatcher(tree_service, renderer, export_service, import_service)


@pytest.fixture
async def client(tree_service, renderer, export_service, import_service, dispatcher):
    """Async test client with in-memory DB wired into the app."""
    app.dependency_overrides[get_tree_service] = lambda: tree_service
    app.dependency_overrides[get_tree_renderer] = lambda: renderer
    app.dependency_overrides[get_export_service] = lambda: export_service
    app.dependency_overrides[get_import_service] = lambda: import_service
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()

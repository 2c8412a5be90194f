"""Category tree FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cattree.commands.dispatcher import CommandDispatcher
from cattree.commands.router import get_dispatcher
from cattree.commands.router import router as commands_router
from cattree.db.connection import Database
from cattree.events.projector import StateProjector
from cattree.events.store import EventStore
from cattree.export.router import get_export_service
from cattree.export.router import router as export_router
from cattree.export.service import ExportService
from cattree.importer.router import get_import_service
from cattree.importer.router import router as import_router
from cattree.importer.service import ImportService
from cattree.trees.renderer import TreeRenderer
from cattree.trees.router import get_tree_renderer, get_tree_service
from cattree.trees.router import router as trees_router
from cattree.trees.service import TreeService
from cattree.trees.store import CategoryStore

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    # Load .env from backend/ directory
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

    db_path = os.environ.get("CATTREE_DB_PATH", "cattree.db")
    db = await Database.connect(db_path)
    logger.info("Opened category database at %s", db_path)

    # One store shared by every service
    category_store = CategoryStore(db, EventStore(db), StateProjector(db))

    tree_service = TreeService(db, category_store)
    app.dependency_overrides[get_tree_service] = lambda: tree_service

    renderer = TreeRenderer(db, category_store)
    app.dependency_overrides[get_tree_renderer] = lambda: renderer

    export_service = ExportService(db, category_store)
    app.dependency_overrides[get_export_service] = lambda: export_service

    import_service = ImportService(db, category_store)
    app.dependency_overrides[get_import_service] = lambda: import_service

    dispatcher = CommandDispatcher(tree_service, renderer, export_service, import_service)
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    app.state.db = db
    yield

    await db.close()


def _cors_origins() -> list[str]:
    raw = os.environ.get("CATTREE_CORS_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(
    title="Category Tree",
    description="Per-chat category trees with outline view and table import/export",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(trees_router)
app.include_router(export_router)
app.include_router(import_router)
app.include_router(commands_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}

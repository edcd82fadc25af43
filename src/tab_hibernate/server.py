"""FastAPI web server for tab-hibernate."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException

from .backends import get_host
from .config import get_storage_path, scheduler_enabled
from .errors import CommandError, InvalidImportError
from .service import Hibernator
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

# Hibernator cache (populated on first request)
_hibernator: Hibernator | None = None


def _get_hibernator() -> Hibernator:
    """Lazily build and cache the process's Hibernator."""
    global _hibernator
    if _hibernator is None:
        host = get_host()
        store = KeyValueStore(get_storage_path())
        _hibernator = Hibernator(host, store)
        logger.info("Using host '%s' with store %s", host.name, store.path)
    return _hibernator


@asynccontextmanager
async def lifespan(app: FastAPI):
    hibernator = _get_hibernator()
    if scheduler_enabled():
        await hibernator.start()
    yield
    await hibernator.stop()


app = FastAPI(title="tab-hibernate", version="0.1.0", lifespan=lifespan)


async def _dispatch(payload: Any) -> dict:
    try:
        return await _get_hibernator().handle(payload)
    except (CommandError, InvalidImportError) as e:
        raise HTTPException(status_code=400, detail=e.message)


# ── Routes ───────────────────────────────────────────────────────


@app.post("/api/messages")
async def post_message(payload: Any = Body(...)):
    """Handle one request from a UI collaborator."""
    return await _dispatch(payload)


@app.get("/api/status")
async def get_status():
    """Counters for the popup."""
    return await _dispatch({"type": "get-status"})


@app.get("/api/constants")
async def get_constants():
    """Limits and periods the UI displays."""
    return await _dispatch({"type": "get-constants"})


@app.get("/api/history/export")
async def export_history():
    """Export the saved list and backups as JSON."""
    return await _dispatch({"type": "export-history"})


@app.post("/api/history/import")
async def import_history(data: Any = Body(...)):
    """Merge an exported history file into storage."""
    return await _dispatch({"type": "import-history", "data": data})

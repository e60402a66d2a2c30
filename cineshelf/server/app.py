"""
Snapshot server - FastAPI application.

Routes:
    POST /backup            store a snapshot for ``user``
    GET  /restore           fetch a snapshot (``?user=...&file=...``)
    POST /restore           same, with ``{"user", "file"}`` in the body
    GET  /backups           list stored snapshots
    GET  /health            liveness probe

Errors are JSON bodies ``{"error": ...}`` with 400 (bad user or payload),
404 (no snapshot; includes ``availableBackups`` when searching) or 500
(storage failure).

Serve the configured app with any ASGI server that accepts an app
factory, e.g. ``uvicorn --factory cineshelf.server.app:default_app``.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from cineshelf.core.config import load_config
from cineshelf.core.exceptions import DatabaseError, SnapshotNotFoundError, ValidationError
from cineshelf.core.logging_manager import ShelfLogger, safe_logger
from cineshelf.core.validators import sanitize_identifier
from cineshelf.server.repository import SnapshotRepository

router = APIRouter()


def _repository(request: Request) -> SnapshotRepository:
    return request.app.state.repository


async def _json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is not JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"error": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "ok"}


@router.post("/backup")
async def backup(request: Request):
    """Store the posted snapshot under its sanitized ``user``."""
    payload = await _json_body(request)
    if not isinstance(payload, dict):
        return _error(400, "Invalid JSON data")
    user = sanitize_identifier(payload.get("user"))
    if not user:
        return _error(400, "User parameter required")

    try:
        return _repository(request).put(user, payload)
    except ValidationError as e:
        return _error(400, f"Invalid backup data: {e}")
    except DatabaseError as e:
        safe_logger(request.app.state.logger).log_error(e, {"route": "backup", "user": user})
        return _error(500, "Failed to save backup")


def _restore(request: Request, user: Optional[str], file: Optional[str]):
    key = sanitize_identifier(user)
    if not key:
        return _error(400, "User parameter required")

    try:
        return _repository(request).get(key, exact_key=file or None)
    except SnapshotNotFoundError as e:
        if file:
            return _error(404, "Specified file not found", file=file)
        return _error(
            404,
            "No backup found for this user",
            user=key,
            availableBackups=[listing.to_payload() for listing in e.available],
            suggestion="Try using the file parameter to specify which backup to restore",
        )
    except DatabaseError as e:
        safe_logger(request.app.state.logger).log_error(e, {"route": "restore", "user": key})
        return _error(500, str(e))


@router.get("/restore")
async def restore(
    request: Request,
    user: Optional[str] = Query(None),
    file: Optional[str] = Query(None),
):
    """Return the best snapshot for ``user`` (or the forced ``file``)."""
    return _restore(request, user, file)


@router.post("/restore")
async def restore_post(request: Request):
    """Body variant of GET /restore."""
    payload = await _json_body(request)
    if not isinstance(payload, dict):
        return _error(400, "Invalid JSON data")
    user = payload.get("user")
    file = payload.get("file")
    return _restore(
        request,
        user if isinstance(user, str) else None,
        file if isinstance(file, str) else None,
    )


@router.get("/backups")
async def list_backups(request: Request):
    """Every stored snapshot, newest first."""
    return {
        "backups": [listing.to_payload() for listing in _repository(request).list_snapshots()]
    }


def create_app(
    storage_dir: Union[str, Path], logger: Optional[ShelfLogger] = None
) -> FastAPI:
    """
    Build the snapshot server.

    Args:
        storage_dir: Directory for snapshot blobs
        logger: Optional logger for storage failures and served snapshots
    """
    app = FastAPI(title="CineShelf Snapshot Server")
    app.state.repository = SnapshotRepository(storage_dir, logger)
    app.state.logger = logger
    app.include_router(router)
    return app


def default_app() -> FastAPI:
    """
    App for the configured storage directory, logging under ``log_dir``.

    Reads the config file when called, not at import.
    """
    config = load_config()
    logger = ShelfLogger(Path(config.log_dir) / "server", component_name="server")
    return create_app(config.storage_dir, logger)

#!/usr/bin/env python3
"""
client.py
-------------------
HTTP client for the snapshot server.

One request per call, against one endpoint base URL, bounded by a
timeout. Transport failures (connection errors, timeouts) propagate as
``httpx`` exceptions; any HTTP answer, error statuses included, is
returned as an EndpointResponse so the caller can read error bodies such
as the available-backups listing.

Usage:
    client = SnapshotClient(timeout=5.0)
    response = await client.post_backup("http://localhost:8000", payload)
    response = await client.fetch_snapshot("http://localhost:8000", "alice")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from typing import Any, Dict, Optional

# --- Third party imports ---
import httpx

# --- Local imports ---
from cineshelf.core.config import DEFAULT_TIMEOUT_SECONDS
from cineshelf.core.logging_manager import ShelfLogger, safe_logger

BACKUP_PATH = "/backup"
RESTORE_PATH = "/restore"


@dataclass
class EndpointResponse:
    """
    An HTTP answer from one endpoint.

    Attributes:
        endpoint: Base URL that answered
        status_code: HTTP status
        body: Parsed JSON body, or None if the body was not JSON
    """

    endpoint: str
    status_code: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def error_message(self, default: str) -> str:
        """Server-supplied error text, or default."""
        if isinstance(self.body, dict):
            message = self.body.get("error") or self.body.get("message")
            if isinstance(message, str) and message:
                return message
        if self.body is None:
            return f"{default} (response was not JSON)"
        return default


class SnapshotClient:
    """
    Thin async wrapper over httpx for the backup and restore routes.

    Attributes:
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use ASGITransport or
            MockTransport)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[ShelfLogger] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.logger = logger

    async def post_backup(
        self, endpoint: str, payload: Dict[str, Any]
    ) -> EndpointResponse:
        """POST a snapshot payload to ``<endpoint>/backup``."""
        return await self._request("POST", endpoint, BACKUP_PATH, json=payload)

    async def fetch_snapshot(
        self, endpoint: str, user: str, file: Optional[str] = None
    ) -> EndpointResponse:
        """GET ``<endpoint>/restore?user=...[&file=...]``."""
        params = {"user": user}
        if file:
            params["file"] = file
        return await self._request("GET", endpoint, RESTORE_PATH, params=params)

    async def _request(
        self, method: str, endpoint: str, path: str, **kwargs: Any
    ) -> EndpointResponse:
        base_url = endpoint.rstrip("/")
        safe_logger(self.logger).log_debug(
            "sync_request", {"method": method, "url": f"{base_url}{path}"}
        )

        async with httpx.AsyncClient(
            base_url=base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.request(method, path, **kwargs)

        try:
            body = response.json()
        except ValueError:
            body = None

        safe_logger(self.logger).log_debug(
            "sync_response",
            {"url": f"{base_url}{path}", "status_code": response.status_code},
        )
        return EndpointResponse(endpoint=endpoint, status_code=response.status_code, body=body)

#!/usr/bin/env python3
"""
resolve.py
-------------------
Resolve workflow: walks the unresolved copies of a catalog one at a time
and links each to a title.

States:
    IDLE        nothing selected
    RESOLVING   one unresolved copy selected, with a working form
                pre-filled from its fields

A skip-set (ordered, no duplicates) records copies the user passed over;
advancing picks the earliest unresolved copy, in queue order, that is not
in the skip-set, or returns to IDLE. A resolved copy is never selected.

Usage:
    workflow = ResolveWorkflow(store, logger)
    workflow.start(copy.copy_id)
    workflow.resolve({"externalId": "tt1160419", "name": "Dune"})
    workflow.skip()
    workflow.resolve_with(lookup)   # lookup(query) -> title record or None
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

# --- Local imports ---
from cineshelf.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from cineshelf.core.logging_manager import ShelfLogger, safe_logger

if TYPE_CHECKING:
    from cineshelf.database.catalog_store import CatalogStore
    from cineshelf.database.models import Copy, Title

FORM_FIELDS = (
    "title",
    "format",
    "region",
    "edition",
    "languages",
    "notes",
    "upc",
    "disc_count",
    "is_wishlist",
)

TitleLookup = Callable[[str], Any]


class WorkflowState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"


class ResolveWorkflow:
    """
    State machine over the unresolved queue of one CatalogStore.

    Attributes:
        store: Catalog being resolved
        state: Current WorkflowState
        current_copy_id: Selected copy while RESOLVING, else None
    """

    def __init__(self, store: "CatalogStore", logger: Optional[ShelfLogger] = None):
        self.store = store
        self.logger = logger
        self.state = WorkflowState.IDLE
        self.current_copy_id: Optional[str] = None
        self._form: Dict[str, Any] = {}
        self._skipped: List[str] = []

    # ---- Introspection ----
    @property
    def is_idle(self) -> bool:
        return self.state is WorkflowState.IDLE

    @property
    def skipped(self) -> Tuple[str, ...]:
        """Skipped copy ids in the order they were skipped."""
        return tuple(self._skipped)

    @property
    def form(self) -> Dict[str, Any]:
        """Copy of the working form (empty while IDLE)."""
        return dict(self._form)

    def _require_resolving(self, operation: str) -> str:
        if self.state is not WorkflowState.RESOLVING or self.current_copy_id is None:
            raise InvalidStateError(f"Cannot {operation}: no copy is being resolved")
        return self.current_copy_id

    # ---- Transitions ----
    def start(self, copy_id: str) -> "Copy":
        """
        Select a copy for resolving (replaces any current selection).

        Raises:
            NotFoundError: If the copy does not exist
            InvalidStateError: If the copy is already resolved
        """
        copy = self.store.get_copy(copy_id)
        if copy.resolved:
            raise InvalidStateError(f"Copy is already resolved: {copy_id}")
        self._select(copy)
        return copy

    def resolve(self, title: Any) -> "Title":
        """
        Link the current copy to a title and advance.

        Args:
            title: TitleRecord or mapping; stored with add_or_update_title

        Returns:
            The stored Title

        Raises:
            InvalidStateError: While IDLE (nothing is stored)
            ValidationError: If the title lacks an external id or name
        """
        copy_id = self._require_resolving("resolve")
        self.store.get_copy(copy_id)

        stored = self.store.add_or_update_title(title)
        self.store.update_copy(copy_id, {"title_ref": stored.external_id})

        safe_logger(self.logger).log_operation(
            "copy_resolved",
            {
                "profile": self.store.profile_name,
                "copy_id": copy_id,
                "external_id": stored.external_id,
            },
        )
        self._advance()
        return stored

    def resolve_with(self, lookup: TitleLookup, query: Optional[str] = None) -> "Title":
        """
        Resolve the current copy with the result of a metadata lookup.

        Args:
            lookup: Callable taking a query string and returning a title
                record (TitleRecord or mapping), or None when nothing matched
            query: Search text; defaults to the form's title

        Raises:
            InvalidStateError: While IDLE
            NotFoundError: If the lookup returns None (state unchanged)
        """
        self._require_resolving("resolve")
        search = (query or self._form.get("title") or "").strip()
        if not search:
            raise ValidationError("Nothing to search for")

        result = lookup(search)
        if result is None:
            raise NotFoundError(f"No title found for: '{search}'")
        return self.resolve(result)

    def skip(self) -> Optional[str]:
        """
        Pass over the current copy and advance.

        Returns:
            The next selected copy id, or None when IDLE

        Raises:
            InvalidStateError: While IDLE
        """
        copy_id = self._require_resolving("skip")
        if copy_id not in self._skipped:
            self._skipped.append(copy_id)
        self._advance()
        return self.current_copy_id

    def delete_current(self) -> Optional[str]:
        """
        Delete the current copy from the catalog and advance.

        Returns:
            The next selected copy id, or None when IDLE

        Raises:
            InvalidStateError: While IDLE
        """
        copy_id = self._require_resolving("delete")
        self.store.delete_copy(copy_id)
        if copy_id in self._skipped:
            self._skipped.remove(copy_id)
        self._advance()
        return self.current_copy_id

    def reset(self) -> None:
        """Return to IDLE and forget skipped copies."""
        self.state = WorkflowState.IDLE
        self.current_copy_id = None
        self._form = {}
        self._skipped = []

    # ---- Working form ----
    def update_form(self, **fields: Any) -> Dict[str, Any]:
        """
        Edit the working form.

        Raises:
            InvalidStateError: While IDLE
            ValidationError: On fields the form does not have
        """
        self._require_resolving("edit the form")
        unknown = sorted(set(fields) - set(FORM_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown form fields: {', '.join(unknown)}")
        self._form.update(fields)
        return self.form

    def commit_form(self) -> "Copy":
        """
        Write the working form to the current copy.

        Raises:
            InvalidStateError: While IDLE
            ValidationError: If the form holds invalid values
        """
        copy_id = self._require_resolving("save the form")
        return self.store.update_copy(copy_id, self._form)

    # ---- Queue ----
    def progress(self) -> Dict[str, int]:
        """
        Position in the unresolved queue.

        Returns:
            Dictionary with ``position`` (1-based, 0 while IDLE), ``total``
            unresolved copies, ``skipped`` and ``remaining`` (unresolved and
            not skipped) counts
        """
        queue = [copy.copy_id for copy in self.store.unresolved_copies()]
        skipped = [copy_id for copy_id in queue if copy_id in self._skipped]
        position = 0
        if self.current_copy_id in queue:
            position = queue.index(self.current_copy_id) + 1
        return {
            "position": position,
            "total": len(queue),
            "skipped": len(skipped),
            "remaining": len(queue) - len(skipped),
        }

    def _select(self, copy: "Copy") -> None:
        self.state = WorkflowState.RESOLVING
        self.current_copy_id = copy.copy_id
        self._form = {name: getattr(copy, name) for name in FORM_FIELDS}

    def _advance(self) -> None:
        for copy in self.store.unresolved_copies():
            if copy.copy_id not in self._skipped:
                self._select(copy)
                return
        self.state = WorkflowState.IDLE
        self.current_copy_id = None
        self._form = {}

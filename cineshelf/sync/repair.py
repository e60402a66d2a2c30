#!/usr/bin/env python3
"""
repair.py
-------------------
Repair pass applied to a fetched snapshot before it replaces a catalog.

Snapshots written by older clients, or edited by hand, can break the
catalog's invariants. ``repair_snapshot`` fixes them in place on a
snapshot the caller owns (a clone of the fetched one) and counts every
fix:

Copies:
    - missing id                 -> generated
    - duplicate id               -> regenerated
    - missing/invalid createdAt  -> now
    - missing title              -> "Unknown Title"
    - title over 200 characters  -> truncated
    - missing/out-of-range discs -> 1
    - resolved not given         -> bool(titleRef)
    - titleRef naming no title   -> cleared, unresolved
    - resolved disagreeing with a valid link -> corrected

Titles:
    - missing externalId         -> "unknown_<index>"
    - missing name               -> "Unknown Title"
    - duplicate externalId       -> last one wins

Custom editions:
    - invalid names, default editions and case-insensitive
      duplicates -> dropped
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

# --- Local imports ---
from cineshelf.core.validators import (
    MAX_DISC_COUNT,
    MAX_EDITION_LENGTH,
    MAX_TITLE_LENGTH,
    MIN_DISC_COUNT,
    utc_now,
)
from cineshelf.database.managers import DEFAULT_EDITIONS, generate_copy_id
from .snapshot import Snapshot, TitleRecord

UNKNOWN_TITLE = "Unknown Title"


@dataclass
class RepairReport:
    """
    Outcome of a repair pass.

    Attributes:
        fixed: Total number of fixes
        details: One line per fix, e.g. ``copy[3]: dangling titleRef 'tt1'``
    """

    fixed: int = 0
    details: List[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        self.fixed += 1
        self.details.append(message)


def _repair_titles(snapshot: Snapshot, report: RepairReport) -> None:
    by_id: Dict[str, TitleRecord] = {}
    for index, title in enumerate(snapshot.titles):
        if not title.external_id:
            title.external_id = f"unknown_{index}"
            report.add(f"title[{index}]: missing externalId, set to '{title.external_id}'")
        if not title.name:
            title.name = UNKNOWN_TITLE
            report.add(f"title[{index}]: missing name")
        if title.external_id in by_id:
            report.add(f"title[{index}]: duplicate externalId '{title.external_id}'")
            del by_id[title.external_id]
        by_id[title.external_id] = title
    snapshot.titles = list(by_id.values())


def _repair_copies(snapshot: Snapshot, report: RepairReport, now: datetime) -> None:
    known = {title.external_id for title in snapshot.titles}
    seen_ids = set()

    for index, copy in enumerate(snapshot.copies):
        label = f"copy[{index}]"

        if not copy.id:
            copy.id = generate_copy_id()
            report.add(f"{label}: missing id")
        elif copy.id in seen_ids:
            old = copy.id
            copy.id = generate_copy_id()
            report.add(f"{label}: duplicate id '{old}'")
        seen_ids.add(copy.id)

        if copy.created_at is None:
            copy.created_at = now
            report.add(f"{label}: missing createdAt")

        if not copy.title:
            copy.title = UNKNOWN_TITLE
            report.add(f"{label}: missing title")
        elif len(copy.title) > MAX_TITLE_LENGTH:
            copy.title = copy.title[:MAX_TITLE_LENGTH].rstrip()
            report.add(f"{label}: title truncated")

        if copy.disc_count is None or not (
            MIN_DISC_COUNT <= copy.disc_count <= MAX_DISC_COUNT
        ):
            report.add(f"{label}: invalid disc count {copy.disc_count!r}")
            copy.disc_count = 1

        if copy.resolved is None:
            copy.resolved = bool(copy.title_ref)
            report.add(f"{label}: missing resolved flag")

        if copy.title_ref and copy.title_ref not in known:
            report.add(f"{label}: dangling titleRef '{copy.title_ref}'")
            copy.title_ref = None
            copy.resolved = False
        elif copy.resolved != bool(copy.title_ref):
            copy.resolved = bool(copy.title_ref)
            report.add(f"{label}: resolved flag corrected")


def _repair_editions(snapshot: Snapshot, report: RepairReport) -> None:
    kept: List[str] = []
    seen = {edition.lower() for edition in DEFAULT_EDITIONS}
    for raw in snapshot.custom_editions:
        name = raw.strip()
        if not name or len(name) > MAX_EDITION_LENGTH or name.lower() in seen:
            report.add(f"customEditions: dropped {raw!r}")
            continue
        seen.add(name.lower())
        kept.append(name)
    snapshot.custom_editions = kept


def repair_snapshot(snapshot: Snapshot, now: Optional[datetime] = None) -> RepairReport:
    """
    Repair a snapshot in place.

    Args:
        snapshot: Snapshot owned by the caller (clone fetched data first)
        now: Timestamp for missing creation times (default: current time)

    Returns:
        RepairReport with the number and description of fixes
    """
    report = RepairReport()
    _repair_titles(snapshot, report)
    _repair_copies(snapshot, report, now or utc_now())
    _repair_editions(snapshot, report)
    return report

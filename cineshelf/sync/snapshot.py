#!/usr/bin/env python3
"""
snapshot.py
-------------------
Value types for the snapshot wire format.

A Snapshot is the full exported state of one profile: copies, titles and
custom editions, plus a label, a timestamp and a format version tag. It
holds no references into the database; the store builds one with
``CatalogStore.export_records`` and replaces its contents from one with
``CatalogStore.replace_contents``.

Remote payloads are validated here, at the boundary. Parsing is lenient
about missing values (a copy without an id, a title without an external
id) because the restore repair pass fixes those, but strict about shape:
a payload that is not a mapping, lacks the copy or title lists, or holds
non-scalar values where text is expected raises ValidationError.

Wire format (camelCase JSON):

    {
      "user": "alice",
      "copies": [{"id", "title", "format", "region", "edition",
                  "languages", "notes", "upc", "discCount", "isWishlist",
                  "titleRef", "resolved", "createdAt"}],
      "titles": [{"externalId", "name", "year", "rating", "posterUrl",
                  "plot", "director", "genre", "runtime"}],
      "customEditions": ["Steelbook"],
      "timestamp": "2024-01-15T10:00:00+00:00",
      "backupLabel": "Backup for alice",
      "version": "2.1"
    }

Older clients sent ``movies`` for titles, ``imdbID``/``title``/
``posterIMG``/``imdbRating`` for title fields and ``movieId``/``discs``/
``created`` for copy fields; those names are accepted on input.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import copy as _copy
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

# --- Local imports ---
from cineshelf.core.exceptions import ValidationError
from cineshelf.core.validators import DataValidator, as_utc

SNAPSHOT_VERSION = "2.1"

_LEADING_INT = re.compile(r"^\s*(\d+)")


# ----- Field helpers -----
def _first(data: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key present in data, else None."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def _text(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    value = _first(data, *keys)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"Field '{keys[0]}' must be text, got {type(value).__name__}")
    return DataValidator.normalize_string(value)


def _year(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    raise ValidationError(f"Field 'year' must be a number, got {type(value).__name__}")


def _rating(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    raise ValidationError(f"Field 'rating' must be a number, got {type(value).__name__}")


def _disc_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            return DataValidator.normalize_int(value)
        except ValidationError:
            return None
    raise ValidationError(f"Field 'discCount' must be a number, got {type(value).__name__}")


def _flag(value: Any, name: str) -> Optional[bool]:
    if value is None:
        return None
    try:
        return DataValidator.normalize_bool(value)
    except ValidationError as e:
        raise ValidationError(f"Field '{name}' must be a boolean: {e}") from e


def _timestamp_text(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value is not None else None


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _require_list(data: Mapping[str, Any], *keys: str) -> List[Any]:
    value = _first(data, *keys)
    if value is None:
        raise ValidationError(f"Snapshot is missing '{keys[0]}'")
    if not isinstance(value, list):
        raise ValidationError(f"Snapshot field '{keys[0]}' must be a list")
    return value


# ----- Records -----
@dataclass
class TitleRecord:
    """Metadata for a work, as exchanged with lookups and the server."""

    external_id: Optional[str]
    name: Optional[str]
    year: Optional[int] = None
    rating: Optional[float] = None
    poster_url: Optional[str] = None
    plot: Optional[str] = None
    director: Optional[str] = None
    genre: Optional[str] = None
    runtime: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> "TitleRecord":
        """
        Parse a title object (wire, snake_case or legacy keys).

        Raises:
            ValidationError: If data is not an object or holds non-scalar values
        """
        data = _require_mapping(data, "Title")
        return cls(
            external_id=_text(data, "externalId", "external_id", "imdbID"),
            name=_text(data, "name", "title"),
            year=_year(data.get("year")),
            rating=_rating(_first(data, "rating", "imdbRating")),
            poster_url=_text(data, "posterUrl", "poster_url", "posterIMG"),
            plot=_text(data, "plot"),
            director=_text(data, "director"),
            genre=_text(data, "genre"),
            runtime=_text(data, "runtime"),
        )

    @classmethod
    def coerce(cls, value: Any) -> "TitleRecord":
        """Accept a TitleRecord or any mapping from_payload understands."""
        if isinstance(value, cls):
            return value
        return cls.from_payload(value)

    @classmethod
    def from_model(cls, title: Any) -> "TitleRecord":
        return cls(
            external_id=title.external_id,
            name=title.name,
            year=title.year,
            rating=title.rating,
            poster_url=title.poster_url,
            plot=title.plot,
            director=title.director,
            genre=title.genre,
            runtime=title.runtime,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "externalId": self.external_id,
            "name": self.name,
            "year": self.year,
            "rating": self.rating,
            "posterUrl": self.poster_url,
            "plot": self.plot,
            "director": self.director,
            "genre": self.genre,
            "runtime": self.runtime,
        }


@dataclass
class CopyRecord:
    """
    One copy as exchanged with the server.

    ``resolved`` is None when the payload did not say; ``disc_count`` and
    ``created_at`` are None when missing or unparseable.
    """

    id: Optional[str]
    title: Optional[str]
    format: Optional[str] = None
    region: Optional[str] = None
    edition: Optional[str] = None
    languages: Optional[str] = None
    notes: Optional[str] = None
    upc: Optional[str] = None
    disc_count: Optional[int] = 1
    is_wishlist: bool = False
    title_ref: Optional[str] = None
    resolved: Optional[bool] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: Any) -> "CopyRecord":
        """
        Parse a copy object (wire, snake_case or legacy keys).

        Raises:
            ValidationError: If data is not an object or holds values of the
                wrong shape
        """
        data = _require_mapping(data, "Copy")
        return cls(
            id=_text(data, "id"),
            title=_text(data, "title"),
            format=_text(data, "format"),
            region=_text(data, "region"),
            edition=_text(data, "edition"),
            languages=_text(data, "languages"),
            notes=_text(data, "notes"),
            upc=_text(data, "upc"),
            disc_count=_disc_count(_first(data, "discCount", "disc_count", "discs")),
            is_wishlist=bool(
                _flag(_first(data, "isWishlist", "is_wishlist"), "isWishlist")
            ),
            title_ref=_text(data, "titleRef", "title_ref", "movieId"),
            resolved=_flag(data.get("resolved"), "resolved"),
            created_at=DataValidator.parse_timestamp(
                _first(data, "createdAt", "created_at", "created")
            ),
        )

    @classmethod
    def from_model(cls, copy: Any) -> "CopyRecord":
        return cls(
            id=copy.copy_id,
            title=copy.title,
            format=copy.format,
            region=copy.region,
            edition=copy.edition,
            languages=copy.languages,
            notes=copy.notes,
            upc=copy.upc,
            disc_count=copy.disc_count,
            is_wishlist=copy.is_wishlist,
            title_ref=copy.title_ref,
            resolved=copy.resolved,
            created_at=as_utc(copy.created_at) if copy.created_at else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "format": self.format,
            "region": self.region,
            "edition": self.edition,
            "languages": self.languages,
            "notes": self.notes,
            "upc": self.upc,
            "discCount": self.disc_count,
            "isWishlist": self.is_wishlist,
            "titleRef": self.title_ref,
            "resolved": self.resolved,
            "createdAt": _timestamp_text(self.created_at),
        }


@dataclass
class Snapshot:
    """
    Full exported state of one profile.

    Attributes:
        user: Profile key the snapshot belongs to
        copies: Copies in queue order
        titles: Titles
        custom_editions: Custom edition names
        timestamp: When the snapshot was taken
        backup_label: Human-readable label
        version: Format version tag
        restore_metadata: Server annotations on a restored snapshot
    """

    user: str
    copies: List[CopyRecord] = field(default_factory=list)
    titles: List[TitleRecord] = field(default_factory=list)
    custom_editions: List[str] = field(default_factory=list)
    timestamp: Optional[datetime] = None
    backup_label: Optional[str] = None
    version: str = SNAPSHOT_VERSION
    restore_metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Any) -> "Snapshot":
        """
        Validate a remote payload into a Snapshot.

        Raises:
            ValidationError: If the payload does not have the snapshot shape
        """
        data = _require_mapping(data, "Snapshot")
        copies = [CopyRecord.from_payload(item) for item in _require_list(data, "copies")]
        titles = [
            TitleRecord.from_payload(item)
            for item in _require_list(data, "titles", "movies")
        ]

        editions_raw = data.get("customEditions") or []
        if not isinstance(editions_raw, list) or not all(
            isinstance(e, str) for e in editions_raw
        ):
            raise ValidationError("Snapshot field 'customEditions' must be a list of text")

        metadata = _first(data, "_restoreMetadata", "_restore_metadata") or {}
        if not isinstance(metadata, Mapping):
            raise ValidationError("Snapshot field '_restoreMetadata' must be an object")

        return cls(
            user=_text(data, "user") or "",
            copies=copies,
            titles=titles,
            custom_editions=list(editions_raw),
            timestamp=DataValidator.parse_timestamp(data.get("timestamp")),
            backup_label=_text(data, "backupLabel"),
            version=_text(data, "version", "serverVersion") or SNAPSHOT_VERSION,
            restore_metadata=dict(metadata),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "user": self.user,
            "copies": [c.to_payload() for c in self.copies],
            "titles": [t.to_payload() for t in self.titles],
            "customEditions": list(self.custom_editions),
            "timestamp": _timestamp_text(self.timestamp),
            "backupLabel": self.backup_label,
            "version": self.version,
        }

    def clone(self) -> "Snapshot":
        """Deep copy; the clone shares nothing with this snapshot."""
        return _copy.deepcopy(self)

    @property
    def filename_used(self) -> Optional[str]:
        return self.restore_metadata.get("filenameUsed") or self.restore_metadata.get(
            "filename_used"
        )


@dataclass
class BackupListing:
    """One stored snapshot as listed by the server."""

    filename: str
    user_part: str
    modified: Optional[datetime] = None
    size: int = 0

    @classmethod
    def from_payload(cls, data: Any) -> "BackupListing":
        data = _require_mapping(data, "Backup listing")
        filename = _text(data, "filename")
        if not filename:
            raise ValidationError("Backup listing is missing 'filename'")
        size = data.get("size") or 0
        return cls(
            filename=filename,
            user_part=_text(data, "userPart", "user_part") or "",
            modified=DataValidator.parse_timestamp(data.get("modified")),
            size=size if isinstance(size, int) and not isinstance(size, bool) else 0,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "userPart": self.user_part,
            "modified": _timestamp_text(self.modified),
            "size": self.size,
        }


def parse_listings(body: Any) -> List[BackupListing]:
    """Extract the available-backups listing from a not-found response body."""
    if not isinstance(body, Mapping):
        return []
    raw = _first(body, "availableBackups", "available_backups") or []
    if not isinstance(raw, list):
        raise ValidationError("'availableBackups' must be a list")
    return [BackupListing.from_payload(item) for item in raw]

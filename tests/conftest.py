"""
conftest.py
-----------
Shared pytest fixtures for CineShelf tests.

Provides fixtures for:
- Temporary database and profile manager
- Catalog store and resolve workflow of the active profile
- Snapshot server application and an httpx transport into it
- Sample wire payloads
"""
import pytest
from pathlib import Path

import httpx

from cineshelf.core.logging_manager import ShelfLogger


# ----- Path Fixtures -----

@pytest.fixture
def test_db_path(tmp_path):
    """Temporary catalog database path."""
    return tmp_path / "shelf.db"


@pytest.fixture
def storage_dir(tmp_path):
    """Temporary snapshot directory for the server."""
    return tmp_path / "server" / "data"


@pytest.fixture
def logger(tmp_path):
    """File logger writing under the temporary directory."""
    shelf_logger = ShelfLogger(tmp_path / "logs", component_name="test")
    yield shelf_logger
    shelf_logger.close()


# ----- Database Fixtures -----

@pytest.fixture
def test_db(test_db_path):
    """
    ShelfDB instance with an initialized schema.

    Engine is disposed after the test.
    """
    from cineshelf.database.manager import ShelfDB

    db = ShelfDB(test_db_path)
    yield db
    db.close()


@pytest.fixture
def profiles(test_db):
    """ProfileManager with the 'default' profile active."""
    from cineshelf.database.profile_manager import ProfileManager

    return ProfileManager(test_db)


@pytest.fixture
def store(profiles):
    """Catalog store of the active profile."""
    return profiles.current.store


@pytest.fixture
def workflow(profiles):
    """Resolve workflow of the active profile."""
    return profiles.current.workflow


# ----- Server Fixtures -----

@pytest.fixture
def server_app(storage_dir):
    """Snapshot server backed by a temporary directory."""
    from cineshelf.server.app import create_app

    return create_app(storage_dir)


@pytest.fixture
def asgi_transport(server_app):
    """httpx transport that calls the server app in-process."""
    return httpx.ASGITransport(app=server_app)


# ----- Sample Payloads -----

def make_title(external_id="tt0083658", name="Blade Runner", **extra):
    """Wire-format title."""
    data = {"externalId": external_id, "name": name}
    data.update(extra)
    return data


def make_copy(copy_id="copy_1", title="Blade Runner", **extra):
    """Wire-format copy."""
    data = {
        "id": copy_id,
        "title": title,
        "discCount": 1,
        "isWishlist": False,
        "titleRef": None,
        "resolved": False,
        "createdAt": "2024-03-01T12:00:00+00:00",
    }
    data.update(extra)
    return data


def make_snapshot(user="alice", copies=None, titles=None, editions=None):
    """Wire-format snapshot."""
    return {
        "user": user,
        "copies": copies if copies is not None else [make_copy()],
        "titles": titles if titles is not None else [],
        "customEditions": editions if editions is not None else [],
        "timestamp": "2024-03-02T08:30:00+00:00",
        "version": "2.1",
    }


@pytest.fixture
def sample_snapshot():
    """Snapshot with one resolved and one unresolved copy."""
    return make_snapshot(
        copies=[
            make_copy("copy_1", "Blade Runner", titleRef="tt0083658", resolved=True),
            make_copy("copy_2", "Stalker", format="DVD"),
        ],
        titles=[make_title(year=1982, rating=8.1, runtime="117 min")],
        editions=["Criterion"],
    )

#!/usr/bin/env python3
"""
Integration tests for the shelf CLI.

Every invocation uses a temporary database, log directory and config
file. Sync commands are pointed at the in-process snapshot server by
swapping the coordinator factory.
"""
import pytest
from click.testing import CliRunner

import cineshelf.cli.sync as sync_cli
from cineshelf.cli import cli, get_profiles
from cineshelf.database.manager import ShelfDB
from cineshelf.database.profile_manager import ProfileManager
from cineshelf.server.repository import SnapshotRepository
from cineshelf.sync.coordinator import SyncCoordinator
from conftest import make_copy, make_snapshot


class TestShelfCLI:
    """Catalog, profile and edition commands against a temporary database."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture
    def test_dirs(self, tmp_path):
        dirs = {
            "db_path": tmp_path / "shelf.db",
            "log_dir": tmp_path / "logs",
            "config": tmp_path / "config.yaml",
        }
        dirs["config"].write_text("endpoints:\n  - http://server\ntimeout_seconds: 1\n")
        return dirs

    def invoke_cli(self, runner, test_dirs, args, **kwargs):
        """Invoke the CLI with test configuration."""
        base_args = [
            "--db-path", str(test_dirs["db_path"]),
            "--log-dir", str(test_dirs["log_dir"]),
            "--config", str(test_dirs["config"]),
        ]
        return runner.invoke(cli, base_args + args, obj={}, **kwargs)

    def open_store(self, test_dirs):
        db = ShelfDB(test_dirs["db_path"])
        return db, ProfileManager(db).current.store

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "profile" in result.output
        assert "restore" in result.output

    def test_add_and_list(self, runner, test_dirs):
        result = self.invoke_cli(
            runner, test_dirs, ["add", "Dune", "--format", "4K", "--discs", "2"]
        )
        assert result.exit_code == 0
        assert "Added to collection: Dune" in result.output

        result = self.invoke_cli(runner, test_dirs, ["list"])
        assert result.exit_code == 0
        assert "Dune [4K] (2 discs)" in result.output

    def test_add_invalid_discs(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["add", "Dune", "--discs", "99"])
        assert result.exit_code == 1
        assert "ValidationError" in result.output

    def test_edit_move_delete(self, runner, test_dirs):
        self.invoke_cli(runner, test_dirs, ["add", "Heat"])
        db, store = self.open_store(test_dirs)
        copy_id = store.all_copies()[0].copy_id
        db.close()

        result = self.invoke_cli(runner, test_dirs, ["edit", copy_id, "--region", "B"])
        assert result.exit_code == 0

        result = self.invoke_cli(runner, test_dirs, ["move", copy_id, "--to", "wishlist"])
        assert result.exit_code == 0
        assert "Moved to wishlist" in result.output

        result = self.invoke_cli(runner, test_dirs, ["list", "--view", "wishlist", "--ids"])
        assert copy_id in result.output

        result = self.invoke_cli(runner, test_dirs, ["delete", copy_id, "--yes"])
        assert result.exit_code == 0

        result = self.invoke_cli(runner, test_dirs, ["delete", copy_id, "--yes"])
        assert result.exit_code == 1
        assert "NotFoundError" in result.output

    def test_title_and_resolve(self, runner, test_dirs):
        self.invoke_cli(runner, test_dirs, ["add", "Blade Runner"])
        result = self.invoke_cli(runner, test_dirs, ["resolve", "queue"])
        assert "Blade Runner" in result.output

        db, store = self.open_store(test_dirs)
        copy_id = store.all_copies()[0].copy_id
        db.close()

        result = self.invoke_cli(
            runner, test_dirs, ["resolve", "link", copy_id, "tt0083658", "--year", "1982"]
        )
        assert result.exit_code == 0
        assert "Linked to Blade Runner (tt0083658)" in result.output
        assert "Queue is empty" in result.output

        result = self.invoke_cli(runner, test_dirs, ["title", "show", "tt0083658"])
        assert result.exit_code == 0
        assert "Blade Runner (1982)" in result.output
        assert "Copies (1)" in result.output

    def test_title_add_auto_links_new_copies(self, runner, test_dirs):
        result = self.invoke_cli(
            runner, test_dirs, ["title", "add", "tt0090605", "Aliens", "--runtime", "137 min"]
        )
        assert result.exit_code == 0
        result = self.invoke_cli(runner, test_dirs, ["add", "aliens"])
        assert "linked to: tt0090605" in result.output

    def test_profiles(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["profile", "switch", "alice"])
        assert result.exit_code == 0
        self.invoke_cli(runner, test_dirs, ["add", "Ran"])

        result = self.invoke_cli(runner, test_dirs, ["profile", "list"])
        assert "▶ alice" in result.output

        result = self.invoke_cli(runner, test_dirs, ["profile", "delete", "default", "--yes"])
        assert result.exit_code == 1
        assert "ProtectedResourceError" in result.output

        result = self.invoke_cli(runner, test_dirs, ["profile", "delete", "alice", "--yes"])
        assert result.exit_code == 0
        assert "Active profile: default" in result.output

    def test_editions(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["editions", "add", "Arrow"])
        assert result.exit_code == 0
        result = self.invoke_cli(runner, test_dirs, ["editions", "add", "arrow"])
        assert result.exit_code == 1

        result = self.invoke_cli(runner, test_dirs, ["editions", "list"])
        assert "Custom editions (1)" in result.output

        result = self.invoke_cli(runner, test_dirs, ["editions", "reset", "--yes"])
        assert "Removed 1 custom edition(s)" in result.output

    def test_stats(self, runner, test_dirs):
        self.invoke_cli(runner, test_dirs, ["add", "Heat", "--format", "DVD"])
        self.invoke_cli(runner, test_dirs, ["add", "Ran", "--wishlist"])
        result = self.invoke_cli(runner, test_dirs, ["stats"])
        assert result.exit_code == 0
        assert "Collection:      1" in result.output
        assert "Wishlist:        1" in result.output
        assert "DVD: 1" in result.output

    def test_bad_config(self, runner, test_dirs):
        test_dirs["config"].write_text("colour: red\n")
        result = self.invoke_cli(runner, test_dirs, ["stats"])
        assert result.exit_code == 1
        assert "Unknown configuration keys" in result.output


class TestSyncCLI:
    """backup, restore and undo-restore against the in-process server."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture
    def base_args(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("endpoints:\n  - http://server\n")
        return [
            "--db-path", str(tmp_path / "shelf.db"),
            "--log-dir", str(tmp_path / "logs"),
            "--config", str(config),
        ]

    @pytest.fixture(autouse=True)
    def local_server(self, monkeypatch, asgi_transport):
        def coordinator(ctx, endpoints=None):
            return SyncCoordinator(
                get_profiles(ctx),
                list(endpoints) if endpoints else ["http://server"],
                timeout=1.0,
                transport=asgi_transport,
            )

        monkeypatch.setattr(sync_cli, "get_coordinator", coordinator)

    def test_backup_and_restore(self, runner, base_args):
        runner.invoke(cli, base_args + ["add", "Heat"], obj={})

        result = runner.invoke(cli, base_args + ["backup"], obj={})
        assert result.exit_code == 0
        assert "Backup saved to http://server" in result.output
        assert "cineshelf_backup_default.json" in result.output

        runner.invoke(cli, base_args + ["add", "Ran"], obj={})
        result = runner.invoke(cli, base_args + ["restore", "--yes"], obj={})
        assert result.exit_code == 0
        assert "copies: 1" in result.output

        result = runner.invoke(cli, base_args + ["undo-restore", "--yes"], obj={})
        assert result.exit_code == 0
        assert "copies: 2" in result.output

    def test_restore_conflict_offers_file_retry(self, runner, base_args, storage_dir):
        SnapshotRepository(storage_dir).put(
            "bob", make_snapshot(user="bob", copies=[make_copy("copy_b", "Bob's")])
        )

        result = runner.invoke(cli, base_args + ["restore", "--yes"], obj={})
        assert result.exit_code == 1
        assert "cineshelf_backup_bob.json" in result.output
        assert "shelf restore --file" in result.output

        result = runner.invoke(
            cli,
            base_args + ["restore", "--yes", "--file", "cineshelf_backup_bob.json"],
            obj={},
        )
        assert result.exit_code == 0
        assert "Bob's" not in result.output
        assert "copies: 1" in result.output

    def test_restore_not_found(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["restore", "--yes"], obj={})
        assert result.exit_code == 1
        assert "SnapshotNotFoundError" in result.output
        assert "http://server: 404" in result.output

    def test_undo_without_restore(self, runner, base_args):
        result = runner.invoke(cli, base_args + ["undo-restore", "--yes"], obj={})
        assert result.exit_code == 1
        assert "No safety snapshot" in result.output

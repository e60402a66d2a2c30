"""
Tests for ProfileManager and ShelfContext.
"""
import pytest

from cineshelf.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ProtectedResourceError,
    ValidationError,
)
from cineshelf.database.profile_manager import ProfileManager
from cineshelf.workflow.resolve import WorkflowState


class TestStartup:
    def test_default_profile_created_and_active(self, profiles):
        assert profiles.current.name == "default"
        assert [p.name for p in profiles.list_profiles()] == ["default"]

    def test_active_profile_survives_restart(self, test_db):
        ProfileManager(test_db).switch_profile("alice")
        assert ProfileManager(test_db).current.name == "alice"

    def test_current_without_context(self, profiles):
        profiles._current = None
        with pytest.raises(InvalidStateError):
            profiles.current

    def test_context_logs_carry_profile(self, test_db, logger, tmp_path):
        manager = ProfileManager(test_db, logger)
        manager.switch_profile("Alice B")
        manager.current.store.add_copy({"title": "Dune"})

        lines = (tmp_path / "logs" / "test.log").read_text(encoding="utf-8").splitlines()
        added = [line for line in lines if "OPERATION - add_copy" in line]
        assert len(added) == 1
        assert '"profile": "AliceB"' in added[0]


class TestCreate:
    def test_create_does_not_switch(self, profiles):
        created = profiles.create_profile("Bob Smith")
        assert created.key == "BobSmith"
        assert profiles.current.name == "default"

    @pytest.mark.parametrize("name", ["", "   ", "!!!"])
    def test_invalid_names(self, profiles, name):
        with pytest.raises(ValidationError):
            profiles.create_profile(name)

    def test_duplicate_name(self, profiles):
        profiles.create_profile("alice")
        with pytest.raises(ValidationError):
            profiles.create_profile("alice")

    def test_duplicate_key(self, profiles):
        profiles.create_profile("al ice")
        with pytest.raises(ValidationError):
            profiles.create_profile("alice!")


class TestSwitch:
    def test_switch_creates_and_isolates(self, profiles):
        profiles.current.store.add_copy({"title": "Heat"})
        context = profiles.switch_profile("alice")

        assert context.name == "alice"
        assert context.store.all_copies() == []
        assert profiles.get_profile("alice") is not None

        profiles.switch_profile("default")
        assert [c.title for c in profiles.current.store.all_copies()] == ["Heat"]

    def test_switch_to_current_is_noop(self, profiles):
        context = profiles.current
        assert profiles.switch_profile("default") is context

    def test_switch_resets_workflow(self, profiles):
        copy = profiles.current.store.add_copy({"title": "Heat"})
        profiles.current.workflow.start(copy.copy_id)
        old_workflow = profiles.current.workflow

        profiles.switch_profile("alice")
        assert old_workflow.state is WorkflowState.IDLE
        assert profiles.current.workflow.is_idle

    def test_switch_refused_while_busy(self, profiles):
        profiles.current.busy = True
        with pytest.raises(InvalidStateError):
            profiles.switch_profile("alice")
        assert profiles.current.name == "default"
        assert profiles.get_profile("alice") is None


class TestDelete:
    def test_default_is_protected(self, profiles):
        profiles.create_profile("alice")
        with pytest.raises(ProtectedResourceError):
            profiles.delete_profile("default")

    def test_last_profile_is_protected(self, profiles):
        with pytest.raises(ProtectedResourceError):
            profiles.delete_profile("default")

    def test_missing_profile(self, profiles):
        profiles.create_profile("alice")
        with pytest.raises(NotFoundError):
            profiles.delete_profile("bob")

    def test_delete_active_switches_to_default(self, profiles):
        context = profiles.switch_profile("alice")
        context.store.add_copy({"title": "Ran"})
        context.store.add_custom_edition("Arrow")

        profiles.delete_profile("alice")

        assert profiles.current.name == "default"
        assert [p.name for p in profiles.list_profiles()] == ["default"]
        profiles.switch_profile("alice")
        assert profiles.current.store.all_copies() == []
        assert profiles.current.store.custom_editions() == []

    def test_delete_other_keeps_current(self, profiles):
        profiles.switch_profile("alice")
        profiles.create_profile("bob")
        profiles.delete_profile("bob")
        assert profiles.current.name == "alice"

    def test_delete_active_while_busy(self, profiles):
        profiles.switch_profile("alice")
        profiles.current.busy = True
        with pytest.raises(InvalidStateError):
            profiles.delete_profile("alice")
        assert profiles.get_profile("alice") is not None

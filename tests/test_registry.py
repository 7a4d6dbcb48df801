from unittest.mock import MagicMock

from conftest import FakeConnection
from models import IDLE, default_preferences
from registry import SessionRegistry


def test_upsert_indexes_connection():
    registry = SessionRegistry()
    conn = FakeConnection(1)

    session = registry.upsert("a", conn, default_preferences(), 10.0)

    assert session["status"] == IDLE
    assert session["connected_at"] == session["last_active_at"] == 10.0
    assert registry.find_by_connection(1) == "a"
    assert len(registry) == 1


def test_upsert_replaces_connection_and_reindexes():
    registry = SessionRegistry()
    registry.upsert("a", FakeConnection(1), default_preferences(), 10.0)

    session = registry.upsert("a", FakeConnection(2), default_preferences(), 20.0)

    assert registry.find_by_connection(1) is None
    assert registry.find_by_connection(2) == "a"
    assert session["connected_at"] == 20.0
    assert len(registry) == 1


def test_upsert_tears_down_existing_room_first():
    teardown = MagicMock()
    registry = SessionRegistry(teardown=teardown)
    session = registry.upsert("a", FakeConnection(1), default_preferences(), 10.0)
    session["room_id"] = "room_x"

    registry.upsert("a", FakeConnection(1), default_preferences(), 20.0)

    teardown.assert_called_once_with("a")


def test_upsert_without_room_does_not_tear_down():
    teardown = MagicMock()
    registry = SessionRegistry(teardown=teardown)
    registry.upsert("a", FakeConnection(1), default_preferences(), 10.0)
    registry.upsert("a", FakeConnection(1), default_preferences(), 20.0)

    teardown.assert_not_called()


def test_remove_and_touch():
    registry = SessionRegistry()
    registry.upsert("a", FakeConnection(1), default_preferences(), 10.0)

    assert registry.touch("a", 30.0)
    assert registry.get("a")["last_active_at"] == 30.0

    registry.remove("a")

    assert "a" not in registry
    assert registry.find_by_connection(1) is None
    assert not registry.touch("a", 40.0)
    assert registry.remove("a") is None

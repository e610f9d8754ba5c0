"""Tests for the user store and its JSON file backend."""
import json
import logging
import os
from datetime import datetime, timezone

import pytest

from accounts.errors import (
    DuplicateEmail,
    PersistenceLoadFailure,
    PersistenceSaveFailure,
    UnknownEmail,
    UsernameMismatch,
)
from accounts.manager import UserStore
from accounts.models import ChatMessage, UserRecord
from accounts.storage import IStorage, JSONStorage


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "userdata.txt")


@pytest.fixture
def store(data_file):
    return UserStore(JSONStorage(data_file))


def _ts(second, micro=0):
    return datetime(2024, 5, 1, 12, 0, second, micro, tzinfo=timezone.utc)


class FailingStorage(IStorage):
    def load(self):
        raise PersistenceLoadFailure("disk on fire")

    def save(self, users):
        raise PersistenceSaveFailure("disk on fire")


# ----------------------------------------------------------------------------
# register / authenticate / append_message
# ----------------------------------------------------------------------------

def test_register_then_duplicate_keeps_original_username(store):
    first = store.register("alice@example.com", "alice")
    assert first.username == "alice"
    assert first.chat_messages == {}

    with pytest.raises(DuplicateEmail):
        store.register("alice@example.com", "mallory")

    assert store.get("alice@example.com").username == "alice"
    assert len(store) == 1


def test_emails_are_case_sensitive(store):
    store.register("alice@example.com", "alice")
    store.register("Alice@example.com", "alice2")
    assert sorted(store.emails()) == ["Alice@example.com", "alice@example.com"]


def test_authenticate(store):
    store.register("bob@example.com", "Bob")

    assert store.authenticate("bob@example.com", "Bob") is store.get("bob@example.com")
    with pytest.raises(UsernameMismatch):
        store.authenticate("bob@example.com", "bob")
    with pytest.raises(UnknownEmail):
        store.authenticate("nobody@example.com", "Bob")


def test_account_errors_are_value_errors_with_messages():
    err = UsernameMismatch()
    assert isinstance(err, ValueError)
    assert str(err) == "Incorrect username. Please try again."


def test_append_distinct_timestamps_keeps_both(store):
    store.register("carol@example.com", "carol")
    store.append_message("carol@example.com", ChatMessage(_ts(1), "carol", "hi"))
    store.append_message("carol@example.com", ChatMessage(_ts(2), "carol", "there"))

    record = store.get("carol@example.com")
    assert [m.text for m in record.messages()] == ["hi", "there"]


def test_append_same_timestamp_later_wins(store):
    store.register("carol@example.com", "carol")
    store.append_message("carol@example.com", ChatMessage(_ts(1), "carol", "first"))
    store.append_message("carol@example.com", ChatMessage(_ts(1), "carol", "second"))

    record = store.get("carol@example.com")
    assert len(record.chat_messages) == 1
    assert record.chat_messages[_ts(1)].text == "second"


def test_append_to_unknown_email(store):
    with pytest.raises(UnknownEmail):
        store.append_message("ghost@example.com", ChatMessage.new("ghost", "boo"))


# ----------------------------------------------------------------------------
# persistence
# ----------------------------------------------------------------------------

def test_round_trip_reproduces_record(store, data_file):
    store.register("dave@example.com", "dave")
    store.append_message("dave@example.com", ChatMessage.new("dave", "hello, world"))
    store.append_message("dave@example.com", ChatMessage(_ts(5, 123456), "dave", ""))
    assert store.save()

    reloaded = UserStore(JSONStorage(data_file)).load()
    assert reloaded.emails() == ["dave@example.com"]
    assert reloaded.get("dave@example.com") == store.get("dave@example.com")


def test_unicode_text_round_trips(store, data_file):
    store.register("erin@example.com", "erin")
    store.append_message("erin@example.com", ChatMessage(_ts(3), "erin", "héllo ✓ 你好"))
    store.save()

    reloaded = UserStore(JSONStorage(data_file)).load()
    assert reloaded.get("erin@example.com").chat_messages[_ts(3)].text == "héllo ✓ 你好"


def test_missing_file_loads_empty_with_warning(store, caplog):
    with caplog.at_level(logging.WARNING, logger="chatapp"):
        store.load()
    assert len(store) == 0
    assert "User data file not found" in caplog.text


def test_load_replaces_in_memory_state(store, data_file):
    store.register("a@example.com", "a")
    store.save()
    store.register("b@example.com", "b")

    store.load()
    assert store.emails() == ["a@example.com"]


@pytest.mark.parametrize("content", [
    "this is not json",
    json.dumps([1, 2, 3]),
    json.dumps({"format": "something-else", "version": 1, "users": {}}),
])
def test_garbage_file_loads_empty_with_warning(store, data_file, caplog, content):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write(content)

    with caplog.at_level(logging.WARNING, logger="chatapp"):
        store.load()
    assert len(store) == 0
    assert "Failed to load user data from file" in caplog.text


def test_tampered_file_fails_checksum(store, data_file):
    store.register("frank@example.com", "frank")
    store.save()

    with open(data_file, encoding="utf-8") as f:
        data = json.load(f)
    data["users"]["frank@example.com"]["username"] = "mallory"
    with open(data_file, "w", encoding="utf-8") as f:
        json.dump(data, f)

    with pytest.raises(PersistenceLoadFailure, match="checksum"):
        JSONStorage(data_file).load()


def test_unsupported_version_is_rejected(store, data_file):
    store.save()
    with open(data_file, encoding="utf-8") as f:
        data = json.load(f)
    data["version"] = 99
    with open(data_file, "w", encoding="utf-8") as f:
        json.dump(data, f)

    with pytest.raises(PersistenceLoadFailure, match="version"):
        JSONStorage(data_file).load()


def test_saved_file_layout(store, data_file):
    store.register("gina@example.com", "gina")
    store.save()

    with open(data_file, encoding="utf-8") as f:
        data = json.load(f)
    assert data["format"] == "chatapp-users"
    assert data["version"] == 1
    assert isinstance(data["checksum"], str)
    record = data["users"]["gina@example.com"]
    assert record["username"] == "gina"
    assert record["chat_messages"] == []
    assert UserRecord.from_dict(record) == store.get("gina@example.com")


def test_failed_save_keeps_previous_file(store, data_file, tmp_path, monkeypatch, caplog):
    store.register("hank@example.com", "hank")
    assert store.save()
    with open(data_file, "rb") as f:
        before = f.read()

    def broken_replace(src, dst):
        raise OSError("no space left on device")

    monkeypatch.setattr(os, "replace", broken_replace)
    store.register("ivy@example.com", "ivy")
    with caplog.at_level(logging.WARNING, logger="chatapp"):
        assert store.save() is False
    assert "Failed to save user data to file: no space left on device" in caplog.text

    with open(data_file, "rb") as f:
        assert f.read() == before
    assert [p.name for p in tmp_path.iterdir()] == ["userdata.txt"]


def test_save_into_missing_directory_reports_failure(tmp_path):
    storage = JSONStorage(str(tmp_path / "nope" / "userdata.txt"))
    with pytest.raises(PersistenceSaveFailure):
        storage.save({})
    assert not os.path.exists(tmp_path / "nope")


def test_failing_backend_load_is_not_fatal(caplog):
    store = UserStore(FailingStorage())
    with caplog.at_level(logging.WARNING, logger="chatapp"):
        assert store.load() is store
    assert "disk on fire" in caplog.text


@pytest.mark.parametrize("content", [
    '{"format": "chatapp-users", "version": 1, "checksum": "x", "users": {"a": "\\ud800"}}',
    "[" * 200000 + "]" * 200000,
    '{"format": "chatapp-users", "version": 1, "checksum": "x", "users": {"a": ' + "9" * 5000 + "}}",
])
def test_hostile_file_loads_empty_with_warning(store, data_file, caplog, content):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write(content)

    with caplog.at_level(logging.WARNING, logger="chatapp"):
        assert store.load() is store
    assert len(store) == 0
    assert "Failed to load user data from file" in caplog.text


def test_lone_surrogate_text_round_trips(store, data_file):
    store.register("kim@example.com", "kim")
    store.append_message("kim@example.com", ChatMessage(_ts(7), "kim", "caf\udce9"))
    assert store.save()

    reloaded = UserStore(JSONStorage(data_file)).load()
    assert reloaded.get("kim@example.com").chat_messages[_ts(7)].text == "caf\udce9"
    assert reloaded.get("kim@example.com") == store.get("kim@example.com")


def test_unencodable_payload_becomes_save_failure(data_file):
    class Unencodable:
        def to_dict(self):
            return {"username": object()}

    with pytest.raises(PersistenceSaveFailure):
        JSONStorage(data_file).save({"x@example.com": Unencodable()})
    assert not os.path.exists(data_file)

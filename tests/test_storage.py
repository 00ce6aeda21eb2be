import sqlite3

from services.storage import InMemoryStore, SqliteStore, load_json_list, save_json, load_json


def test_in_memory_roundtrip():
    store = InMemoryStore()
    store.set_item("k", "v")
    assert store.get_item("k") == "v"
    store.remove_item("k")
    assert store.get_item("k") is None


def test_in_memory_remove_missing_key_is_noop():
    InMemoryStore().remove_item("missing")


def test_sqlite_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "kv.db")
    SqliteStore(path).set_item("users", "[1, 2]")

    reopened = SqliteStore(path)
    assert reopened.get_item("users") == "[1, 2]"


def test_sqlite_store_overwrites_and_removes(tmp_path):
    store = SqliteStore(str(tmp_path / "kv.db"))
    store.set_item("k", "one")
    store.set_item("k", "two")
    assert store.get_item("k") == "two"

    store.remove_item("k")
    assert store.get_item("k") is None


def test_save_and_load_json(store):
    save_json(store, "data", {"a": [1, 2]})
    assert load_json(store, "data") == {"a": [1, 2]}
    assert load_json(store, "missing") is None


def test_load_json_list_missing_key(store):
    assert load_json_list(store, "nothing") == []


def test_load_json_list_corrupt_json():
    assert load_json_list(InMemoryStore({"k": "[1, 2"}), "k") == []


def test_load_json_list_non_list_value():
    assert load_json_list(InMemoryStore({"k": '{"a": 1}'}), "k") == []


class BrokenStore(InMemoryStore):
    def get_item(self, key):
        raise sqlite3.OperationalError("database is locked")


def test_load_json_list_storage_error():
    assert load_json_list(BrokenStore(), "k") == []

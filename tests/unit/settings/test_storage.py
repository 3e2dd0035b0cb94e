"""Tests for the namespaced key-value store."""

import json

import pytest

from better_plugins_screen.settings.storage import (
    DEFAULT_PREFIX,
    PLUGIN_SETTINGS_KEY,
    STORE_VERSION,
    JsonFileBackend,
    MemoryBackend,
    PersistentStore,
    StorageUnavailableError,
    _normalize_overrides,
)


class _BrokenBackend:
    """Backend whose every operation fails."""

    def get_item(self, key):
        raise StorageUnavailableError("gone")

    def set_item(self, key, value):
        raise StorageUnavailableError("gone")

    def remove_item(self, key):
        raise StorageUnavailableError("gone")

    def keys(self):
        raise StorageUnavailableError("gone")


# ── fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def store_file(tmp_path):
    return tmp_path / "storage.json"


# ── availability ─────────────────────────────────────────────────────


class TestAvailability:
    def test_memory_backend_is_available(self, storage):
        assert storage.available is True

    def test_probe_key_is_cleaned_up(self, backend, storage):
        assert backend.keys() == []

    def test_missing_backend_is_unavailable(self):
        assert PersistentStore(None).available is False

    def test_failing_backend_is_unavailable(self):
        assert PersistentStore(_BrokenBackend()).available is False

    def test_unavailable_store_degrades(self):
        store = PersistentStore(_BrokenBackend())
        assert store.save("k", 1) is False
        assert store.load("k", "fallback") == "fallback"
        assert store.remove("k") is False
        assert store.clear() is False
        assert store.get_all_keys() == []
        assert store.storage_size() == 0
        assert store.export_all() is None
        assert store.import_all({"k": 1}) is False
        assert store.load_custom_settings_url("x") is None


# ── raw key/value ────────────────────────────────────────────────────


class TestSaveLoad:
    def test_round_trip_structured_value(self, storage):
        storage.save("prefs", {"a": [1, 2], "b": {"c": True}})
        assert storage.load("prefs") == {"a": [1, 2], "b": {"c": True}}

    def test_keys_are_prefixed(self, backend, storage):
        storage.save("prefs", 1)
        assert backend.keys() == [DEFAULT_PREFIX + "prefs"]

    def test_load_missing_returns_default(self, storage):
        assert storage.load("nope", {"d": 1}) == {"d": 1}

    def test_load_corrupt_value_returns_default(self, backend, storage):
        backend.set_item(DEFAULT_PREFIX + "bad", "{not json")
        assert storage.load("bad", "default") == "default"

    def test_remove(self, storage):
        storage.save("k", 1)
        assert storage.remove("k") is True
        assert storage.load("k") is None

    def test_clear_only_touches_namespace(self, backend, storage):
        backend.set_item("foreign", "keep")
        storage.save("a", 1)
        storage.save("b", 2)
        assert storage.clear() is True
        assert backend.keys() == ["foreign"]

    def test_get_all_keys_strips_prefix(self, backend, storage):
        backend.set_item("foreign", "x")
        storage.save("one", 1)
        storage.save("two", 2)
        assert sorted(storage.get_all_keys()) == ["one", "two"]

    def test_storage_size(self, storage):
        storage.save("k", "abc")
        assert storage.storage_size() == len(json.dumps("abc"))

    def test_export_import_all(self, storage):
        storage.save("a", {"x": 1})
        exported = storage.export_all()

        other = PersistentStore(MemoryBackend())
        assert other.import_all(exported) is True
        assert other.load("a") == {"x": 1}

    def test_import_all_rejects_non_mapping(self, storage):
        assert storage.import_all(["not", "a", "dict"]) is False


# ── per-plugin overrides ─────────────────────────────────────────────


class TestPluginSettings:
    def test_overrides_created_lazily(self, storage):
        assert storage.load_plugin_settings("cache-plugin") is None
        assert storage.load(PLUGIN_SETTINGS_KEY) is None

    def test_custom_settings_url(self, storage):
        storage.save_custom_settings_url("cache-plugin", "admin.php?page=cache")
        assert storage.load_custom_settings_url("cache-plugin") == "admin.php?page=cache"

    def test_link_order(self, storage):
        storage.save_link_order("cache-plugin", ["settings", "*"])
        assert storage.load_link_order("cache-plugin") == ["settings", "*"]

    def test_missing_link_order_is_none(self, storage):
        assert storage.load_link_order("cache-plugin") is None

    def test_notes(self, storage):
        storage.save_plugin_notes("cache-plugin", "needs licence key")
        assert storage.load_plugin_notes("cache-plugin") == "needs licence key"

    def test_missing_notes_is_empty(self, storage):
        assert storage.load_plugin_notes("cache-plugin") == ""

    def test_fields_are_independent(self, storage):
        storage.save_custom_settings_url("p", "admin.php?page=p")
        storage.save_plugin_notes("p", "note")
        storage.save_link_order("p", ["deactivate"])
        assert storage.load_plugin_settings("p") == {
            "customSettingsUrl": "admin.php?page=p",
            "linkOrder": ["deactivate"],
            "notes": "note",
        }

    def test_slugs_are_independent(self, storage):
        storage.save_plugin_notes("a", "first")
        storage.save_plugin_notes("b", "second")
        assert storage.load_plugin_notes("a") == "first"
        assert set(storage.load_all_plugin_settings()) == {"a", "b"}

    def test_remove_plugin_settings(self, storage):
        storage.save_plugin_notes("a", "first")
        storage.remove_plugin_settings("a")
        assert storage.load_plugin_settings("a") is None


class TestNormalizeOverrides:
    def test_non_dict_is_empty(self):
        assert _normalize_overrides("nope") == {}

    def test_blank_url_dropped(self):
        assert _normalize_overrides({"customSettingsUrl": "   "}) == {}

    def test_url_is_stripped(self):
        assert _normalize_overrides({"customSettingsUrl": " a.php "}) == {"customSettingsUrl": "a.php"}

    def test_non_string_tokens_dropped(self):
        assert _normalize_overrides({"linkOrder": ["a", 3, None]}) == {"linkOrder": ["a"]}

    def test_unknown_keys_dropped(self):
        assert _normalize_overrides({"other": 1, "notes": "n"}) == {"notes": "n"}


# ── JsonFileBackend ──────────────────────────────────────────────────


class TestJsonFileBackend:
    def test_set_writes_file(self, store_file):
        backend = JsonFileBackend(store_file)
        backend.set_item("k", "v")
        data = json.loads(store_file.read_text(encoding="utf-8"))
        assert data == {"version": STORE_VERSION, "items": {"k": "v"}}

    def test_values_survive_reopen(self, store_file):
        JsonFileBackend(store_file).set_item("k", "v")
        assert JsonFileBackend(store_file).get_item("k") == "v"

    def test_remove_item(self, store_file):
        backend = JsonFileBackend(store_file)
        backend.set_item("k", "v")
        backend.remove_item("k")
        assert JsonFileBackend(store_file).keys() == []

    def test_corrupt_file_starts_empty(self, store_file):
        store_file.write_text("{bad json", encoding="utf-8")
        assert JsonFileBackend(store_file).keys() == []

    def test_non_string_values_ignored(self, store_file):
        store_file.write_text(json.dumps({"items": {"a": "ok", "b": 3}}), encoding="utf-8")
        assert JsonFileBackend(store_file).keys() == ["a"]

    def test_default_path_is_redirectable(self, store_file, monkeypatch):
        monkeypatch.setattr(
            "better_plugins_screen.settings.storage.get_store_path",
            lambda: store_file,
        )
        assert JsonFileBackend().path == store_file

    def test_persistent_store_over_file(self, store_file):
        store = PersistentStore(JsonFileBackend(store_file))
        store.save_plugin_notes("p", "hello")
        reopened = PersistentStore(JsonFileBackend(store_file))
        assert reopened.load_plugin_notes("p") == "hello"

    def test_unwritable_location_marks_store_unavailable(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        store = PersistentStore(JsonFileBackend(blocker / "nested" / "storage.json"))
        assert store.available is False

"""Namespaced key-value persistence for preferences and per-plugin overrides."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger
from PySide6.QtCore import QStandardPaths

STORE_VERSION = 1
DEFAULT_PREFIX = "bps_"
PLUGIN_SETTINGS_KEY = "plugin_settings"

_AVAILABILITY_PROBE = "__bps_storage_test__"


class StorageUnavailableError(RuntimeError):
    """Raised by a backend that cannot read or write its medium."""


def app_config_dir() -> Path:
    """Return the platform-specific application config directory."""
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.AppConfigLocation
    )
    if location:
        return Path(location)
    return Path.home() / ".config" / "better_plugins_screen"


def get_store_path() -> Path:
    """Return the path of the JSON key-value file."""
    return app_config_dir() / "storage.json"


class MemoryBackend:
    """Dictionary-backed key-value store, lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileBackend:
    """Key-value store persisted as a single JSON document on disk.

    The file is read once on construction and rewritten on every mutation,
    so a successful ``set_item`` is durable when it returns.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else get_store_path()
        self._items: dict[str, str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except Exception as exc:
            logger.warning(f"Failed to read storage file {self._path}: {exc}")
            return {}

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, dict):
            return {}
        return {k: v for k, v in items.items() if isinstance(k, str) and isinstance(v, str)}

    def _write(self) -> None:
        payload = {"version": STORE_VERSION, "items": self._items}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {self._path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._write()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._write()

    def keys(self) -> list[str]:
        return list(self._items)


def _normalize_overrides(settings: Any) -> dict[str, Any]:
    if not isinstance(settings, dict):
        return {}

    result: dict[str, Any] = {}
    url = settings.get("customSettingsUrl")
    if isinstance(url, str) and url.strip():
        result["customSettingsUrl"] = url.strip()

    order = settings.get("linkOrder")
    if isinstance(order, list) and order:
        result["linkOrder"] = [token for token in order if isinstance(token, str)]

    notes = settings.get("notes")
    if isinstance(notes, str) and notes:
        result["notes"] = notes

    return result


class PersistentStore:
    """Prefixed JSON-valued storage over a string key-value backend.

    Every public operation tolerates a missing or failing backend: reads fall
    back to the supplied default and writes report ``False``.
    """

    def __init__(self, backend: Any = None, prefix: str = DEFAULT_PREFIX) -> None:
        self._backend = backend
        self.prefix = prefix
        self.available = self._check_availability()

    def _check_availability(self) -> bool:
        if self._backend is None:
            logger.warning("No storage backend configured; persistence disabled")
            return False
        try:
            self._backend.set_item(_AVAILABILITY_PROBE, _AVAILABILITY_PROBE)
            self._backend.remove_item(_AVAILABILITY_PROBE)
        except Exception as exc:
            logger.warning(f"Storage backend is not available: {exc}")
            return False
        return True

    def _key(self, key: str) -> str:
        return self.prefix + key

    # ── raw key/value ────────────────────────────────────────────────

    def save(self, key: str, data: Any) -> bool:
        """Serialize ``data`` as JSON under ``key``."""
        if not self.available:
            logger.warning(f"Cannot save '{key}': storage not available")
            return False
        try:
            self._backend.set_item(self._key(key), json.dumps(data))
        except Exception as exc:
            logger.error(f"Error saving '{key}' to storage: {exc}")
            return False
        return True

    def load(self, key: str, default: Any = None) -> Any:
        """Return the decoded value under ``key`` or ``default``."""
        if not self.available:
            return default
        try:
            raw = self._backend.get_item(self._key(key))
            if raw is None:
                return default
            return json.loads(raw)
        except Exception as exc:
            logger.error(f"Error loading '{key}' from storage: {exc}")
            return default

    def remove(self, key: str) -> bool:
        if not self.available:
            return False
        try:
            self._backend.remove_item(self._key(key))
        except Exception as exc:
            logger.error(f"Error removing '{key}' from storage: {exc}")
            return False
        return True

    def _prefixed_keys(self) -> list[str]:
        return [k for k in self._backend.keys() if k.startswith(self.prefix)]

    def clear(self) -> bool:
        """Remove every key in this store's namespace."""
        if not self.available:
            return False
        try:
            for key in self._prefixed_keys():
                self._backend.remove_item(key)
        except Exception as exc:
            logger.error(f"Error clearing storage: {exc}")
            return False
        return True

    def get_all_keys(self) -> list[str]:
        """Return the un-prefixed keys in this store's namespace."""
        if not self.available:
            return []
        try:
            return [k[len(self.prefix):] for k in self._prefixed_keys()]
        except Exception as exc:
            logger.error(f"Error listing storage keys: {exc}")
            return []

    def storage_size(self) -> int:
        """Return the total length of the stored values in characters."""
        if not self.available:
            return 0
        try:
            return sum(len(self._backend.get_item(k) or "") for k in self._prefixed_keys())
        except Exception as exc:
            logger.error(f"Error calculating storage size: {exc}")
            return 0

    def export_all(self) -> dict[str, Any] | None:
        if not self.available:
            return None
        return {key: self.load(key) for key in self.get_all_keys()}

    def import_all(self, data: dict[str, Any]) -> bool:
        if not self.available or not isinstance(data, dict):
            return False
        return all([self.save(key, value) for key, value in data.items()])

    # ── per-plugin overrides ─────────────────────────────────────────

    def load_all_plugin_settings(self) -> dict[str, dict[str, Any]]:
        data = self.load(PLUGIN_SETTINGS_KEY, {})
        if not isinstance(data, dict):
            return {}
        return {slug: settings for slug, settings in data.items() if isinstance(settings, dict)}

    def load_plugin_settings(self, slug: str, default: Any = None) -> Any:
        settings = self.load_all_plugin_settings().get(slug)
        return settings if settings else default

    def save_plugin_settings(self, slug: str, settings: dict[str, Any]) -> bool:
        all_settings = self.load_all_plugin_settings()
        all_settings[slug] = _normalize_overrides(settings)
        return self.save(PLUGIN_SETTINGS_KEY, all_settings)

    def remove_plugin_settings(self, slug: str) -> bool:
        all_settings = self.load_all_plugin_settings()
        all_settings.pop(slug, None)
        return self.save(PLUGIN_SETTINGS_KEY, all_settings)

    def _update_plugin_setting(self, slug: str, name: str, value: Any) -> bool:
        settings = dict(self.load_plugin_settings(slug, {}))
        settings[name] = value
        return self.save_plugin_settings(slug, settings)

    def save_link_order(self, slug: str, order: list[str]) -> bool:
        return self._update_plugin_setting(slug, "linkOrder", list(order))

    def load_link_order(self, slug: str) -> list[str] | None:
        return self.load_plugin_settings(slug, {}).get("linkOrder") or None

    def save_custom_settings_url(self, slug: str, url: str) -> bool:
        return self._update_plugin_setting(slug, "customSettingsUrl", url)

    def load_custom_settings_url(self, slug: str) -> str | None:
        return self.load_plugin_settings(slug, {}).get("customSettingsUrl") or None

    def save_plugin_notes(self, slug: str, notes: str) -> bool:
        return self._update_plugin_setting(slug, "notes", notes)

    def load_plugin_notes(self, slug: str) -> str:
        return self.load_plugin_settings(slug, {}).get("notes", "")

"""Layered configuration: defaults < host configuration < user preferences."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from .defaults import get_builtin_settings_maps, get_default_config
from .storage import PersistentStore

USER_PREFERENCES_KEY = "user_preferences"
CUSTOM_MAPS_KEY = "customSettingsMaps"

_MISSING = object()


class ConfigParseError(ValueError):
    """Raised when serialized preferences cannot be turned into a mapping."""


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in, key by key.

    Nested mappings merge recursively; any other value, lists included,
    replaces the lower-layer value outright. Neither input is mutated.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_user_layer(serialized: str) -> dict[str, Any]:
    """Parse exported preferences text, raising ``ConfigParseError``."""
    try:
        data = json.loads(serialized)
    except (TypeError, ValueError) as exc:
        raise ConfigParseError(f"Preferences are not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigParseError(f"Preferences must be a mapping, got {type(data).__name__}")
    return data


def load_host_config(path: str | Path) -> dict[str, Any]:
    """Read a host configuration file (YAML or JSON), or ``{}`` on failure."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Host configuration not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except Exception as exc:
        logger.warning(f"Failed to read host configuration {path}: {exc}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Host configuration {path} is not a mapping; ignoring it")
        return {}
    return data


class ConfigurationStore:
    """Merged view over the three configuration layers.

    Only the user layer is writable. Every write is persisted through the
    optional ``PersistentStore`` and followed by a synchronous re-merge, so a
    ``get`` right after ``set`` always sees the new value.
    """

    def __init__(
        self,
        storage: PersistentStore | None = None,
        host_config: dict[str, Any] | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self._storage = storage
        self._defaults = defaults if defaults is not None else get_default_config()
        self._builtin_maps = get_builtin_settings_maps()
        self._host: dict[str, Any] = {}
        self._user: dict[str, Any] = {}
        self._merged: dict[str, Any] = {}

        if isinstance(host_config, dict):
            self._host = copy.deepcopy(host_config)
            logger.debug("Host configuration loaded")
        elif host_config is not None:
            logger.warning("Host configuration is not a mapping; ignoring it")

        self.reload()

    # ── layers ───────────────────────────────────────────────────────

    @property
    def merged(self) -> dict[str, Any]:
        return copy.deepcopy(self._merged)

    @property
    def user_preferences(self) -> dict[str, Any]:
        return copy.deepcopy(self._user)

    def reload(self) -> None:
        """Re-read the user layer from storage and rebuild the merged view."""
        self._user = self._load_user_preferences()
        self._merge()

    def _load_user_preferences(self) -> dict[str, Any]:
        if self._storage is None:
            return {}
        stored = self._storage.load(USER_PREFERENCES_KEY, {})
        if not isinstance(stored, dict):
            logger.warning("Stored user preferences are not a mapping; ignoring them")
            return {}
        return stored

    def _save_user_preferences(self) -> None:
        if self._storage is not None:
            self._storage.save(USER_PREFERENCES_KEY, self._user)

    def _merge(self) -> None:
        self._merged = deep_merge(deep_merge(self._defaults, self._host), self._user)
        logger.debug("Configuration merged")

    # ── access ───────────────────────────────────────────────────────

    def get(self, path: str, fallback: Any = None) -> Any:
        """Return the merged value at a dotted ``path``, or ``fallback``."""
        value: Any = self._merged
        for key in path.split("."):
            if not isinstance(value, dict):
                return fallback
            value = value.get(key, _MISSING)
            if value is _MISSING:
                return fallback
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    def set(self, path: str, value: Any) -> None:
        """Write ``value`` into the user layer at ``path`` and re-merge."""
        keys = path.split(".")
        current = self._user
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = copy.deepcopy(value)

        self._save_user_preferences()
        self._merge()

    def reset(self) -> None:
        """Drop the user layer, including its manual dictionary additions."""
        self._user = {}
        if self._storage is not None:
            self._storage.remove(USER_PREFERENCES_KEY)
        self._merge()
        logger.info("User preferences reset")

    # ── export / import ──────────────────────────────────────────────

    def export_config(self) -> str:
        """Serialize the user layer (only) to JSON text."""
        return json.dumps(self._user, indent=2)

    def import_config(self, serialized: str) -> bool:
        """Replace the user layer with parsed ``serialized`` text.

        Returns False, leaving the current state untouched, when the text is
        not a JSON mapping.
        """
        try:
            imported = parse_user_layer(serialized)
        except ConfigParseError as exc:
            logger.error(f"Error importing configuration: {exc}")
            return False

        self._user = imported
        self._save_user_preferences()
        self._merge()
        logger.info("Configuration imported successfully")
        return True

    # ── manual settings dictionary ───────────────────────────────────

    def manual_dictionary(self) -> dict[str, str]:
        """Return built-in maps overlaid with host and user custom maps."""
        dictionary = dict(self._builtin_maps)
        custom = self.get(CUSTOM_MAPS_KEY, {})
        if isinstance(custom, dict):
            dictionary.update(
                {slug: url for slug, url in custom.items() if isinstance(url, str) and url}
            )
        return dictionary

    def add_to_manual_dictionary(self, slug: str, url: str) -> None:
        # Slugs may contain dots, so bypass dotted-path handling.
        custom = self._user.get(CUSTOM_MAPS_KEY)
        if not isinstance(custom, dict):
            custom = self._user[CUSTOM_MAPS_KEY] = {}
        custom[slug] = url
        self._save_user_preferences()
        self._merge()

"""Built-in configuration defaults and the bundled settings dictionary."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger

CONFIG_VERSION = "1.0.0"

SETTINGS_MAPS_PATH = Path(__file__).resolve().parent / "settings_maps.yaml"

# Canonical tie-break order for discovery strategies with equal priority
STRATEGY_ORDER = (
    "manualDictionary",
    "slugMatch",
    "nameMatch",
    "filenameMatch",
    "filenameVariations",
    "descriptionScan",
)

WILDCARD = "*"


def get_default_config() -> dict[str, Any]:
    """Return a fresh copy of the built-in defaults layer."""
    return {
        "version": CONFIG_VERSION,
        "selfSlug": "a-better-plugins-screen",
        "features": {
            "linkReordering": True,
            "settingsDiscovery": True,
            "pluginFiltering": True,
            "editMode": True,
            "configPanel": True,
        },
        "linkReordering": {
            "enabled": True,
            "defaultOrder": ["deactivate", "settings", WILDCARD],
            "persistOrder": True,
        },
        "settingsDiscovery": {
            "enabled": True,
            "searchMethods": {
                name: {"enabled": True, "priority": index + 1}
                for index, name in enumerate(STRATEGY_ORDER)
            },
            "fileExtension": ".php",
            "relativePrefixes": [
                "admin.php",
                "options",
                "edit.php",
                "tools.php",
                "upload.php",
                "themes.php",
                "users.php",
            ],
            "fallbackText": "No Settings Found",
            "fallbackTextColor": "#999",
        },
        "filterBox": {
            "enabled": True,
            "placeholder": "Search plugins",
            "searchableFields": ["name", "slug", "description", "author"],
            "caseSensitive": False,
            "hiddenClasses": ["hidden"],
            "debounceMs": 300,
        },
        "editMode": {
            "enabled": True,
            "allowExport": True,
            "allowImport": True,
        },
        "notifications": {
            "durationMs": 3000,
        },
        "selectors": {
            "table": "table.plugins",
            "rows": "table.plugins #the-list tr.active",
            "title": ".plugin-title strong",
            "description": ".plugin-description",
            "author": ".plugin-author",
            "actions": ".row-actions",
            "navigation": "#adminmenu",
            "searchBox": ".search-form.search-plugins .search-box",
            "searchInput": ".search-form.search-plugins .search-box input[type=search]",
        },
        "page": {
            "url": None,
        },
        "debug": {
            "enabled": False,
            "verbose": False,
        },
    }


def get_builtin_settings_maps() -> dict[str, str]:
    """Load the bundled slug -> settings URL dictionary."""
    if not SETTINGS_MAPS_PATH.exists():
        return {}

    try:
        with open(SETTINGS_MAPS_PATH, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except Exception as exc:
        logger.warning(f"Failed to read built-in settings maps: {exc}")
        return {}

    maps = data.get("settings_maps", {}) if isinstance(data, dict) else {}
    if not isinstance(maps, dict):
        return {}

    return {
        slug: url
        for slug, url in maps.items()
        if isinstance(slug, str) and isinstance(url, str) and url
    }

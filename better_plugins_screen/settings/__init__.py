"""Configuration layers and persistence (preferences, per-plugin overrides)."""

from better_plugins_screen.settings.config import (
    ConfigParseError,
    ConfigurationStore,
    deep_merge,
    load_host_config,
    parse_user_layer,
)
from better_plugins_screen.settings.defaults import (
    get_builtin_settings_maps,
    get_default_config,
)
from better_plugins_screen.settings.storage import (
    JsonFileBackend,
    MemoryBackend,
    PersistentStore,
    StorageUnavailableError,
    app_config_dir,
    get_store_path,
)

__all__ = [
    "app_config_dir",
    # Configuration
    "ConfigParseError",
    "ConfigurationStore",
    "deep_merge",
    "get_builtin_settings_maps",
    "get_default_config",
    "load_host_config",
    "parse_user_layer",
    # Storage
    "JsonFileBackend",
    "MemoryBackend",
    "PersistentStore",
    "StorageUnavailableError",
    "get_store_path",
]

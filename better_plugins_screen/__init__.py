"""Settings discovery, link ordering and live filtering for plugin lists."""

from .screen import PluginsScreen
from .settings.defaults import CONFIG_VERSION as __version__

__all__ = ["PluginsScreen", "__version__"]

"""Settings page discovery for plugins that do not declare one.

This package provides:
- SettingsDiscoveryResolver: priority-ordered strategy runner with a cache
- Discovery strategies: manual dictionary, menu matches, description scan
- UrlValidator: same-origin checks for candidate URLs
"""

from .resolver import SettingsDiscoveryResolver, SettingsResolution
from .strategies import (
    DescriptionScanStrategy,
    DiscoveryContext,
    DiscoveryStrategy,
    FilenameMatchStrategy,
    FilenameVariationsStrategy,
    ManualDictionaryStrategy,
    NameMatchStrategy,
    SlugMatchStrategy,
    builtin_strategies,
    generate_filename_variations,
    to_camel_case,
)
from .validation import UrlValidator

__all__ = [
    # Resolver
    "SettingsDiscoveryResolver",
    "SettingsResolution",
    # Strategies
    "DiscoveryContext",
    "DiscoveryStrategy",
    "ManualDictionaryStrategy",
    "SlugMatchStrategy",
    "NameMatchStrategy",
    "FilenameMatchStrategy",
    "FilenameVariationsStrategy",
    "DescriptionScanStrategy",
    "builtin_strategies",
    "generate_filename_variations",
    "to_camel_case",
    # Validation
    "UrlValidator",
]

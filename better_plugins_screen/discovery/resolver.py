"""Priority-ordered settings URL discovery with a per-page cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Tag
from loguru import logger

from ..features.entries import Entry
from ..settings.defaults import STRATEGY_ORDER
from .strategies import DiscoveryContext, DiscoveryStrategy, builtin_strategies
from .validation import UrlValidator

DEFAULT_FALLBACK_TEXT = "No Settings Found"
DEFAULT_FALLBACK_COLOR = "#999"


@dataclass(frozen=True)
class SettingsResolution:
    """Outcome of resolving one entry.

    ``url`` is None for the explicit "no settings found" result, which
    carries the text and colour to display instead.
    """

    slug: str
    url: str | None = None
    strategy: str | None = None
    fallback_text: str = DEFAULT_FALLBACK_TEXT
    fallback_color: str = DEFAULT_FALLBACK_COLOR

    @property
    def found(self) -> bool:
        return self.url is not None


class SettingsDiscoveryResolver:
    """Runs the enabled discovery strategies for an entry, best first.

    Args:
        config: Configuration store supplying ``settingsDiscovery.*``.
        navigation: Admin navigation element searched by the menu
            strategies; may be attached later with ``set_navigation``.
        page_url: URL of the current page, for same-origin checks.
    """

    def __init__(
        self,
        config: Any,
        navigation: Tag | None = None,
        page_url: str | None = None,
    ) -> None:
        self._config = config
        self._navigation = navigation
        self._page_url = page_url
        self._strategies: dict[str, DiscoveryStrategy] = {}
        self._cache: dict[str, SettingsResolution] = {}

        for strategy in builtin_strategies():
            self.register_strategy(strategy)

    # ── collaborators ────────────────────────────────────────────────

    def set_navigation(self, navigation: Tag | None) -> None:
        self._navigation = navigation

    def attach(self, document: BeautifulSoup) -> None:
        """Locate the admin navigation inside ``document``."""
        selector = self._config.get("selectors.navigation", "#adminmenu")
        self._navigation = document.select_one(selector)
        if self._navigation is None:
            logger.debug("Admin navigation not found; menu strategies disabled")

    def register_strategy(self, strategy: DiscoveryStrategy) -> None:
        """Add or replace the strategy registered under ``strategy.name``."""
        if not strategy.name:
            raise ValueError("Discovery strategies need a name")
        self._strategies[strategy.name] = strategy

    @property
    def strategies(self) -> dict[str, DiscoveryStrategy]:
        return dict(self._strategies)

    # ── ordering ─────────────────────────────────────────────────────

    def ordered_strategies(self) -> list[DiscoveryStrategy]:
        """Enabled strategies sorted by priority, ties in canonical order."""
        methods = self._config.get("settingsDiscovery.searchMethods", {}) or {}
        registered = list(self._strategies)
        unconfigured_priority = float("inf")

        def tie_break(name: str) -> tuple[int, int]:
            if name in STRATEGY_ORDER:
                return 0, STRATEGY_ORDER.index(name)
            return 1, registered.index(name)

        ranked = []
        for name, strategy in self._strategies.items():
            settings = methods.get(name)
            if not isinstance(settings, dict):
                settings = {}
            if not settings.get("enabled", True):
                continue
            priority = settings.get("priority", unconfigured_priority)
            if not isinstance(priority, (int, float)) or isinstance(priority, bool):
                priority = unconfigured_priority
            ranked.append((priority, tie_break(name), strategy))

        ranked.sort(key=lambda item: (item[0], item[1]))
        return [strategy for _, _, strategy in ranked]

    # ── resolution ───────────────────────────────────────────────────

    def _context(self) -> DiscoveryContext:
        return DiscoveryContext(
            navigation=self._navigation,
            manual_dictionary=self._config.manual_dictionary(),
            file_extension=self._config.get("settingsDiscovery.fileExtension", ".php") or "",
        )

    def _validator(self) -> UrlValidator:
        page_url = self._page_url or self._config.get("page.url")
        prefixes = self._config.get("settingsDiscovery.relativePrefixes", []) or []
        return UrlValidator(page_url, prefixes)

    def _not_found(self, slug: str) -> SettingsResolution:
        return SettingsResolution(
            slug=slug,
            fallback_text=self.fallback_text(),
            fallback_color=self.fallback_color(),
        )

    def resolve(self, entry: Entry) -> SettingsResolution:
        """Return the settings location for ``entry``, cached per slug."""
        cached = self._cache.get(entry.slug)
        if cached is not None:
            logger.debug(f"Using cached settings result for {entry.slug}")
            return cached

        context = self._context()
        validator = self._validator()
        for strategy in self.ordered_strategies():
            for candidate in strategy.candidates(entry, context):
                if validator.is_valid(candidate):
                    logger.debug(
                        f"Found settings for {entry.name or entry.slug} "
                        f"using {strategy.name}: {candidate}"
                    )
                    resolution = SettingsResolution(
                        slug=entry.slug, url=candidate, strategy=strategy.name
                    )
                    self._cache[entry.slug] = resolution
                    return resolution

        logger.debug(f"No settings found for {entry.name or entry.slug}")
        resolution = self._not_found(entry.slug)
        self._cache[entry.slug] = resolution
        return resolution

    def find_settings_url(self, entry: Entry) -> str | None:
        return self.resolve(entry).url

    def is_cached(self, slug: str) -> bool:
        return slug in self._cache

    def forget(self, slug: str) -> None:
        """Drop the cached result for one slug."""
        self._cache.pop(slug, None)

    def clear_cache(self) -> None:
        self._cache.clear()

    def fallback_text(self) -> str:
        return self._config.get("settingsDiscovery.fallbackText", DEFAULT_FALLBACK_TEXT)

    def fallback_color(self) -> str:
        return self._config.get("settingsDiscovery.fallbackTextColor", DEFAULT_FALLBACK_COLOR)

"""Orchestrates the plugin screen features against one document tree.

The orchestrator owns the single configuration store, persistent store and
resolver of a page session and hands them to each feature. External code
drives it through explicit calls: ``start`` once, ``rescan`` whenever the
plugin table was replaced, and the filter/edit-mode passthroughs for user
input.
"""

from typing import Any, Callable
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag
from loguru import logger
from PySide6.QtCore import QObject, Signal

from .discovery import SettingsDiscoveryResolver
from .features import (
    EditMode,
    Entry,
    FilterEngine,
    LinkOrderingEngine,
    Notifier,
    collect_entries,
)
from .features.dom import has_class, is_displayed, new_tag, set_displayed
from .features.edit_mode import EDIT_TOGGLE_ID
from .settings import ConfigurationStore, PersistentStore
from .settings.defaults import CONFIG_VERSION

DISCOVERED_CLASS = "bps-discovered"
NO_SETTINGS_CLASS = "bps-no-settings"
SETTINGS_LABEL = "Settings"
CONFIG_LINK_ID = "bps-config-link"
CONFIG_PANEL_ID = "bps-config-panel"
CONFIG_CONTENT_ID = "bps-config-content"
IMPORT_EXPORT_ID = "bps-import-export-data"

FEATURE_NAMES = (
    "linkReordering",
    "settingsDiscovery",
    "pluginFiltering",
    "editMode",
    "configPanel",
)


class PluginsScreen(QObject):
    """Applies discovery, link ordering and filtering to a plugins page.

    Signals:
        initialized: Emitted once after the first successful start (version: str)
        filter_changed: Emitted after each filter application (term: str, visible_count: int)
        edit_mode_enabled: Emitted when edit mode is switched on
        edit_mode_disabled: Emitted when edit mode is switched off
    """

    initialized = Signal(str)
    filter_changed = Signal(str, int)
    edit_mode_enabled = Signal()
    edit_mode_disabled = Signal()

    def __init__(
        self,
        document: BeautifulSoup | None,
        host_config: dict[str, Any] | None = None,
        backend: Any = None,
        page_url: str | None = None,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            document: Parsed plugins page, or None when no tree is available
            host_config: Site-level configuration layer
            backend: Key-value backend for persistence (None disables it)
            page_url: URL of the page, used for same-origin checks
            parent: Parent QObject
        """
        super().__init__(parent)
        self._document = document
        self.version = CONFIG_VERSION

        self.storage = PersistentStore(backend)
        self.config = ConfigurationStore(self.storage, host_config)
        self._page_url = page_url or self.config.get("page.url")

        self.resolver = SettingsDiscoveryResolver(self.config, page_url=self._page_url)
        self.link_ordering = LinkOrderingEngine(self.config, self.storage)
        self.filter = FilterEngine(self.config, self)
        self.notifier = Notifier(document, self.config, self)
        self.edit_mode = EditMode(document, self.storage, self.notifier, self)

        self.filter.filter_changed.connect(self.filter_changed)
        self.edit_mode.edit_mode_enabled.connect(self.edit_mode_enabled)
        self.edit_mode.edit_mode_disabled.connect(self.edit_mode_disabled)

        self._entries: list[Entry] = []
        self._initialized = False
        self._ui_mounted = False

    @property
    def document(self) -> BeautifulSoup | None:
        return self._document

    @property
    def entries(self) -> list[Entry]:
        return list(self._entries)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ── lifecycle ────────────────────────────────────────────────────

    def is_plugins_page(self) -> bool:
        if self._document is None:
            return False
        if self._page_url and "plugins.php" in urlsplit(self._page_url).path:
            return True
        table = self.config.get("selectors.table", "table.plugins")
        return self._document.select_one(table) is not None

    def start(self) -> bool:
        """Apply every enabled feature and mount the UI controls once."""
        if self._initialized:
            logger.debug("Plugins screen already initialized")
            return True

        logger.info(f"Initializing plugins screen v{self.version}")
        if self._document is None:
            logger.warning("No document tree available, skipping initialization")
            return False
        if not self.is_plugins_page():
            logger.info("Not on the plugins page, skipping initialization")
            return False

        try:
            self._apply_features()
            self._mount_ui()
        except Exception as e:
            logger.error(f"Plugins screen initialization error: {e}")
            return False

        self._initialized = True
        logger.info(f"Plugins screen initialized with {len(self._entries)} entries")
        self.initialized.emit(self.version)
        return True

    def rescan(self) -> None:
        """Re-collect rows and re-apply features after the table changed.

        UI controls mounted by ``start`` are left alone.
        """
        if not self._initialized:
            self.start()
            return
        logger.debug("Plugin table changed, re-applying features")
        self._apply_features()
        if self.edit_mode.active:
            self.edit_mode.render(self._entries)

    def _for_each_entry(self, feature: str, action: Callable[[Entry], None]) -> None:
        for entry in self._entries:
            try:
                action(entry)
            except Exception as e:
                logger.error(f"{feature} failed for {entry.slug}: {e}")

    def _apply_features(self) -> None:
        self._entries = collect_entries(self._document, self.config)
        self.resolver.attach(self._document)

        # Discovery first: the link it inserts has to take part in ordering
        if self.config.get("features.settingsDiscovery", True):
            self._for_each_entry("Settings discovery", self.apply_settings_discovery)

        if self.config.get("features.linkReordering", True):
            self._for_each_entry(
                "Link reordering", lambda entry: self.link_ordering.apply([entry])
            )

        self.filter.set_entries(self._entries)
        if self.config.get("features.pluginFiltering", True):
            self.filter.mount(self._document)
            if self.filter.term:
                self.filter.reapply()

    # ── settings discovery ───────────────────────────────────────────

    def _has_native_settings_link(self, actions: Tag) -> bool:
        for link in actions.find_all("a"):
            if link.find_parent("span", class_=DISCOVERED_CLASS) is not None:
                continue
            if link.get_text().strip().lower() == SETTINGS_LABEL.lower():
                return True
        span = actions.select_one("span.settings")
        return (
            span is not None
            and not has_class(span, DISCOVERED_CLASS)
            and span.find("a") is not None
        )

    def apply_settings_discovery(self, entry: Entry) -> None:
        """Give ``entry`` a Settings link, or the "no settings" placeholder."""
        if entry.actions is None:
            logger.debug(f"No row actions for {entry.slug}; skipping discovery")
            return
        if self._has_native_settings_link(entry.actions):
            logger.debug(f"Settings link already exists for {entry.slug}")
            return

        url = self.storage.load_custom_settings_url(entry.slug)
        if not url:
            url = self.resolver.find_settings_url(entry)

        if url:
            content = new_tag(self._document, "a", text=SETTINGS_LABEL, href=url)
            marker = DISCOVERED_CLASS
        else:
            content = new_tag(
                self._document,
                "span",
                text=self.resolver.fallback_text(),
                style=f"color: {self.resolver.fallback_color()}",
            )
            marker = NO_SETTINGS_CLASS

        span = entry.actions.select_one("span.settings")
        if span is None:
            span = new_tag(self._document, "span")
            entry.actions.insert(0, span)
        span.clear()
        span["class"] = ["settings", marker]
        span.append(content)
        entry.refresh_links()

    # ── UI mounting ──────────────────────────────────────────────────

    def _self_row_actions(self) -> Tag | None:
        slug = self.config.get("selfSlug")
        row = self._document.find("tr", attrs={"data-slug": slug}) if slug else None
        if row is None:
            return None
        return row.select_one(self.config.get("selectors.actions", ".row-actions"))

    def _mount_ui(self) -> None:
        if self._ui_mounted:
            return
        self._ui_mounted = True

        panel = None
        if self.config.get("features.configPanel", True):
            panel = self._mount_config_panel()

        actions = self._self_row_actions()
        if actions is None:
            logger.debug("Own plugin row not found; no settings/edit links added")
            return

        if panel is not None:
            span = actions.select_one("span.settings")
            if span is None:
                span = new_tag(self._document, "span", classes="settings")
                deactivate = actions.select_one("span.deactivate")
                if deactivate is not None:
                    deactivate.insert_after(span)
                else:
                    actions.append(span)
            span.clear()
            span.append(
                new_tag(
                    self._document, "a", text=SETTINGS_LABEL, href=f"#{CONFIG_PANEL_ID}", id=CONFIG_LINK_ID
                )
            )

        if self.config.get("features.editMode", True):
            toggle = new_tag(self._document, "span", classes="bps-edit-toggle")
            toggle.append(new_tag(self._document, "a", text="Edit Mode", href="#", id=EDIT_TOGGLE_ID))
            actions.append(" | ")
            actions.append(toggle)

    def _mount_config_panel(self) -> Tag | None:
        """Insert the collapsed settings panel the own row's link points at."""
        existing = self._document.find(id=CONFIG_PANEL_ID)
        if existing is not None:
            return existing

        doc = self._document
        panel = new_tag(doc, "div", classes="bps-config-panel", id=CONFIG_PANEL_ID)
        panel.append(new_tag(doc, "h2", text="Better Plugins Screen"))
        content = new_tag(doc, "div", classes="bps-config-content", id=CONFIG_CONTENT_ID)
        set_displayed(content, False)

        features = new_tag(doc, "div", classes="bps-config-section")
        features.append(new_tag(doc, "h3", text="Features"))
        for name in FEATURE_NAMES:
            label = new_tag(doc, "label")
            checkbox = new_tag(doc, "input", type="checkbox", name=f"feature-{name}")
            if self.config.get(f"features.{name}", True):
                checkbox["checked"] = "checked"
            label.append(checkbox)
            label.append(f" {name}")
            features.append(label)
        content.append(features)

        transfer = new_tag(doc, "div", classes="bps-config-section")
        transfer.append(new_tag(doc, "h3", text="Import/Export Settings"))
        transfer.append(new_tag(doc, "textarea", classes="bps-import-export-textarea", id=IMPORT_EXPORT_ID))
        for button_id, text in (
            ("bps-export-btn", "Export"),
            ("bps-import-btn", "Import"),
            ("bps-reset-btn", "Reset to Defaults"),
        ):
            transfer.append(new_tag(doc, "button", classes="button", text=text, type="button", id=button_id))
        content.append(transfer)
        panel.append(content)

        table = doc.select_one(self.config.get("selectors.table", "table.plugins"))
        if table is not None:
            table.insert_before(panel)
        elif doc.body is not None:
            doc.body.append(panel)
        else:
            logger.warning("No plugin table or body found; config panel not mounted")
            return None
        logger.debug("Config panel mounted")
        return panel

    # ── public API ───────────────────────────────────────────────────

    def get_info(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "initialized": self._initialized,
            "entries": len(self._entries),
            "config": self.config.merged,
            "features": {name: self.config.get(f"features.{name}") for name in FEATURE_NAMES},
        }

    def enable_debug(self) -> None:
        self.config.set("debug.enabled", True)
        logger.info("Debug mode enabled")

    def disable_debug(self) -> None:
        self.config.set("debug.enabled", False)
        logger.info("Debug mode disabled")

    def reload_config(self) -> None:
        self.config.reload()
        self.resolver.clear_cache()

    def clear_storage(self) -> bool:
        return self.storage.clear()

    def export_settings(self) -> str:
        exported = self.config.export_config()
        field = self._document.find(id=IMPORT_EXPORT_ID) if self._document is not None else None
        if field is not None:
            field.string = exported
        return exported

    def toggle_config_panel(self) -> bool:
        """Show or hide the config panel body; returns whether it is now shown."""
        content = self._document.find(id=CONFIG_CONTENT_ID) if self._document is not None else None
        if content is None:
            logger.warning("Config panel not mounted")
            return False
        shown = not is_displayed(content)
        set_displayed(content, shown)
        return shown

    def import_settings(self, serialized: str) -> bool:
        if not serialized:
            self.notifier.show("Please paste settings JSON first", "error")
            return False
        if not self.config.import_config(serialized):
            self.notifier.show("Invalid settings JSON", "error")
            return False
        self.resolver.clear_cache()
        self.notifier.show("Settings imported successfully!", "success")
        self.rescan()
        return True

    def reset_settings(self) -> None:
        """Drop user preferences and every per-plugin override."""
        self.config.reset()
        self.storage.clear()
        self.resolver.clear_cache()
        self.notifier.show("Settings reset to defaults", "success")
        self.rescan()

    def revert_to_original_order(self) -> None:
        self.link_ordering.revert_to_original_order(self._entries)

    def toggle_edit_mode(self) -> bool:
        return self.edit_mode.toggle(self._entries)

    def save_custom_url(self, slug: str, url: str) -> bool:
        saved = self.edit_mode.save_custom_url(slug, url)
        if saved:
            self.resolver.forget(slug)
            self.rescan()
        return saved

    def save_notes(self, slug: str, notes: str) -> bool:
        return self.edit_mode.save_notes(slug, notes)

    def save_link_order(self, slug: str, order: str | list[str]) -> bool:
        saved = self.edit_mode.save_link_order(slug, order)
        if saved:
            self.rescan()
        return saved

    def on_filter_input(self, text: str) -> None:
        self.filter.on_input(text)

    def on_filter_key(self, key: str) -> None:
        self.filter.on_key(key)

    def on_filter_clear(self) -> int:
        return self.filter.clear()

    def render(self) -> str:
        """Return the current markup of the document."""
        return str(self._document) if self._document is not None else ""

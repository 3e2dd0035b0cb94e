"""Live filtering of plugin rows with debounced input handling."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from bs4 import BeautifulSoup, Tag
from loguru import logger
from PySide6.QtCore import QObject, QTimer, Signal

from .dom import add_class, new_tag, remove_class, set_displayed, visible_text
from .entries import Entry, find_edit_row, find_update_row

FILTERED_OUT_CLASS = "bps-filtered-out"
FILTER_INPUT_CLASS = "bps-filter-input"
FILTER_CLEAR_CLASS = "bps-filter-clear"
ESCAPE_KEY = "Escape"

DEFAULT_FIELDS = ("name", "slug", "description", "author")


class FilterState(Enum):
    IDLE = "idle"
    PENDING = "pending_debounce"
    APPLIED = "applied"


class Debouncer(QObject):
    """Runs ``callback`` with the latest submitted value once input settles.

    Every ``submit`` restarts the single-shot timer, so only the last value
    within the quiet period is delivered.
    """

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[[Any], None],
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._callback = callback
        self._pending: Any = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(interval_ms)))
        self._timer.timeout.connect(self._fire)

    @property
    def interval(self) -> int:
        return self._timer.interval()

    def set_interval(self, interval_ms: int) -> None:
        self._timer.setInterval(max(0, int(interval_ms)))

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def submit(self, value: Any) -> None:
        self._pending = value
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()
        self._pending = None

    def _fire(self) -> None:
        value, self._pending = self._pending, None
        self._callback(value)


class FilterEngine(QObject):
    """Shows the rows matching a search term and hides the rest.

    Signals:
        filter_changed: Emitted after every application (term: str, visible_count: int)
    """

    filter_changed = Signal(str, int)

    def __init__(self, config: Any, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._config = config
        self._entries: list[Entry] = []
        self._term = ""
        self._state = FilterState.IDLE
        self._mounted = False
        self._debouncer = Debouncer(self._config.get("filterBox.debounceMs", 300), self.apply, self)

    # ── state ────────────────────────────────────────────────────────

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def term(self) -> str:
        return self._term

    @property
    def entries(self) -> list[Entry]:
        return list(self._entries)

    def set_entries(self, entries: list[Entry]) -> None:
        self._entries = list(entries)

    # ── matching ─────────────────────────────────────────────────────

    @property
    def case_sensitive(self) -> bool:
        return bool(self._config.get("filterBox.caseSensitive", False))

    def normalize(self, term: str | None) -> str:
        term = term or ""
        return term if self.case_sensitive else term.lower()

    def field_value(self, entry: Entry, field: str) -> str:
        """Return the searchable text of one field of ``entry``."""
        if field == "name":
            return entry.name
        if field == "slug":
            return entry.slug
        if field in ("description", "author"):
            selector = self._config.get(f"selectors.{field}", f".plugin-{field}")
            element = entry.row.select_one(selector)
            if element is None:
                return ""
            hidden_classes = self._config.get("filterBox.hiddenClasses", ["hidden"]) or []
            return visible_text(element, hidden_classes)
        logger.debug(f"Unknown searchable field '{field}'")
        return ""

    def matches(self, entry: Entry, term: str) -> bool:
        """True when any searchable field contains the normalized ``term``."""
        if not term:
            return True
        fields = self._config.get("filterBox.searchableFields", list(DEFAULT_FIELDS)) or []
        for field in fields:
            value = self.field_value(entry, field)
            if not self.case_sensitive:
                value = value.lower()
            if term in value:
                return True
        return False

    # ── application ──────────────────────────────────────────────────

    def _set_entry_shown(self, entry: Entry, shown: bool) -> None:
        set_displayed(entry.row, shown)
        update_row = find_update_row(entry.row)
        if update_row is not None:
            set_displayed(update_row, shown)
        edit_row = find_edit_row(entry.row)
        if edit_row is not None:
            if shown:
                remove_class(edit_row, FILTERED_OUT_CLASS)
            else:
                add_class(edit_row, FILTERED_OUT_CLASS)

    def apply(self, term: str | None) -> int:
        """Filter the rows now and publish the visible count."""
        normalized = self.normalize(term)
        visible = 0
        for entry in self._entries:
            shown = self.matches(entry, normalized)
            self._set_entry_shown(entry, shown)
            if shown:
                visible += 1

        self._term = normalized
        self._state = FilterState.APPLIED
        logger.debug(f'Filter: "{normalized}", visible: {visible}')
        self.filter_changed.emit(normalized, visible)
        return visible

    def reapply(self) -> int:
        """Apply the current term again, e.g. after the rows changed."""
        return self.apply(self._term)

    # ── input events ─────────────────────────────────────────────────

    def on_input(self, text: str) -> None:
        """Handle a keystroke: (re)start the debounce window."""
        self._debouncer.set_interval(self._config.get("filterBox.debounceMs", 300))
        self._state = FilterState.PENDING
        self._debouncer.submit(text)

    def on_key(self, key: str) -> None:
        if key == ESCAPE_KEY:
            self.clear()

    def clear(self) -> int:
        """Drop any pending input and show every row immediately."""
        self._debouncer.cancel()
        return self.apply("")

    def is_pending(self) -> bool:
        return self._debouncer.is_pending()

    # ── mounting ─────────────────────────────────────────────────────

    def _decorate_input(self, field: Tag) -> None:
        add_class(field, FILTER_INPUT_CLASS)
        field["placeholder"] = self._config.get("filterBox.placeholder", "Search plugins")
        field["aria-label"] = "Filter plugins"

    def _clear_button(self, document: BeautifulSoup) -> Tag:
        return new_tag(
            document,
            "button",
            classes=FILTER_CLEAR_CLASS,
            text="×",
            type="button",
            title="Clear filter",
            **{"aria-label": "Clear filter"},
        )

    def mount(self, document: BeautifulSoup) -> Tag | None:
        """Attach the filter controls to the page once.

        The native search input is enhanced in place. Without one, a filter
        container is inserted in front of the plugins table.
        """
        existing = document.select_one(f".{FILTER_INPUT_CLASS}")
        if self._mounted or existing is not None:
            self._mounted = True
            return existing

        selector = self._config.get("selectors.searchInput")
        native = document.select_one(selector) if selector else None
        if native is not None:
            self._decorate_input(native)
            native.insert_after(self._clear_button(document))
            self._mounted = True
            logger.debug("Native search box enhanced with live filtering")
            return native

        table = document.select_one(self._config.get("selectors.table", "table.plugins"))
        if table is None:
            logger.warning("No search box or plugin table found; filter not mounted")
            return None

        container = new_tag(document, "div", classes="bps-filter-container")
        field = new_tag(document, "input", type="text")
        self._decorate_input(field)
        container.append(field)
        container.append(self._clear_button(document))
        table.insert_before(container)
        self._mounted = True
        logger.debug("Filter box inserted above the plugin table")
        return field

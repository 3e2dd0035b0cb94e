"""Per-plugin edit rows and transient notifications."""

from __future__ import annotations

from typing import Any

from bs4 import BeautifulSoup, Tag
from loguru import logger
from PySide6.QtCore import QObject, QTimer, Signal

from .dom import add_class, new_tag, remove_class
from .entries import EDIT_ROW_CLASS, Entry, find_edit_row, find_update_row

EDIT_MODE_BODY_CLASS = "bps-edit-mode"
EDIT_TOGGLE_ID = "bps-edit-mode-toggle"
NOTIFICATION_CLASS = "bps-notification"


class Notifier(QObject):
    """Shows one notification at a time and removes it after a delay.

    Signals:
        notified: Emitted for every notification (message: str, kind: str)
    """

    notified = Signal(str, str)

    def __init__(
        self,
        document: BeautifulSoup | None,
        config: Any,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._document = document
        self._config = config
        self._current: Tag | None = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.dismiss)

    @property
    def current(self) -> Tag | None:
        return self._current

    def show(self, message: str, kind: str = "info") -> Tag | None:
        """Display ``message``; returns None when there is no tree to show it in."""
        self.dismiss()
        if self._document is None:
            logger.warning(f"No document tree for notification: [{kind}] {message}")
            return None
        for stale in self._document.select(f".{NOTIFICATION_CLASS}"):
            stale.extract()

        notification = new_tag(
            self._document,
            "div",
            classes=f"{NOTIFICATION_CLASS} {NOTIFICATION_CLASS}-{kind}",
            text=message,
        )
        host = self._document.body or self._document
        host.append(notification)
        self._current = notification

        self._timer.setInterval(int(self._config.get("notifications.durationMs", 3000)))
        self._timer.start()
        logger.info(f"[{kind}] {message}")
        self.notified.emit(message, kind)
        return notification

    def dismiss(self) -> None:
        self._timer.stop()
        if self._current is not None:
            self._current.extract()
            self._current = None


class EditMode(QObject):
    """Inline editor rows for per-plugin overrides.

    Signals:
        edit_mode_enabled: Emitted when the edit rows are shown
        edit_mode_disabled: Emitted when the edit rows are removed
    """

    edit_mode_enabled = Signal()
    edit_mode_disabled = Signal()

    def __init__(
        self,
        document: BeautifulSoup | None,
        storage: Any,
        notifier: Notifier | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._document = document
        self._storage = storage
        self._notifier = notifier
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def _notify(self, message: str, kind: str = "info") -> None:
        if self._notifier is not None:
            self._notifier.show(message, kind)

    def toggle(self, entries: list[Entry]) -> bool:
        if self._active:
            self.disable()
        else:
            self.enable(entries)
        return self._active

    def enable(self, entries: list[Entry]) -> None:
        self._active = True
        body = self._body()
        if body is not None:
            add_class(body, EDIT_MODE_BODY_CLASS)
        self._set_toggle_label("Exit Edit Mode")
        self.render(entries)
        self._notify("Edit Mode enabled - hover over plugins to customize")
        self.edit_mode_enabled.emit()

    def disable(self) -> None:
        self._active = False
        body = self._body()
        if body is not None:
            remove_class(body, EDIT_MODE_BODY_CLASS)
        self._set_toggle_label("Edit Mode")
        self.remove()
        self._notify("Edit Mode disabled")
        self.edit_mode_disabled.emit()

    def _body(self) -> Tag | None:
        return self._document.body if self._document is not None else None

    def _set_toggle_label(self, label: str) -> None:
        if self._document is None:
            return
        toggle = self._document.find(id=EDIT_TOGGLE_ID)
        if toggle is not None:
            toggle.string = label

    # ── rows ─────────────────────────────────────────────────────────

    def _control(self, name: str, label: str, value: str, placeholder: str, button: str) -> Tag:
        control = new_tag(self._document, "div", classes="bps-edit-control")
        caption = new_tag(self._document, "label")
        caption.append(new_tag(self._document, "strong", text=f"{label}:"))
        caption.append(
            new_tag(
                self._document,
                "input",
                classes=f"bps-{name}-input",
                type="text",
                value=value,
                placeholder=placeholder,
            )
        )
        control.append(caption)
        control.append(
            new_tag(
                self._document,
                "button",
                classes=f"button button-small bps-save-{name}",
                text=button,
                type="button",
            )
        )
        return control

    def build_row(self, slug: str) -> Tag:
        settings = self._storage.load_plugin_settings(slug, {}) if self._storage is not None else {}
        row = new_tag(self._document, "tr", classes=EDIT_ROW_CLASS, **{"data-plugin-slug": slug})
        cell = new_tag(self._document, "td", classes="bps-edit-controls-container", colspan="100")
        grid = new_tag(self._document, "div", classes="bps-edit-controls-grid")
        grid.append(
            self._control(
                "custom-url",
                "Custom Settings URL",
                settings.get("customSettingsUrl", ""),
                "admin.php?page=...",
                "Save URL",
            )
        )
        grid.append(
            self._control(
                "link-order",
                "Link Order",
                ", ".join(settings.get("linkOrder", [])),
                "deactivate, settings, *",
                "Save Order",
            )
        )
        grid.append(
            self._control(
                "notes",
                "Notes",
                settings.get("notes", ""),
                "Add notes about this plugin...",
                "Save Notes",
            )
        )
        wrapper = new_tag(self._document, "div", classes="bps-edit-controls")
        wrapper.append(grid)
        cell.append(wrapper)
        row.append(cell)
        return row

    def render(self, entries: list[Entry]) -> int:
        """Insert an edit row under every entry that lacks one."""
        created = 0
        for entry in entries:
            if find_edit_row(entry.row) is not None:
                continue
            anchor = find_update_row(entry.row)
            (anchor if anchor is not None else entry.row).insert_after(self.build_row(entry.slug))
            created += 1
        logger.debug(f"Rendered {created} edit rows")
        return created

    def remove(self) -> None:
        if self._document is None:
            return
        for row in self._document.select(f"tr.{EDIT_ROW_CLASS}"):
            row.extract()

    # ── persistence ──────────────────────────────────────────────────

    def _report(self, saved: bool, what: str) -> bool:
        if saved:
            self._notify(f"{what} saved!", "success")
        else:
            self._notify(f"Could not save {what.lower()}", "error")
        return saved

    def save_custom_url(self, slug: str, url: str) -> bool:
        saved = self._storage is not None and self._storage.save_custom_settings_url(
            slug, url.strip()
        )
        return self._report(saved, "Custom URL")

    def save_notes(self, slug: str, notes: str) -> bool:
        saved = self._storage is not None and self._storage.save_plugin_notes(slug, notes)
        return self._report(saved, "Notes")

    def save_link_order(self, slug: str, order: str | list[str]) -> bool:
        """Persist a link order given as a list or a comma separated string."""
        tokens = order.split(",") if isinstance(order, str) else list(order)
        tokens = [t.strip() for t in tokens if isinstance(t, str) and t.strip()]
        saved = self._storage is not None and self._storage.save_link_order(slug, tokens)
        return self._report(saved, "Link order")

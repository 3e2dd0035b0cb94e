"""Tests for edit mode rows and notifications."""

import pytest
from PySide6.QtTest import QTest

from better_plugins_screen.features.edit_mode import (
    EDIT_MODE_BODY_CLASS,
    NOTIFICATION_CLASS,
    EditMode,
    Notifier,
)
from better_plugins_screen.features.entries import collect_entries, find_edit_row


@pytest.fixture
def entries(document, config):
    return collect_entries(document, config)


@pytest.fixture
def notifier(qapp, document, config):
    config.set("notifications.durationMs", 30)
    return Notifier(document, config)


@pytest.fixture
def edit_mode(document, storage, notifier):
    return EditMode(document, storage, notifier)


# ── notifications ────────────────────────────────────────────────────


class TestNotifier:
    def test_show_appends_to_body(self, notifier, document):
        notification = notifier.show("Saved", "success")
        assert notification.parent is document.body
        assert notification["class"] == [NOTIFICATION_CLASS, f"{NOTIFICATION_CLASS}-success"]
        assert notification.get_text() == "Saved"

    def test_single_notification(self, notifier, document):
        notifier.show("one")
        notifier.show("two")
        shown = document.select(f".{NOTIFICATION_CLASS}")
        assert [n.get_text() for n in shown] == ["two"]

    def test_removed_after_duration(self, notifier, document):
        notifier.show("bye")
        QTest.qWait(120)
        assert document.select(f".{NOTIFICATION_CLASS}") == []
        assert notifier.current is None

    def test_signal(self, notifier):
        received = []
        notifier.notified.connect(lambda message, kind: received.append((message, kind)))
        notifier.show("Hello", "error")
        assert received == [("Hello", "error")]

    def test_without_document(self, qapp, config):
        notifier = Notifier(None, config)
        assert notifier.show("Nowhere", "error") is None
        assert notifier.current is None


# ── toggling ─────────────────────────────────────────────────────────


class TestToggle:
    def test_enable_renders_rows(self, edit_mode, entries, document):
        edit_mode.enable(entries)
        assert edit_mode.active
        assert EDIT_MODE_BODY_CLASS in document.body["class"]
        assert len(document.select("tr.bps-edit-row")) == len(entries)

    def test_edit_row_placed_after_update_row(self, edit_mode, entries):
        edit_mode.enable(entries)
        cache = entries[0]
        update_row = cache.row.find_next_sibling("tr")
        assert "plugin-update-tr" in update_row["class"]
        assert update_row.find_next_sibling("tr") is find_edit_row(cache.row)

    def test_render_is_idempotent(self, edit_mode, entries, document):
        edit_mode.enable(entries)
        assert edit_mode.render(entries) == 0
        assert len(document.select("tr.bps-edit-row")) == len(entries)

    def test_disable_removes_rows(self, edit_mode, entries, document):
        edit_mode.enable(entries)
        edit_mode.disable()
        assert not edit_mode.active
        assert document.select("tr.bps-edit-row") == []
        assert EDIT_MODE_BODY_CLASS not in document.body.get("class", [])

    def test_toggle_signals(self, edit_mode, entries):
        events = []
        edit_mode.edit_mode_enabled.connect(lambda: events.append("on"))
        edit_mode.edit_mode_disabled.connect(lambda: events.append("off"))
        assert edit_mode.toggle(entries) is True
        assert edit_mode.toggle(entries) is False
        assert events == ["on", "off"]

    def test_rows_prefilled_from_storage(self, edit_mode, entries, storage, document):
        storage.save_custom_settings_url("lonely", "admin.php?page=lonely")
        storage.save_link_order("lonely", ["settings", "*"])
        storage.save_plugin_notes("lonely", "remember me")
        edit_mode.enable(entries)

        row = document.select_one('tr.bps-edit-row[data-plugin-slug="lonely"]')
        assert row.select_one(".bps-custom-url-input")["value"] == "admin.php?page=lonely"
        assert row.select_one(".bps-link-order-input")["value"] == "settings, *"
        assert row.select_one(".bps-notes-input")["value"] == "remember me"
        assert row.td["colspan"] == "100"


# ── saving ───────────────────────────────────────────────────────────


class TestSave:
    def test_save_custom_url(self, edit_mode, storage, notifier):
        assert edit_mode.save_custom_url("lonely", "  admin.php?page=x ") is True
        assert storage.load_custom_settings_url("lonely") == "admin.php?page=x"
        assert notifier.current.get_text() == "Custom URL saved!"

    def test_save_link_order_from_string(self, edit_mode, storage):
        assert edit_mode.save_link_order("lonely", "deactivate, , settings,*") is True
        assert storage.load_link_order("lonely") == ["deactivate", "settings", "*"]

    def test_save_link_order_from_list(self, edit_mode, storage):
        edit_mode.save_link_order("lonely", [" settings ", ""])
        assert storage.load_link_order("lonely") == ["settings"]

    def test_save_notes(self, edit_mode, storage):
        edit_mode.save_notes("lonely", "hello")
        assert storage.load_plugin_notes("lonely") == "hello"

    def test_save_without_storage_reports_error(self, document, notifier):
        edit_mode = EditMode(document, None, notifier)
        assert edit_mode.save_notes("lonely", "x") is False
        assert f"{NOTIFICATION_CLASS}-error" in notifier.current["class"]

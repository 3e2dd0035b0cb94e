"""Tests for collecting plugin entries from the page."""

from bs4 import BeautifulSoup

from better_plugins_screen.features.entries import (
    ActionLink,
    collect_entries,
    find_edit_row,
    find_update_row,
)


class TestCollectEntries:
    def test_active_rows_only(self, document, config):
        slugs = [entry.slug for entry in collect_entries(document, config)]
        assert slugs == ["cache-plugin", "other-thing", "seo-tools", "lonely"]

    def test_fields(self, document, config):
        cache = collect_entries(document, config)[0]
        assert cache.name == "Cache Plugin"
        assert cache.file == "cache-plugin/cache-plugin.php"
        assert "Speeds up every page." in cache.description_html
        assert cache.author == "By Jane Doe"
        assert [link.classes for link in cache.links] == [("deactivate",), ("edit",)]

    def test_self_row_excluded_by_configured_slug(self, document, config):
        config.set("selfSlug", "lonely")
        slugs = [entry.slug for entry in collect_entries(document, config)]
        assert "lonely" not in slugs
        assert "a-better-plugins-screen" in slugs

    def test_duplicate_slugs_collected_once(self, config):
        document = BeautifulSoup(
            '<table class="plugins"><tbody id="the-list">'
            '<tr class="active" data-slug="a"></tr>'
            '<tr class="active" data-slug="a"></tr>'
            '<tr class="active"></tr>'
            "</tbody></table>",
            "html.parser",
        )
        assert [entry.slug for entry in collect_entries(document, config)] == ["a"]

    def test_no_table(self, config):
        assert collect_entries(BeautifulSoup("<p>hi</p>", "html.parser"), config) == []


class TestActionLink:
    def test_from_element(self):
        span = BeautifulSoup(
            '<span class="settings extra" data-bps-original-order="2">'
            '<a href="s.php">Settings</a> | </span>',
            "html.parser",
        ).span
        link = ActionLink.from_element(span)
        assert link.classes == ("settings", "extra")
        assert link.href == "s.php"
        assert link.label == "Settings"
        assert link.original_index == 2
        assert link.has_class("extra")
        assert link.class_name == "settings extra"

    def test_bad_original_index(self):
        span = BeautifulSoup('<span data-bps-original-order="x">t</span>', "html.parser").span
        link = ActionLink.from_element(span)
        assert link.original_index is None
        assert link.href is None


class TestNeighbourRows:
    def test_update_row(self, document, config):
        cache, other = collect_entries(document, config)[:2]
        assert find_update_row(cache.row) is not None
        assert find_update_row(other.row) is None

    def test_edit_row_after_update_row(self, document, config):
        cache = collect_entries(document, config)[0]
        edit_row = BeautifulSoup(
            '<tr class="bps-edit-row" data-plugin-slug="cache-plugin"></tr>', "html.parser"
        ).tr
        find_update_row(cache.row).insert_after(edit_row)
        assert find_edit_row(cache.row) is edit_row

    def test_edit_row_for_other_slug_ignored(self, document, config):
        other = collect_entries(document, config)[1]
        edit_row = BeautifulSoup(
            '<tr class="bps-edit-row" data-plugin-slug="cache-plugin"></tr>', "html.parser"
        ).tr
        other.row.insert_after(edit_row)
        assert find_edit_row(other.row) is None

"""Plugin entries collected from the registry view."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag
from loguru import logger

from .dom import has_class

UPDATE_ROW_CLASS = "plugin-update-tr"
EDIT_ROW_CLASS = "bps-edit-row"
ORIGINAL_ORDER_ATTR = "data-bps-original-order"
ORIGINAL_CLASS_ATTR = "data-bps-original-class"


@dataclass
class ActionLink:
    """One action span (e.g. ``deactivate``, ``settings``) of an entry."""

    element: Tag
    classes: tuple[str, ...]
    href: str | None
    label: str
    original_index: int | None = None

    @property
    def class_name(self) -> str:
        return " ".join(self.classes)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @classmethod
    def from_element(cls, element: Tag) -> "ActionLink":
        anchor = element.find("a")
        original = element.get(ORIGINAL_ORDER_ATTR)
        try:
            original_index = int(original) if original is not None else None
        except ValueError:
            original_index = None
        return cls(
            element=element,
            classes=tuple(element.get("class") or ()),
            href=anchor.get("href") if anchor is not None else None,
            label=element.get_text().replace("|", "").strip(),
            original_index=original_index,
        )


@dataclass
class Entry:
    """A plugin row of the registry view."""

    slug: str
    row: Tag
    name: str = ""
    file: str = ""
    description_html: str = ""
    author: str = ""
    actions: Tag | None = None
    links: list[ActionLink] = field(default_factory=list)

    def refresh_links(self) -> list[ActionLink]:
        """Re-read the action spans from the tree."""
        self.links = action_links(self.actions) if self.actions is not None else []
        return self.links


def action_links(container: Tag) -> list[ActionLink]:
    """Return the direct child spans of an actions container, in tree order."""
    return [ActionLink.from_element(span) for span in container.find_all("span", recursive=False)]


def is_synthetic_row(row: Tag) -> bool:
    return has_class(row, UPDATE_ROW_CLASS) or has_class(row, EDIT_ROW_CLASS)


def entry_from_row(row: Tag, selectors: dict[str, str]) -> Entry | None:
    """Build an Entry from a table row, or None when the row has no slug."""
    slug = row.get("data-slug")
    if not slug:
        return None

    title = row.select_one(selectors.get("title", ".plugin-title strong"))
    description = row.select_one(selectors.get("description", ".plugin-description"))
    author = row.select_one(selectors.get("author", ".plugin-author"))
    actions = row.select_one(selectors.get("actions", ".row-actions"))

    entry = Entry(
        slug=slug,
        row=row,
        name=title.get_text().strip() if title is not None else "",
        file=row.get("data-plugin") or "",
        description_html=description.decode_contents() if description is not None else "",
        author=author.get_text().strip() if author is not None else "",
        actions=actions,
    )
    entry.refresh_links()
    return entry


def collect_entries(document: BeautifulSoup, config: Any) -> list[Entry]:
    """Collect the entry rows to manage.

    Update banners, edit rows and this tool's own row are excluded.
    """
    selectors = config.get("selectors", {}) or {}
    if document.select_one(selectors.get("table", "table.plugins")) is None:
        logger.debug("Plugin table not found")
        return []

    self_slug = config.get("selfSlug")
    entries: list[Entry] = []
    seen: set[str] = set()
    for row in document.select(selectors.get("rows", "table.plugins #the-list tr.active")):
        if is_synthetic_row(row) or row.get("data-slug") == self_slug:
            continue
        entry = entry_from_row(row, selectors)
        if entry is None or entry.slug in seen:
            continue
        seen.add(entry.slug)
        entries.append(entry)

    logger.debug(f"Collected {len(entries)} plugin rows")
    return entries


def _next_row(row: Tag) -> Tag | None:
    sibling = row.find_next_sibling()
    return sibling if isinstance(sibling, Tag) and sibling.name == "tr" else None


def find_update_row(row: Tag) -> Tag | None:
    """Return the update banner row that directly follows ``row``."""
    candidate = _next_row(row)
    if candidate is not None and has_class(candidate, UPDATE_ROW_CLASS):
        return candidate
    return None


def find_edit_row(row: Tag) -> Tag | None:
    """Return the edit row for ``row``, after its update row if any."""
    slug = row.get("data-slug")
    if not slug:
        return None
    update_row = find_update_row(row)
    candidate = _next_row(update_row if update_row is not None else row)
    if (
        candidate is not None
        and has_class(candidate, EDIT_ROW_CLASS)
        and candidate.get("data-plugin-slug") == slug
    ):
        return candidate
    return None

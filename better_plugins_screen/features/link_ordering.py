"""Deterministic ordering of a plugin row's action links."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from bs4 import NavigableString, Tag
from loguru import logger

from ..settings.defaults import WILDCARD
from .entries import (
    ORIGINAL_CLASS_ATTR,
    ORIGINAL_ORDER_ATTR,
    ActionLink,
    Entry,
    action_links,
)

SEPARATOR = " | "
NEW_ORDER_ATTR = "data-bps-new-order"

_PIPE = re.compile(r"\s*\|\s*")


@dataclass(frozen=True)
class LinkOrderSpec:
    """Ordered link class names, with at most one ``*`` wildcard."""

    tokens: tuple[str, ...]

    @classmethod
    def parse(cls, tokens: Iterable[Any]) -> "LinkOrderSpec":
        cleaned: list[str] = []
        for token in tokens or ():
            if not isinstance(token, str) or not token.strip():
                continue
            token = token.strip()
            if token == WILDCARD and WILDCARD in cleaned:
                logger.warning("Link order has more than one wildcard; ignoring extras")
                continue
            cleaned.append(token)
        return cls(tuple(cleaned))

    @property
    def has_wildcard(self) -> bool:
        return WILDCARD in self.tokens


def compute_order(links: list[ActionLink], spec: LinkOrderSpec) -> list[ActionLink]:
    """Arrange ``links`` according to ``spec``.

    Tokens are walked once. A literal token places the first not yet placed
    link carrying that class; a token with no match contributes nothing. The
    wildcard places every link not yet placed, in original relative order,
    at the point it is reached, so literals after it only pick up links it
    could not have seen. Links still unplaced at the end are appended.
    """
    remaining = list(links)
    ordered: list[ActionLink] = []
    for token in spec.tokens:
        if token == WILDCARD:
            ordered.extend(remaining)
            remaining = []
            continue
        match = next((link for link in remaining if link.has_class(token)), None)
        if match is not None:
            remaining.remove(match)
            ordered.append(match)

    ordered.extend(remaining)
    return ordered


def record_original_order(container: Tag) -> None:
    """Stamp the pre-reorder position and class of each action span.

    Spans already stamped keep their values; new ones are numbered after
    the highest existing index.
    """
    spans = container.find_all("span", recursive=False)
    stamped = [int(s[ORIGINAL_ORDER_ATTR]) for s in spans if s.get(ORIGINAL_ORDER_ATTR, "").isdigit()]
    next_index = max(stamped, default=-1) + 1
    for span in spans:
        if not span.get(ORIGINAL_ORDER_ATTR, "").isdigit():
            span[ORIGINAL_ORDER_ATTR] = str(next_index)
            next_index += 1
        if not span.has_attr(ORIGINAL_CLASS_ATTR):
            span[ORIGINAL_CLASS_ATTR] = " ".join(span.get("class") or [])


def strip_separators(container: Tag) -> None:
    """Remove the ``|`` separators around and inside the action spans."""
    for child in list(container.children):
        if isinstance(child, NavigableString):
            child.extract()
    for span in container.find_all("span", recursive=False):
        for child in list(span.children):
            if type(child) is not NavigableString or "|" not in child:
                continue
            cleaned = _PIPE.sub("", str(child))
            if cleaned:
                child.replace_with(cleaned)
            else:
                child.extract()


def relink(container: Tag, links: list[ActionLink]) -> None:
    """Append ``links`` to ``container`` in order, separated by pipes."""
    for link in links:
        link.element.extract()
    for index, link in enumerate(links):
        if index > 0:
            container.append(NavigableString(SEPARATOR))
        link.element[NEW_ORDER_ATTR] = str(index)
        container.append(link.element)


def _by_original_index(links: list[ActionLink]) -> list[ActionLink]:
    # sorted() is stable, so unstamped links keep their tree order at the end
    return sorted(
        links,
        key=lambda link: link.original_index if link.original_index is not None else float("inf"),
    )


class LinkOrderingEngine:
    """Applies per-plugin or default link orders to entry rows."""

    def __init__(self, config: Any, storage: Any = None) -> None:
        self._config = config
        self._storage = storage

    def default_spec(self) -> LinkOrderSpec:
        return LinkOrderSpec.parse(
            self._config.get("linkReordering.defaultOrder", ["deactivate", "settings", WILDCARD])
        )

    def spec_for(self, slug: str) -> LinkOrderSpec:
        """Return the persisted order for ``slug`` or the configured default."""
        if self._storage is not None and self._config.get("linkReordering.persistOrder", True):
            custom = self._storage.load_link_order(slug)
            if custom:
                spec = LinkOrderSpec.parse(custom)
                if spec.tokens:
                    return spec
        return self.default_spec()

    def save_order(self, slug: str, tokens: Iterable[str]) -> bool:
        if self._storage is None:
            return False
        return self._storage.save_link_order(slug, list(LinkOrderSpec.parse(tokens).tokens))

    def reorder(self, container: Tag, spec: LinkOrderSpec) -> list[ActionLink]:
        """Reorder the spans of ``container`` in place; returns the new order."""
        record_original_order(container)
        strip_separators(container)
        links = _by_original_index(action_links(container))
        ordered = compute_order(links, spec)
        relink(container, ordered)
        return ordered

    def apply(self, entries: list[Entry]) -> None:
        for entry in entries:
            if entry.actions is None:
                logger.debug(f"No row actions for {entry.slug}; skipping reorder")
                continue
            self.reorder(entry.actions, self.spec_for(entry.slug))
            entry.refresh_links()

    def revert_to_original_order(self, entries: list[Entry]) -> None:
        """Restore every entry's links to their recorded original order."""
        for entry in entries:
            if entry.actions is None:
                continue
            strip_separators(entry.actions)
            relink(entry.actions, _by_original_index(action_links(entry.actions)))
            entry.refresh_links()

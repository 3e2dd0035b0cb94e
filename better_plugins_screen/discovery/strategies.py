"""Heuristic strategies that propose settings URLs for a plugin entry.

Each strategy yields candidate URLs in preference order. Validation and
short-circuiting happen in the resolver, so a strategy never needs to know
whether its candidates are acceptable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from bs4 import Tag

from ..features.dom import parse_fragment
from ..features.entries import Entry

_SEPARATORS = re.compile(r"[-_]")
_CAMEL_BOUNDARY = re.compile(r"[-_]+(.?)")
_PATH_SPLIT = re.compile(r"[\\/]")

SETTINGS_LABEL = "settings"


@dataclass
class DiscoveryContext:
    """What strategies may look at besides the entry itself."""

    navigation: Tag | None = None
    manual_dictionary: dict[str, str] = field(default_factory=dict)
    file_extension: str = ".php"

    def links(self) -> list[Tag]:
        if self.navigation is None:
            return []
        return self.navigation.find_all("a")

    def first_href_containing(self, needle: str) -> str | None:
        """Return the href of the first navigation link containing ``needle``."""
        if not needle:
            return None
        for link in self.links():
            href = link.get("href")
            if href and needle in href:
                return href
        return None


def _text_contains(text: str, search: str) -> bool:
    return search.lower() in text.lower()


def to_camel_case(value: str) -> str:
    """``my-plugin_name`` -> ``myPluginName``."""
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), value)


def generate_filename_variations(file: str, extension: str = ".php") -> list[str]:
    """Derive candidate menu identifiers from a plugin file path.

    For every path segment, in order: the segment itself, hyphens as
    underscores, underscores as hyphens, separators removed, camel case.
    Duplicates are dropped, keeping the first occurrence.
    """
    if not file:
        return []
    if extension and file.endswith(extension):
        file = file[: -len(extension)]

    variations: dict[str, None] = {}
    for part in _PATH_SPLIT.split(file):
        if not part:
            continue
        for variation in (
            part,
            part.replace("-", "_"),
            part.replace("_", "-"),
            _SEPARATORS.sub("", part),
            to_camel_case(part),
        ):
            if variation:
                variations.setdefault(variation, None)
    return list(variations)


class DiscoveryStrategy:
    """Base class for discovery strategies.

    Subclasses set ``name`` (the configuration key under
    ``settingsDiscovery.searchMethods``) and implement ``candidates``.
    """

    name: str = ""

    def candidates(self, entry: Entry, context: DiscoveryContext) -> Iterator[str]:
        raise NotImplementedError


class ManualDictionaryStrategy(DiscoveryStrategy):
    name = "manualDictionary"

    def candidates(self, entry, context):
        url = context.manual_dictionary.get(entry.slug)
        if url:
            yield url


class SlugMatchStrategy(DiscoveryStrategy):
    name = "slugMatch"

    def candidates(self, entry, context):
        href = context.first_href_containing(entry.slug)
        if href:
            yield href


class NameMatchStrategy(DiscoveryStrategy):
    name = "nameMatch"

    def candidates(self, entry, context):
        if not entry.name:
            return
        for link in context.links():
            if _text_contains(link.get_text(), entry.name):
                href = link.get("href")
                if href:
                    yield href
                return


class FilenameMatchStrategy(DiscoveryStrategy):
    name = "filenameMatch"

    def candidates(self, entry, context):
        href = context.first_href_containing(entry.file)
        if href:
            yield href


class FilenameVariationsStrategy(DiscoveryStrategy):
    name = "filenameVariations"

    def candidates(self, entry, context):
        for variation in generate_filename_variations(entry.file, context.file_extension):
            href = context.first_href_containing(variation)
            if href:
                yield href


class DescriptionScanStrategy(DiscoveryStrategy):
    name = "descriptionScan"

    def candidates(self, entry, context):
        if not entry.description_html:
            return
        fragment = parse_fragment(entry.description_html)
        for link in fragment.find_all("a"):
            if _text_contains(link.get_text(), SETTINGS_LABEL):
                href = link.get("href")
                if href:
                    yield href
                return


def builtin_strategies() -> list[DiscoveryStrategy]:
    """Return one instance of every built-in strategy, in canonical order."""
    return [
        ManualDictionaryStrategy(),
        SlugMatchStrategy(),
        NameMatchStrategy(),
        FilenameMatchStrategy(),
        FilenameVariationsStrategy(),
        DescriptionScanStrategy(),
    ]

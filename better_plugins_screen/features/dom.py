"""Helpers for reading and mutating the BeautifulSoup document tree."""

from __future__ import annotations

from typing import Iterable

from bs4 import BeautifulSoup, NavigableString, Tag

# Elements that never render text
_NON_RENDERED = {"script", "style", "template", "head", "noscript"}


def parse_fragment(markup: str) -> BeautifulSoup:
    """Parse an HTML snippet into a standalone tree."""
    return BeautifulSoup(markup or "", "html.parser")


def new_tag(
    document: BeautifulSoup | Tag,
    name: str,
    /,
    classes: str = "",
    text: str | None = None,
    **attrs: str,
) -> Tag:
    """Create a detached tag owned by ``document``'s tree.

    ``classes`` is a space separated string, stored as a list the way the
    parser stores ``class`` so later class lookups behave the same.
    """
    root = document
    while root.parent is not None:
        root = root.parent
    if not isinstance(root, BeautifulSoup):
        root = BeautifulSoup("", "html.parser")
    tag = root.new_tag(name, attrs=attrs)
    if classes:
        tag["class"] = classes.split()
    if text is not None:
        tag.string = text
    return tag


def parse_style(tag: Tag) -> dict[str, str]:
    """Return the inline ``style`` declarations of ``tag``, lower-cased."""
    declarations: dict[str, str] = {}
    for declaration in (tag.get("style") or "").split(";"):
        name, sep, value = declaration.partition(":")
        if not sep:
            continue
        value = value.replace("!important", "").strip().lower()
        declarations[name.strip().lower()] = value
    return declarations


def write_style(tag: Tag, declarations: dict[str, str]) -> None:
    if declarations:
        tag["style"] = "; ".join(f"{k}: {v}" for k, v in declarations.items())
    elif tag.has_attr("style"):
        del tag["style"]


def set_displayed(tag: Tag, shown: bool) -> None:
    """Show or hide ``tag`` through its inline ``display`` declaration."""
    declarations = parse_style(tag)
    if shown:
        declarations.pop("display", None)
    else:
        declarations["display"] = "none"
    write_style(tag, declarations)


def is_displayed(tag: Tag) -> bool:
    return parse_style(tag).get("display") != "none"


def add_class(tag: Tag, name: str) -> None:
    classes = list(tag.get("class") or [])
    if name not in classes:
        classes.append(name)
        tag["class"] = classes


def remove_class(tag: Tag, name: str) -> None:
    classes = [c for c in (tag.get("class") or []) if c != name]
    if classes:
        tag["class"] = classes
    elif tag.has_attr("class"):
        del tag["class"]


def has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get("class") or [])


def _opacity_is_zero(value: str | None) -> bool:
    if value is None:
        return False
    try:
        return float(value.rstrip("%")) == 0
    except ValueError:
        return False


def _prunes_subtree(tag: Tag, hidden_classes: Iterable[str]) -> bool:
    if tag.name in _NON_RENDERED or tag.has_attr("hidden"):
        return True
    if any(has_class(tag, name) for name in hidden_classes):
        return True
    style = parse_style(tag)
    return style.get("display") == "none" or _opacity_is_zero(style.get("opacity"))


def visible_text(element: Tag, hidden_classes: Iterable[str] = ("hidden",)) -> str:
    """Return the text of ``element`` that would actually render.

    Subtrees that are not displayed or fully transparent are skipped.
    ``visibility`` inherits, so a descendant declaring ``visible`` shows
    again inside a ``hidden`` ancestor.
    """
    hidden_classes = tuple(hidden_classes)
    parts: list[str] = []

    def walk(node: Tag, invisible: bool) -> None:
        if _prunes_subtree(node, hidden_classes):
            return
        visibility = parse_style(node).get("visibility")
        if visibility in ("hidden", "collapse"):
            invisible = True
        elif visibility == "visible":
            invisible = False

        for child in node.children:
            if isinstance(child, Tag):
                walk(child, invisible)
            elif type(child) is NavigableString and not invisible:
                parts.append(str(child))

    walk(element, False)
    return "".join(parts).strip()

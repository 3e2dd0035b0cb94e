"""Features applied to the plugin rows of the registry view.

This package provides:
- Entry / ActionLink: rows and action links read from the document tree
- LinkOrderingEngine: deterministic action link ordering
- FilterEngine: debounced live filtering over visible row text
- EditMode / Notifier: per-plugin override editor rows and notices
"""

from .edit_mode import EditMode, Notifier
from .entries import (
    ActionLink,
    Entry,
    action_links,
    collect_entries,
    entry_from_row,
    find_edit_row,
    find_update_row,
)
from .filtering import Debouncer, FilterEngine, FilterState
from .link_ordering import LinkOrderingEngine, LinkOrderSpec, compute_order

__all__ = [
    # Entries
    "ActionLink",
    "Entry",
    "action_links",
    "collect_entries",
    "entry_from_row",
    "find_edit_row",
    "find_update_row",
    # Link ordering
    "LinkOrderingEngine",
    "LinkOrderSpec",
    "compute_order",
    # Filtering
    "Debouncer",
    "FilterEngine",
    "FilterState",
    # Edit mode
    "EditMode",
    "Notifier",
]

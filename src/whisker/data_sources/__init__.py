"""Data sources — build a ``Site`` from a backing store.

Public API::

    from whisker.data_sources import load_site

    site = load_site(load_config(Path("my-site")))
"""

from whisker.data_sources.code import load_code_snippets
from whisker.data_sources.filesystem import (
    SourceEntry,
    create_item,
    create_layout,
    discover_entries,
    identifier_for,
    load_items,
    load_layouts,
    load_site,
    split_front_matter,
)

__all__ = [
    "SourceEntry",
    "create_item",
    "create_layout",
    "discover_entries",
    "identifier_for",
    "load_code_snippets",
    "load_items",
    "load_layouts",
    "load_site",
    "split_front_matter",
]

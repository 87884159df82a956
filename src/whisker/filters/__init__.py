"""Filters — named content transformers.

Importing this package registers the built-in filters:

    markdown    Markdown -> HTML (Patitas)
    kida        Render content as a Kida template (used for layouts)

Sites add their own filters from ``lib/*.py`` with ``@register_filter``.
"""

from whisker.filters import markdown, templating  # noqa: F401
from whisker.filters.base import (
    Filter,
    FilterRegistry,
    default_registry,
    filter_named,
    register_filter,
    registered_filters,
)

__all__ = [
    "Filter",
    "FilterRegistry",
    "default_registry",
    "filter_named",
    "register_filter",
    "registered_filters",
]

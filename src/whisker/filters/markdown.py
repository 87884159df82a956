"""Markdown filter — renders Markdown to HTML with Patitas."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from whisker.filters.base import Filter, register_filter

_DEFAULT_PLUGINS: tuple[str, ...] = ("table",)


@register_filter("markdown")
class MarkdownFilter(Filter):
    """Convert Markdown text to HTML.

    Params:
        plugins: Patitas plugin names to enable (default: ``["table"]``).

    """

    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        from patitas import Markdown

        plugins = list(params.get("plugins", _DEFAULT_PLUGINS))
        md = Markdown(plugins=plugins)
        return md(str(content))

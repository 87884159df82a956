"""Kida filter — renders content as a Kida template.

This is the usual filter for layouts: the layout source is rendered with
the rep's assigns, so ``{{ content }}`` inserts the content being laid out
and ``{{ item.title }}`` reads the item's attributes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from whisker.filters.base import Filter, register_filter


@register_filter("kida")
class KidaFilter(Filter):
    """Render text as a Kida template with the rep's assigns.

    Params:
        autoescape: Escape HTML in interpolated values (default: False, so
            already-rendered content can be inserted as is).
        locals: Extra variables for the template.

    """

    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        from kida import Environment

        env = Environment(autoescape=bool(params.get("autoescape", False)))
        template = env.from_string(str(content))
        context = {**self.assigns, **dict(params.get("locals", {}))}
        return template.render(**context)

"""Site — the collections a compilation run works on.

A ``Site`` bundles the configuration, items, layouts, code snippets and
rules produced by a data source, together with the modification times the
outdated oracle needs.  Items and layouts are shared read-only with every
filter during a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from whisker._errors import ConfigError, UnknownLayout
from whisker.config import WhiskerConfig
from whisker.core.item import clean_identifier

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from whisker.core.item import CodeSnippet, Item, Layout
    from whisker.core.rep import ItemRep
    from whisker.rules.resolver import RuleSet


class Site:
    """A loaded site.

    Reps are built for every item when the site is constructed: the default
    rep plus every rep name the rules declare for that item.

    Args:
        config: Site configuration.
        items: Items in declaration order.
        layouts: Available layouts.
        code_snippets: Auxiliary code modules.
        rules: Compile, route and layout rules.
        config_mtime: Modification time of the configuration; None if unknown.
        rules_mtime: Modification time of the rules; None if unknown.

    Raises:
        ConfigError: If two items or two layouts share an identifier.

    """

    def __init__(
        self,
        config: WhiskerConfig | None = None,
        items: Iterable[Item] = (),
        layouts: Iterable[Layout] = (),
        code_snippets: Iterable[CodeSnippet] = (),
        rules: RuleSet | None = None,
        *,
        config_mtime: float | None = None,
        rules_mtime: float | None = None,
    ) -> None:
        if rules is None:
            from whisker.rules.resolver import RuleSet

            rules = RuleSet()

        self.config = config if config is not None else WhiskerConfig()
        self.items: tuple[Item, ...] = tuple(items)
        self.layouts: tuple[Layout, ...] = tuple(layouts)
        self.code_snippets: tuple[CodeSnippet, ...] = tuple(code_snippets)
        self.rules = rules
        self.config_mtime = config_mtime
        self.rules_mtime = rules_mtime

        self._items_by_id = _index(self.items, "item")
        self._layouts_by_id = _index(self.layouts, "layout")

        for item in self.items:
            item.build_reps(rules.rep_names_for(item))

    def item_with_identifier(self, identifier: str) -> Item | None:
        return self._items_by_id.get(clean_identifier(identifier))

    def layout_with_identifier(self, identifier: str) -> Layout:
        """Return the layout with *identifier*.

        Raises:
            UnknownLayout: If there is no such layout.

        """
        layout = self._layouts_by_id.get(clean_identifier(identifier))
        if layout is None:
            raise UnknownLayout(identifier)
        return layout

    def reps(self) -> Iterator[ItemRep]:
        """Every rep of every item, in declaration order."""
        for item in self.items:
            yield from item.reps.values()

    def __repr__(self) -> str:
        return (
            f"<Site root={self.config.root} items={len(self.items)} "
            f"layouts={len(self.layouts)}>"
        )


def _index(entries: tuple[Item, ...] | tuple[Layout, ...], kind: str) -> dict[str, Any]:
    index: dict[str, Any] = {}
    for entry in entries:
        if entry.identifier in index:
            msg = f"Duplicate {kind} identifier {entry.identifier!r}"
            raise ConfigError(msg)
        index[entry.identifier] = entry
    return index

"""Filter base class and registry.

A filter transforms a rep's content.  Each filter class declares statically
whether it consumes binary content (``from_binary``) and whether it produces
binary content (``to_binary``); the rep checks those declarations before
running it.  Filters are looked up by name in a ``FilterRegistry``.

Defining a filter::

    @register_filter("shout")
    class ShoutFilter(Filter):
        def run(self, content, params):
            return content.upper()

"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any, ClassVar

from whisker._errors import UnknownFilter


class Filter:
    """Base class for filters.

    Args:
        assigns: The rep's assigns (``content`` or ``filename``, ``item``,
            ``item_rep``, ``items``, ``layouts``, ``config``, ``site``, and
            ``layout`` when rendering a layout).
        scratch_dir: Directory under which ``output_filename`` is created;
            the system temp directory when omitted.

    """

    name: ClassVar[str] = ""
    from_binary: ClassVar[bool] = False
    to_binary: ClassVar[bool] = False

    def __init__(
        self,
        assigns: Mapping[str, Any] | None = None,
        *,
        scratch_dir: Path | None = None,
    ) -> None:
        self.assigns: dict[str, Any] = dict(assigns or {})
        self._scratch_dir = scratch_dir
        self._output_filename: Path | None = None

    @property
    def output_filename(self) -> Path:
        """Where a binary-producing filter should write its output.

        The file itself is not created; the filter must write it.
        """
        if self._output_filename is None:
            directory = Path(tempfile.mkdtemp(prefix="whisker-filter-", dir=self._scratch_dir))
            self._output_filename = directory / "output"
        return self._output_filename

    def run(self, content: str | Path, params: dict[str, Any]) -> str | Path | None:
        """Transform *content* (text, or a file path for binary input).

        Textual filters return the new text.  Binary filters write to
        ``output_filename`` and may return that path.
        """
        raise NotImplementedError


class FilterRegistry:
    """Mapping from filter name to filter class."""

    __slots__ = ("_filters",)

    def __init__(self, filters: Mapping[str, type[Filter]] | None = None) -> None:
        self._filters: dict[str, type[Filter]] = dict(filters or {})

    def register(self, name: str, klass: type[Filter]) -> None:
        self._filters[name] = klass

    def get(self, name: str) -> type[Filter]:
        """Return the filter class registered as *name*.

        Raises:
            UnknownFilter: If nothing is registered under *name*.

        """
        try:
            return self._filters[name]
        except KeyError:
            raise UnknownFilter(name) from None

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._filters))

    def copy(self) -> FilterRegistry:
        return FilterRegistry(self._filters)

    def __contains__(self, name: object) -> bool:
        return name in self._filters

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)


# Registry used when no explicit one is given.  Built-in filters and filters
# defined in a site's lib/ directory register themselves here.
default_registry = FilterRegistry()


def register_filter(
    name: str,
    *,
    registry: FilterRegistry | None = None,
) -> Callable[[type[Filter]], type[Filter]]:
    """Class decorator registering a filter under *name*."""

    def decorator(klass: type[Filter]) -> type[Filter]:
        if not (isinstance(klass, type) and issubclass(klass, Filter)):
            msg = f"@register_filter({name!r}) must decorate a Filter subclass"
            raise TypeError(msg)
        klass.name = name
        (registry if registry is not None else default_registry).register(name, klass)
        return klass

    return decorator


def filter_named(name: str) -> type[Filter] | None:
    """Look up a filter in the default registry; None if unknown."""
    try:
        return default_registry.get(name)
    except UnknownFilter:
        return None


def registered_filters() -> tuple[str, ...]:
    """Names registered in the default registry, sorted."""
    return default_registry.names()

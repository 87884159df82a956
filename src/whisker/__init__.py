"""Whisker — an incremental static-site compiler.

Turns a tree of content items into a tree of output files by running each
item representation through its filter chain and layout.  Only outdated
reps are recompiled; a rep may use another rep's compiled content, and the
compiler works out the order on its own.

Quick start::

    import whisker

    whisker.compile_site("my-site/")

Programmatic use::

    from whisker import Compiler, Item, RuleSet, Site

    rules = RuleSet().compile("*", filters=["markdown"], layout="/default/")
    site = Site(config, items, layouts, rules=rules)
    result = Compiler(site).run()

"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whisker.app import compile_site, load, watch_site
    from whisker.config import WhiskerConfig
    from whisker.core.compiler import Compiler, CompileResult
    from whisker.core.item import Item, Layout
    from whisker.core.site import Site
    from whisker.filters.base import Filter, register_filter
    from whisker.rules.resolver import RuleSet

__version__ = "0.1.0"
__all__ = [
    "CompileResult",
    "Compiler",
    "Filter",
    "Item",
    "Layout",
    "RuleSet",
    "Site",
    "WhiskerConfig",
    "__version__",
    "compile_site",
    "load",
    "register_filter",
    "watch_site",
]

_LAZY: dict[str, str] = {
    "CompileResult": "whisker.core.compiler",
    "Compiler": "whisker.core.compiler",
    "Filter": "whisker.filters",
    "Item": "whisker.core.item",
    "Layout": "whisker.core.item",
    "RuleSet": "whisker.rules.resolver",
    "Site": "whisker.core.site",
    "WhiskerConfig": "whisker.config",
    "compile_site": "whisker.app",
    "load": "whisker.app",
    "register_filter": "whisker.filters",
    "watch_site": "whisker.app",
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import whisker`` fast while providing a clean top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)

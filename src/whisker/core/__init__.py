"""Core model — content snapshots, items, reps, the site and the compiler.

Public API::

    from whisker.core.compiler import Compiler
    from whisker.core.site import Site

The compiler, router and site modules import the rules and filter packages,
so only the leaf modules are re-exported here.
"""

from whisker.core.content import (
    LAST,
    POST,
    PRE,
    RAW,
    BinaryContent,
    Content,
    SnapshotStore,
    TextContent,
)
from whisker.core.item import DEFAULT_REP, CodeSnippet, Item, Layout, clean_identifier
from whisker.core.rep import ItemRep, NotReady, Ready, RepState

__all__ = [
    "DEFAULT_REP",
    "LAST",
    "POST",
    "PRE",
    "RAW",
    "BinaryContent",
    "CodeSnippet",
    "Content",
    "Item",
    "ItemRep",
    "Layout",
    "NotReady",
    "Ready",
    "RepState",
    "SnapshotStore",
    "TextContent",
    "clean_identifier",
]

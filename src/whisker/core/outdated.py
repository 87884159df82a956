"""Outdated oracle — decides whether a rep must be recompiled.

A pure function over modification times.  It holds no state and is
re-evaluated for every rep on every run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from whisker.core.rep import ItemRep
    from whisker.core.site import Site


def _newer(mtime: float | None, compiled_mtime: float) -> bool:
    """Unknown times count as newer."""
    return mtime is None or mtime > compiled_mtime


def _any_newer(mtimes: Iterable[float | None], compiled_mtime: float) -> bool:
    return any(_newer(m, compiled_mtime) for m in mtimes)


def is_outdated(rep: ItemRep, site: Site) -> bool:
    """Return True if *rep*'s output file must be regenerated.

    Checked in order, the first true condition wins:

    1. The item's modification time is unknown.
    2. The rep is forced outdated (e.g. ``whisker compile --force``).
    3. The rep has no output path, or nothing exists there yet.
    4. The item is newer than the output file.
    5. Any layout, code snippet, the configuration or the rules is newer
       than the output file, or has an unknown modification time.

    """
    if rep.item.mtime is None:
        return True

    if rep.force_outdated:
        return True

    raw_path = rep.raw_path
    if raw_path is None or not raw_path.is_file():
        return True

    compiled_mtime = raw_path.stat().st_mtime

    if rep.item.mtime > compiled_mtime:
        return True

    if _any_newer((layout.mtime for layout in site.layouts), compiled_mtime):
        return True

    if _any_newer((snippet.mtime for snippet in site.code_snippets), compiled_mtime):
        return True

    if _newer(site.config_mtime, compiled_mtime):
        return True

    return _newer(site.rules_mtime, compiled_mtime)

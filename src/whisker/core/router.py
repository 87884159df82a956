"""Router — derives each rep's output paths.

Every rep gets two paths:

- ``path``: the web-facing path, starting with a slash, with index
  filenames stripped (``/about/``).
- ``raw_path``: the output file on disk (``<output>/about/index.html``).

A route rule may override the path or suppress output entirely; otherwise
the convention ``<identifier><filename>.<extension>`` applies.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from whisker._errors import ConfigError, RouteCollision, describe_rep
from whisker.core.item import DEFAULT_REP

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from whisker.config import WhiskerConfig
    from whisker.core.rep import ItemRep
    from whisker.rules.resolver import RuleSet

_DEFAULT_FILENAME = "index"
_DEFAULT_EXTENSION = "html"


class Router:
    """Assigns ``path`` and ``raw_path`` to reps.

    Args:
        config: Site configuration (output directory, index filenames).
        rules: Rules holding route overrides.

    """

    def __init__(self, config: WhiskerConfig, rules: RuleSet) -> None:
        self._config = config
        self._rules = rules

    def route(self, rep: ItemRep) -> None:
        """Compute and cache the rep's paths, once per run."""
        if rep.routed:
            return
        route = self.route_for(rep)
        if route is None:
            rep.assign_route(None, None)
            return
        raw_path = self._config.output_path / route.lstrip("/")
        rep.assign_route(self.web_path(route), raw_path)

    def route_all(self, reps: Iterable[ItemRep]) -> None:
        for rep in reps:
            self.route(rep)

    def route_for(self, rep: ItemRep) -> str | None:
        """The rep's route relative to the output directory, or None.

        Raises:
            ConfigError: If a route template uses an unknown placeholder.

        """
        item = rep.item
        if item["skip_output"]:
            return None

        extension = self._extension_for(rep)
        rule = self._rules.resolve_route(item, rep.name)
        if rule is not None:
            if rule.path is None:
                return None
            try:
                route = rule.path.format(
                    identifier=item.identifier,
                    extension=extension,
                    rep=rep.name,
                )
            except (KeyError, IndexError) as exc:
                msg = f"Invalid route template {rule.path!r} for {item.identifier}: {exc}"
                raise ConfigError(msg) from exc
            return "/" + route.lstrip("/")

        filename = item["filename"]
        if filename is None:
            filename = (
                _DEFAULT_FILENAME
                if rep.name == DEFAULT_REP
                else f"{_DEFAULT_FILENAME}-{rep.name}"
            )
        return f"{item.identifier}{filename}.{extension}"

    def web_path(self, route: str) -> str:
        """Strip an index filename: ``/about/index.html`` -> ``/about/``."""
        posix = PurePosixPath(route)
        if posix.name in self._config.index_filenames:
            parent = str(posix.parent)
            return parent if parent.endswith("/") else parent + "/"
        return route

    def check_collisions(self, reps: Iterable[ItemRep]) -> None:
        """Fail if two reps would write the same output file.

        Raises:
            RouteCollision: Naming both reps, before anything is written.

        """
        seen: dict[Path, ItemRep] = {}
        for rep in reps:
            self.route(rep)
            raw_path = rep.raw_path
            if raw_path is None:
                continue
            other = seen.get(raw_path)
            if other is not None:
                raise RouteCollision(raw_path, describe_rep(other), describe_rep(rep))
            seen[raw_path] = rep

    def _extension_for(self, rep: ItemRep) -> str:
        item = rep.item
        extension = item["extension"]
        if extension:
            return str(extension).lstrip(".")
        raw_filename = item.raw_filename
        if raw_filename is not None and raw_filename.suffix:
            return raw_filename.suffix.lstrip(".")
        return _DEFAULT_EXTENSION

"""Rule resolver — which filters, layout and route apply to a rep.

Rules are matched against item (or layout) identifiers in declaration
order; the first matching rule wins.  Patterns use ``*`` wildcards, which
also match slashes, so ``/blog/*`` covers every item below ``/blog/``.

Rules file format (``rules.yaml``)::

    compile:
      - pattern: /stylesheet/
        filters: [sass]
      - pattern: "*"
        rep: default
        filters:
          - markdown
          - kida: {autoescape: false}
        layout: /default/

    route:
      - pattern: /stylesheet/
        path: /style.css
      - pattern: /drafts/*
        path: null          # compiled but never written

    layout:
      - pattern: "*"
        filter: kida

"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import yaml

from whisker._errors import ConfigError
from whisker.core.item import DEFAULT_REP, clean_identifier

if TYPE_CHECKING:
    from whisker._types import FilterStep
    from whisker.core.item import Item, Layout

_EMPTY_PARAMS: Mapping[str, Any] = MappingProxyType({})


def _clean_pattern(pattern: str) -> str:
    if "*" in pattern or "?" in pattern:
        return pattern
    return clean_identifier(pattern)


def identifier_matches(pattern: str, identifier: str) -> bool:
    """Whether *identifier* matches the rule *pattern*."""
    return fnmatchcase(identifier, _clean_pattern(pattern))


@dataclass(frozen=True, slots=True)
class CompileRule:
    """Filter chain and optional layout for matching reps.

    Attributes:
        pattern: Identifier pattern.
        rep: Name of the rep the rule applies to.
        filters: Ordered ``(filter_name, params)`` steps.
        layout: Identifier of the layout to apply after filtering, if any.

    """

    pattern: str
    rep: str = DEFAULT_REP
    filters: tuple[FilterStep, ...] = ()
    layout: str | None = None

    def matches(self, identifier: str, rep_name: str) -> bool:
        return self.rep == rep_name and identifier_matches(self.pattern, identifier)


@dataclass(frozen=True, slots=True)
class RouteRule:
    """Custom output path for matching reps.

    ``path`` may use ``{identifier}``, ``{extension}`` and ``{rep}``
    placeholders; None means the rep is compiled but not written.
    """

    pattern: str
    path: str | None
    rep: str = DEFAULT_REP

    def matches(self, identifier: str, rep_name: str) -> bool:
        return self.rep == rep_name and identifier_matches(self.pattern, identifier)


@dataclass(frozen=True, slots=True)
class LayoutRule:
    """Filter used to render matching layouts."""

    pattern: str
    filter_name: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def matches(self, identifier: str) -> bool:
        return identifier_matches(self.pattern, identifier)


class RuleSet:
    """Ordered compile, route and layout rules.

    Rules can be declared fluently::

        rules = (
            RuleSet()
            .compile("*", filters=["markdown"], layout="/default/")
            .layout("*", "kida")
        )

    """

    def __init__(
        self,
        compile_rules: Iterable[CompileRule] = (),
        route_rules: Iterable[RouteRule] = (),
        layout_rules: Iterable[LayoutRule] = (),
    ) -> None:
        self.compile_rules: list[CompileRule] = list(compile_rules)
        self.route_rules: list[RouteRule] = list(route_rules)
        self.layout_rules: list[LayoutRule] = list(layout_rules)

    # ----- Declaration -----

    def compile(
        self,
        pattern: str,
        *,
        rep: str = DEFAULT_REP,
        filters: Iterable[Any] = (),
        layout: str | None = None,
    ) -> RuleSet:
        """Add a compile rule; *filters* items are normalised with ``normalize_step``."""
        steps = tuple(normalize_step(step) for step in filters)
        self.compile_rules.append(
            CompileRule(pattern=pattern, rep=rep, filters=steps, layout=layout)
        )
        return self

    def route(self, pattern: str, path: str | None, *, rep: str = DEFAULT_REP) -> RuleSet:
        self.route_rules.append(RouteRule(pattern=pattern, path=path, rep=rep))
        return self

    def layout(self, pattern: str, filter_name: str, **params: Any) -> RuleSet:
        self.layout_rules.append(
            LayoutRule(pattern=pattern, filter_name=filter_name, params=params)
        )
        return self

    # ----- Resolution -----

    def resolve_compile(self, item: Item, rep_name: str) -> CompileRule | None:
        """First compile rule matching the item and rep; None if there is none."""
        for rule in self.compile_rules:
            if rule.matches(item.identifier, rep_name):
                return rule
        return None

    def resolve(self, item: Item, rep_name: str) -> list[FilterStep]:
        """Ordered filter chain for the rep; empty when no rule matches."""
        rule = self.resolve_compile(item, rep_name)
        return list(rule.filters) if rule is not None else []

    def resolve_route(self, item: Item, rep_name: str) -> RouteRule | None:
        for rule in self.route_rules:
            if rule.matches(item.identifier, rep_name):
                return rule
        return None

    def resolve_layout_filter(self, layout: Layout) -> FilterStep | None:
        """``(filter_name, params)`` rendering *layout*; None if no rule matches."""
        for rule in self.layout_rules:
            if rule.matches(layout.identifier):
                return rule.filter_name, rule.params
        return None

    def rep_names_for(self, item: Item) -> tuple[str, ...]:
        """Rep names any compile or route rule declares for *item*, in order."""
        names: list[str] = [DEFAULT_REP]
        for rule in (*self.compile_rules, *self.route_rules):
            if rule.rep not in names and identifier_matches(rule.pattern, item.identifier):
                names.append(rule.rep)
        return tuple(names)

    def __repr__(self) -> str:
        return (
            f"RuleSet(compile={len(self.compile_rules)}, "
            f"route={len(self.route_rules)}, layout={len(self.layout_rules)})"
        )


def normalize_step(step: Any) -> FilterStep:
    """Turn a rule's filter entry into ``(filter_name, params)``.

    Accepted forms: ``"markdown"``, ``("kida", {...})`` / ``["kida", {...}]``
    and the single-key mapping ``{"kida": {...}}``.
    """
    if isinstance(step, str):
        return step, _EMPTY_PARAMS
    if isinstance(step, Mapping) and len(step) == 1:
        ((name, params),) = step.items()
        return str(name), _params(name, params)
    if isinstance(step, (list, tuple)) and len(step) in (1, 2) and isinstance(step[0], str):
        params = step[1] if len(step) == 2 else None
        return step[0], _params(step[0], params)
    msg = f"Invalid filter entry in compile rule: {step!r}"
    raise ConfigError(msg)


def _params(name: object, params: object) -> Mapping[str, Any]:
    if params is None:
        return _EMPTY_PARAMS
    if not isinstance(params, Mapping):
        msg = f"Params for filter {name!r} must be a mapping, got {type(params).__name__}"
        raise ConfigError(msg)
    return MappingProxyType(dict(params))


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_rules(path: Path) -> RuleSet:
    """Parse a rules file.  A missing file yields an empty rule set.

    Raises:
        ConfigError: If the file is not valid YAML or a rule is malformed.

    """
    if not path.is_file():
        return RuleSet()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        msg = f"Failed to parse rules file {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Rules file {path} must contain a mapping at the top level"
        raise ConfigError(msg)

    unknown = set(data) - {"compile", "route", "layout"}
    if unknown:
        msg = f"Unknown sections in rules file {path}: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    rules = RuleSet()
    for entry in _entries(data, "compile", path):
        filters = entry.get("filters") or []
        if not isinstance(filters, list):
            msg = f"{path}: 'filters' must be a list in rule for {entry['pattern']!r}"
            raise ConfigError(msg)
        rules.compile(
            str(entry["pattern"]),
            rep=str(entry.get("rep", DEFAULT_REP)),
            filters=filters,
            layout=entry.get("layout"),
        )
    for entry in _entries(data, "route", path):
        if "path" not in entry:
            msg = f"{path}: route rule for {entry['pattern']!r} needs a 'path'"
            raise ConfigError(msg)
        route_path = entry["path"]
        rules.route(
            str(entry["pattern"]),
            None if route_path is None else str(route_path),
            rep=str(entry.get("rep", DEFAULT_REP)),
        )
    for entry in _entries(data, "layout", path):
        if "filter" not in entry:
            msg = f"{path}: layout rule for {entry['pattern']!r} needs a 'filter'"
            raise ConfigError(msg)
        params = _params(entry["filter"], entry.get("params"))
        rules.layout(str(entry["pattern"]), str(entry["filter"]), **params)
    return rules


def _entries(data: dict[str, Any], section: str, path: Path) -> list[dict[str, Any]]:
    entries = data.get(section) or []
    if not isinstance(entries, list):
        msg = f"{path}: '{section}' must be a list of rules"
        raise ConfigError(msg)
    for entry in entries:
        if not isinstance(entry, dict) or "pattern" not in entry:
            msg = f"{path}: every '{section}' rule needs a 'pattern', got {entry!r}"
            raise ConfigError(msg)
    return entries

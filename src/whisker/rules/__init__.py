"""Rules — compile, route and layout rules matched by identifier.

Public API::

    from whisker.rules import RuleSet, load_rules

    rules = load_rules(Path("my-site/rules.yaml"))
    steps = rules.resolve(item, "default")
"""

from whisker.rules.resolver import (
    CompileRule,
    LayoutRule,
    RouteRule,
    RuleSet,
    identifier_matches,
    load_rules,
    normalize_step,
)

__all__ = [
    "CompileRule",
    "LayoutRule",
    "RouteRule",
    "RuleSet",
    "identifier_matches",
    "load_rules",
    "normalize_step",
]

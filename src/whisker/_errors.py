"""Whisker error hierarchy.

All whisker-specific errors inherit from WhiskerError for easy catching.
``UnmetDependency`` is the one exception: it is a control-flow signal that
the compiler resolves internally and it must never be caught as a
WhiskerError by accident.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from whisker.core.rep import ItemRep


class WhiskerError(Exception):
    """Base error for all whisker operations."""


class ConfigError(WhiskerError):
    """Invalid or missing configuration (site config, rules, lib code)."""


class CompilationError(WhiskerError):
    """Fatal condition raised while compiling item representations."""


class UnknownFilter(CompilationError):
    """No filter is registered under the requested name."""

    def __init__(self, filter_name: str) -> None:
        self.filter_name = filter_name
        super().__init__(f"The requested filter, {filter_name!r}, does not exist.")


class UnknownLayout(CompilationError):
    """No layout exists with the requested identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"The requested layout, {identifier!r}, does not exist.")


class FilterKindMismatch(CompilationError):
    """A filter's declared input kind disagrees with the rep's current kind."""

    def __init__(self, rep: ItemRep, filter_name: str) -> None:
        self.rep = rep
        self.filter_name = filter_name
        super().__init__(self._message())

    def _message(self) -> str:
        kind = "binary" if self.rep.binary else "textual"
        return (
            f"The {self.filter_name!r} filter cannot be applied to the "
            f"{kind} {self.rep.name!r} rep of {self.rep.item.identifier!r}."
        )


class CannotUseBinaryFilter(FilterKindMismatch):
    """A binary-input filter was applied to textual content."""

    def _message(self) -> str:
        return (
            f"The {self.filter_name!r} filter expects binary content, but the "
            f"{self.rep.name!r} rep of {self.rep.item.identifier!r} is textual."
        )


class CannotUseTextualFilter(FilterKindMismatch):
    """A textual-input filter was applied to binary content."""

    def _message(self) -> str:
        return (
            f"The {self.filter_name!r} filter expects textual content, but the "
            f"{self.rep.name!r} rep of {self.rep.item.identifier!r} is binary."
        )


class CannotLayoutBinary(CompilationError):
    """Layouts can only be applied to textual reps."""

    def __init__(self, rep: ItemRep) -> None:
        self.rep = rep
        super().__init__(
            f"The {rep.name!r} rep of {rep.item.identifier!r} cannot be laid out "
            "because it is binary."
        )


class CannotDetermineFilter(CompilationError):
    """No layout rule tells which filter renders the given layout."""

    def __init__(self, layout_identifier: str) -> None:
        self.layout_identifier = layout_identifier
        super().__init__(
            f"The filter to be used for the {layout_identifier!r} layout "
            "could not be determined."
        )


class RouteCollision(CompilationError):
    """Two reps resolved to the same output path."""

    def __init__(self, path: Path, first: str, second: str) -> None:
        self.path = path
        self.identifiers = (first, second)
        super().__init__(
            f"Both {first} and {second} are routed to {path}; "
            "each rep needs a unique output path."
        )


class FilterOutputMissing(CompilationError):
    """A binary-producing filter did not write its output file."""

    def __init__(self, filter_name: str, path: Path) -> None:
        self.filter_name = filter_name
        self.path = path
        super().__init__(
            f"The {filter_name!r} filter did not write anything to the "
            f"required output file, {path}."
        )


class CircularDependency(CompilationError):
    """Reps require each other's compiled content."""

    def __init__(self, chain: Sequence[ItemRep]) -> None:
        self.chain = tuple(chain)
        self.identifiers = tuple(describe_rep(rep) for rep in self.chain)
        super().__init__(
            "Circular dependency detected while compiling: "
            + " -> ".join(self.identifiers)
        )


class MissingSnapshot(WhiskerError):
    """The requested snapshot was never written."""

    def __init__(self, snapshot_name: str, rep: ItemRep | None = None) -> None:
        self.snapshot_name = snapshot_name
        self.rep = rep
        where = f" of {describe_rep(rep)}" if rep is not None else ""
        super().__init__(f"The {snapshot_name!r} snapshot{where} does not exist.")


class UnmetDependency(Exception):  # noqa: N818
    """Compiled content of a rep was requested before it was compiled.

    Raised out of filter code; the compiler converts it into a ``NotReady``
    outcome and retries the requesting rep once the target is compiled.
    """

    def __init__(self, rep: ItemRep) -> None:
        self.rep = rep
        super().__init__(f"{describe_rep(rep)} has not been compiled yet.")


def describe_rep(rep: ItemRep) -> str:
    if rep.name == "default":
        return rep.item.identifier
    return f"{rep.item.identifier} ({rep.name})"

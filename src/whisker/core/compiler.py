"""Compiler — compiles every outdated rep of a site and writes the results.

There is no precomputed dependency graph.  A rep whose filters ask for
another rep's compiled content before that rep is compiled gets a
``NotReady`` outcome: the partial attempt is discarded, the dependency is
queued in front of it, and the rep is retried right after.  Reps that end up
waiting on themselves, directly or through a chain, abort the run with a
``CircularDependency`` error before any of them is written.

Pipeline order for one run:
    1. Route every rep and check for colliding output paths
    2. Mark up-to-date reps as compiled (their existing output is reused)
    3. Compile outdated reps through the retry queue
    4. Write each rep as soon as it is compiled
    5. Write ``output.diff`` (if enabled)
"""

from __future__ import annotations

import tempfile
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from whisker._errors import (
    CircularDependency,
    CompilationError,
    UnmetDependency,
    WhiskerError,
    describe_rep,
)
from whisker.core.context import CompilationContext
from whisker.core.rep import NotReady, RepState
from whisker.core.router import Router
from whisker.observability.bus import NotificationCenter
from whisker.observability.events import (
    CompilationDeferred,
    CompilationEnded,
    CompilationStarted,
    FileCreated,
    RepSkipped,
    RepWritten,
)
from whisker.observability.log import EventLog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from whisker.core.rep import ItemRep
    from whisker.core.site import Site
    from whisker.filters.base import FilterRegistry

OUTPUT_DIFF_FILENAME = "output.diff"


@dataclass(frozen=True, slots=True)
class Compiled:
    """A rep's pipeline ran to completion."""

    rep: ItemRep


type AttemptOutcome = Compiled | NotReady


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Aggregate result of one compilation run.

    Attributes:
        compiled: Reps compiled in this run, in completion order.
        skipped: Reps found up to date.
        written: Reps whose output file was written.
        duration_ms: Wall-clock time of the run.
        log: Every event posted during the run.
        diff_path: The written ``output.diff``, if any.

    """

    compiled: tuple[ItemRep, ...]
    skipped: tuple[ItemRep, ...]
    written: tuple[ItemRep, ...]
    duration_ms: float
    log: EventLog
    diff_path: Path | None = None

    @property
    def created_count(self) -> int:
        return sum(1 for rep in self.written if rep.created)

    @property
    def modified_count(self) -> int:
        return sum(1 for rep in self.written if rep.modified and not rep.created)


class Compiler:
    """Compiles a site's reps.

    Args:
        site: The loaded site.
        filters: Filter registry; defaults to the registry holding the
            built-in filters and any filters defined in the site's lib code.

    """

    def __init__(self, site: Site, *, filters: FilterRegistry | None = None) -> None:
        if filters is None:
            from whisker.filters import default_registry

            filters = default_registry
        self.site = site
        self.filters = filters
        self.router = Router(site.config, site.rules)

    def run(
        self,
        reps: Iterable[ItemRep] | None = None,
        *,
        force: bool = False,
        bus: NotificationCenter | None = None,
    ) -> CompileResult:
        """Compile *reps* (default: every rep of the site).

        Args:
            reps: Reps to compile.  Reps they depend on are compiled too.
            force: Treat every rep as outdated.
            bus: Notification center for this run; a fresh one by default.
                Pass a new instance per run.

        Returns:
            CompileResult describing what was compiled and written.

        Raises:
            CompilationError: On any fatal condition (unknown filter or
                layout, kind mismatch, colliding routes, circular
                dependency, ...).

        """
        start = time.perf_counter()
        bus = bus if bus is not None else NotificationCenter()
        log = EventLog()
        bus.subscribe(object, log.append)

        all_reps = list(self.site.reps())
        for rep in all_reps:
            rep.begin_run()
            rep.force_outdated = force

        # Paths are fixed before anything is written.
        self.router.check_collisions(all_reps)

        selected = set(reps) if reps is not None else None
        queue: list[ItemRep] = []
        for rep in all_reps:
            if rep.is_outdated(self.site):
                if selected is None or rep in selected:
                    queue.append(rep)
            else:
                rep.mark_up_to_date()

        with tempfile.TemporaryDirectory(prefix="whisker-") as scratch:
            context = CompilationContext(
                site=self.site, filters=self.filters, bus=bus, scratch_dir=Path(scratch),
            )
            compiled, written = self._compile_reps(queue, context)

            diff_path = None
            if self.site.config.enable_output_diff:
                diff_path = self._write_output_diff(written, bus)

        # Up-to-date reps another rep depended on were compiled after all.
        skipped = [rep for rep in all_reps if rep.state is RepState.UP_TO_DATE]
        for rep in skipped:
            bus.post(RepSkipped(rep=rep))

        return CompileResult(
            compiled=tuple(compiled),
            skipped=tuple(skipped),
            written=tuple(written),
            duration_ms=(time.perf_counter() - start) * 1000,
            log=log,
            diff_path=diff_path,
        )

    # ------------------------------------------------------------------
    # Retry queue
    # ------------------------------------------------------------------

    def _compile_reps(
        self,
        reps: list[ItemRep],
        context: CompilationContext,
    ) -> tuple[list[ItemRep], list[ItemRep]]:
        queue: deque[ItemRep] = deque(reps)
        # rep -> the rep whose compiled content it is waiting for
        waiting_on: dict[ItemRep, ItemRep] = {}
        compiled: list[ItemRep] = []
        written: list[ItemRep] = []

        while queue:
            rep = queue.popleft()
            if rep.compiled:
                continue

            t0 = time.perf_counter()
            outcome = self._attempt(rep, context)

            if isinstance(outcome, NotReady):
                target = outcome.rep
                waiting_on[rep] = target
                cycle = _find_cycle(rep, waiting_on)
                if cycle is not None:
                    raise CircularDependency(cycle)
                context.bus.post(CompilationDeferred(rep=rep, dependency=target))
                if target in queue:
                    queue.remove(target)
                queue.appendleft(rep)
                queue.appendleft(target)
                continue

            waiting_on.pop(rep, None)
            compiled.append(rep)

            action = rep.write()
            if action is not None:
                written.append(rep)
                if action == "create":
                    context.bus.post(FileCreated(path=rep.raw_path))  # type: ignore[arg-type]
                context.bus.post(
                    RepWritten(
                        rep=rep,
                        action=action,
                        duration_ms=(time.perf_counter() - t0) * 1000,
                    )
                )
            context.bus.post(CompilationEnded(rep=rep))

        return compiled, written

    def _attempt(self, rep: ItemRep, context: CompilationContext) -> AttemptOutcome:
        """Run the rep's pipeline once from its raw content."""
        rep.reset()
        rep.state = RepState.COMPILING
        context.stack.push(rep.item)
        context.bus.post(CompilationStarted(rep=rep))

        try:
            self._run_pipeline(rep, context)
        except UnmetDependency as exc:
            rep.reset()
            return NotReady(exc.rep)
        except WhiskerError:
            rep.state = RepState.FAILED
            raise
        except Exception as exc:
            # Template engines may wrap exceptions raised inside templates.
            unmet = _unmet_dependency_in(exc)
            if unmet is not None:
                rep.reset()
                return NotReady(unmet.rep)
            rep.state = RepState.FAILED
            msg = (
                f"Failed to compile {describe_rep(rep)} "
                f"(stack: {context.stack.describe()}): {exc}"
            )
            raise CompilationError(msg) from exc
        finally:
            context.stack.clear()

        rep.state = RepState.COMPILED
        return Compiled(rep)

    def _run_pipeline(self, rep: ItemRep, context: CompilationContext) -> None:
        rule = context.rules.resolve_compile(rep.item, rep.name)
        if rule is None:
            return
        for filter_name, params in rule.filters:
            rep.filter(filter_name, params, context=context)
        if rule.layout is not None:
            rep.layout(rule.layout, context=context)

    # ------------------------------------------------------------------
    # Output diff
    # ------------------------------------------------------------------

    def _write_output_diff(
        self, written: list[ItemRep], bus: NotificationCenter,
    ) -> Path | None:
        diffs = [diff for rep in written if (diff := rep.diff(bus=bus)) is not None]
        path = self.site.config.root / OUTPUT_DIFF_FILENAME
        if not diffs:
            path.unlink(missing_ok=True)
            return None
        path.write_text("\n".join(diffs), encoding="utf-8")
        return path


def _find_cycle(rep: ItemRep, waiting_on: dict[ItemRep, ItemRep]) -> list[ItemRep] | None:
    """Follow the waiting chain from *rep*; return it if it leads back to *rep*."""
    chain = [rep]
    current = waiting_on.get(rep)
    while current is not None and len(chain) <= len(waiting_on):
        chain.append(current)
        if current is rep:
            return chain
        current = waiting_on.get(current)
    return None


def _unmet_dependency_in(exc: BaseException) -> UnmetDependency | None:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, UnmetDependency):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None

"""Whisker application — load a site, compile it, keep it compiled.

The two public functions (compile_site, watch_site) are the primary entry
points; the CLI is a thin wrapper around them.
"""

import sys
import time
from pathlib import Path

from whisker._errors import WhiskerError
from whisker.config import WhiskerConfig
from whisker.config_loader import load_config
from whisker.core.compiler import Compiler, CompileResult
from whisker.core.site import Site
from whisker.data_sources.filesystem import load_site
from whisker.observability.bus import NotificationCenter


def _compile(
    config: WhiskerConfig,
    *,
    force: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> CompileResult:
    """Load and compile the site described by *config*, reporting to stderr."""
    from whisker.observability.profiler import FilterProfiler
    from whisker.reporter import Reporter, print_event_counts, print_header, print_summary

    t0 = time.perf_counter()
    site = load_site(config)
    load_ms = (time.perf_counter() - t0) * 1000

    bus = NotificationCenter()
    profiler = FilterProfiler()
    if not quiet:
        print_header(config, len(site.items), load_ms=load_ms)
        Reporter(config, show_skipped=verbose).attach(bus)
    if verbose:
        profiler.attach(bus)

    result = Compiler(site).run(force=force, bus=bus)

    if not quiet:
        print_summary(result)
    if verbose:
        profiler.print_summary()
        print_event_counts(result.log)
    return result


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def compile_site(
    root: str | Path = ".",
    *,
    force: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    **kwargs: object,
) -> CompileResult:
    """Compile every outdated rep of the site at *root*.

    Args:
        root: Path to the site root directory.
        force: Recompile every rep, even those that are up to date.
        verbose: Also report skipped reps and print per-filter timings.
        quiet: Print nothing.
        **kwargs: Override WhiskerConfig fields.

    Raises:
        WhiskerError: On configuration or compilation errors.

    """
    config = load_config(Path(root), **kwargs)
    return _compile(config, force=force, verbose=verbose, quiet=quiet)


def load(root: str | Path = ".", **kwargs: object) -> Site:
    """Load the site at *root* without compiling it."""
    return load_site(load_config(Path(root), **kwargs))


def watch_site(root: str | Path = ".", **kwargs: object) -> None:
    """Compile the site, then recompile whenever its sources change.

    Errors during recompilation are reported and watching continues.
    Stops on Ctrl-C.

    Args:
        root: Path to the site root directory.
        **kwargs: Override WhiskerConfig fields.

    """
    from whisker.watcher import SiteWatcher

    config = load_config(Path(root), **kwargs)
    try:
        _compile(config)
    except WhiskerError as exc:
        print(f"  Compilation error: {exc}", file=sys.stderr)

    watcher = SiteWatcher(config)
    watcher.start()
    print("  Watching for changes...", file=sys.stderr)
    try:
        for batch in watcher.batches():
            for event in batch:
                print(f"  {event.kind} {event.category}: {event.path}", file=sys.stderr)
            try:
                if any(event.category == "config" for event in batch):
                    config = load_config(Path(root), **kwargs)
                _compile(config)
            except WhiskerError as exc:
                print(f"  Compilation error: {exc}", file=sys.stderr)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()

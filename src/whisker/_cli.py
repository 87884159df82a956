"""Whisker CLI — whisker compile / whisker watch / whisker create-item.

Entry point for the ``whisker`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys

from whisker._errors import WhiskerError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the whisker CLI."""
    parser = argparse.ArgumentParser(
        prog="whisker",
        description="Incremental static-site compiler.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # whisker compile
    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile outdated items into the output directory",
    )
    compile_parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    compile_parser.add_argument(
        "--force", action="store_true", help="Recompile every item, even if up to date",
    )
    compile_parser.add_argument(
        "--verbose", action="store_true", help="Report skipped items and filter timings",
    )
    compile_parser.add_argument(
        "--diff", action="store_true", help="Write output.diff with the changes made",
    )

    # whisker watch
    watch_parser = subparsers.add_parser(
        "watch",
        help="Compile, then recompile whenever sources change",
    )
    watch_parser.add_argument("root", nargs="?", default=".", help="Site root directory")

    # whisker create-item / create-layout
    for kind in ("item", "layout"):
        create_parser = subparsers.add_parser(
            f"create-{kind}",
            help=f"Create a new {kind} source file",
        )
        create_parser.add_argument("identifier", help=f"Identifier of the new {kind}")
        create_parser.add_argument("--root", default=".", help="Site root directory")
        create_parser.add_argument(
            "--attr",
            action="append",
            default=[],
            metavar="KEY=VALUE",
            help="Attribute to store in the front matter (repeatable)",
        )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from whisker import __version__

    return __version__


def _parse_attributes(pairs: list[str]) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"Invalid attribute {pair!r}: expected KEY=VALUE"
            raise SystemExit(msg)
        attributes[key] = value
    return attributes


def _create(args: argparse.Namespace) -> None:
    from pathlib import Path

    from whisker.config_loader import load_config
    from whisker.data_sources.filesystem import create_item, create_layout
    from whisker.observability.bus import NotificationCenter
    from whisker.observability.events import FileCreated
    from whisker.reporter import format_action

    config = load_config(Path(args.root))
    bus = NotificationCenter()
    bus.subscribe(
        FileCreated,
        lambda event: print(format_action("create", str(event.path)), file=sys.stderr),
    )
    attributes = _parse_attributes(args.attr)
    if args.command == "create-item":
        create_item(config, args.identifier, "", attributes, bus=bus)
    else:
        create_layout(config, args.identifier, "{{ content }}\n", attributes, bus=bus)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from whisker.app import compile_site, watch_site

    try:
        if args.command == "compile":
            compile_site(
                args.root,
                force=args.force,
                verbose=args.verbose,
                enable_output_diff=True if args.diff else None,
            )
        elif args.command == "watch":
            watch_site(args.root)
        else:
            _create(args)
    except WhiskerError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

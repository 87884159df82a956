"""Shared test fixtures for whisker."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import pytest

from whisker.config import WhiskerConfig
from whisker.core.context import CompilationContext
from whisker.core.item import Item, Layout
from whisker.core.router import Router
from whisker.core.site import Site
from whisker.filters import Filter, FilterRegistry, default_registry
from whisker.observability.bus import NotificationCenter
from whisker.rules.resolver import RuleSet

# Older than any output file a test writes.
OLD_MTIME = 1_000_000.0


# ---------------------------------------------------------------------------
# Test filters
# ---------------------------------------------------------------------------


class UpcaseFilter(Filter):
    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        return str(content).upper()


class AppendFilter(Filter):
    """Appends ``params["suffix"]``."""

    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        return f"{content}{params.get('suffix', '')}"


class FrameFilter(Filter):
    """Layout renderer: replaces ``{content}`` in the layout with the content."""

    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        return str(content).replace("{content}", self.assigns["content"])


class EmbedFilter(Filter):
    """Appends the compiled content of the item named by ``params["identifier"]``."""

    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        site = self.assigns["site"]
        other = site.item_with_identifier(params["identifier"]).rep_named()
        return f"{content}[{other.compiled_content()}]"


class WrappingEmbedFilter(EmbedFilter):
    """Like EmbedFilter, but wraps every error the way template engines do."""

    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        try:
            return super().run(content, params)
        except Exception as exc:
            msg = "template failed"
            raise RuntimeError(msg) from exc


class ToFileFilter(Filter):
    """Text -> binary: writes the text plus ``!`` to the output file."""

    to_binary = True

    def run(self, content: str | Path, params: dict[str, Any]) -> None:
        self.output_filename.write_text(f"{content}!", encoding="utf-8")


class BinaryCopyFilter(Filter):
    """Binary -> binary: copies the file unchanged."""

    from_binary = True
    to_binary = True

    def run(self, content: str | Path, params: dict[str, Any]) -> Path:
        shutil.copyfile(content, self.output_filename)
        return self.output_filename


class NoOutputFilter(Filter):
    """Binary -> binary filter that forgets to write its output."""

    from_binary = True
    to_binary = True

    def run(self, content: str | Path, params: dict[str, Any]) -> None:
        return None


class BrokenFilter(Filter):
    def run(self, content: str | Path, params: dict[str, Any]) -> str:
        msg = "boom"
        raise ValueError(msg)


TEST_FILTERS: dict[str, type[Filter]] = {
    "upcase": UpcaseFilter,
    "append": AppendFilter,
    "frame": FrameFilter,
    "embed": EmbedFilter,
    "wrapping_embed": WrappingEmbedFilter,
    "to_file": ToFileFilter,
    "binary_copy": BinaryCopyFilter,
    "no_output": NoOutputFilter,
    "broken": BrokenFilter,
}


# ---------------------------------------------------------------------------
# Fixtures and builders
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> FilterRegistry:
    """The built-in filters plus the test filters, isolated per test."""
    reg = default_registry.copy()
    for name, klass in TEST_FILTERS.items():
        reg.register(name, klass)
    return reg


@pytest.fixture
def config(tmp_path: Path) -> WhiskerConfig:
    """A WhiskerConfig rooted at a temp directory."""
    return WhiskerConfig(root=tmp_path)


def make_site(
    root: Path,
    items: list[Item],
    layouts: list[Layout] | None = None,
    rules: RuleSet | None = None,
    **config_kwargs: Any,
) -> Site:
    """Build an in-memory site whose config and rules are old."""
    return Site(
        WhiskerConfig(root=root, **config_kwargs),
        items,
        layouts or [],
        rules=rules,
        config_mtime=OLD_MTIME,
        rules_mtime=OLD_MTIME,
    )


def make_context(site: Site, registry: FilterRegistry) -> CompilationContext:
    """A compilation context with every rep of *site* routed."""
    Router(site.config, site.rules).route_all(site.reps())
    return CompilationContext(site=site, filters=registry, bus=NotificationCenter())


def output_file(root: Path, route: str) -> Path:
    return root / "output" / route.lstrip("/")


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """Create a minimal site on disk.

    Returns the path to the site root with content/, layouts/, lib/ and a
    rules file.  The ``frame`` layout filter is defined in lib/ so loading
    the site registers it.
    """
    content = tmp_path / "content"
    content.mkdir()
    (content / "index.md").write_text(
        "---\ntitle: Home\n---\n\n# Welcome\n\nThis is the home page.\n"
    )
    docs = content / "docs"
    docs.mkdir()
    (docs / "getting-started.md").write_text(
        "---\ntitle: Getting Started\n---\n\n# Getting Started\n\nHello world.\n"
    )
    (content / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x01")
    (content / "logo.yaml").write_text("alt: Logo\n")

    layouts = tmp_path / "layouts"
    layouts.mkdir()
    (layouts / "default.html").write_text("<html><body>{content}</body></html>\n")

    lib = tmp_path / "lib"
    lib.mkdir()
    (lib / "filters.py").write_text(
        "from whisker.filters import Filter, register_filter\n"
        "\n"
        "\n"
        '@register_filter("site_frame")\n'
        "class SiteFrame(Filter):\n"
        "    def run(self, content, params):\n"
        '        return str(content).replace("{content}", self.assigns["content"])\n'
    )

    (tmp_path / "rules.yaml").write_text(
        "compile:\n"
        "  - pattern: /logo/\n"
        "  - pattern: '*'\n"
        "    filters: [markdown]\n"
        "    layout: /default/\n"
        "route:\n"
        "  - pattern: /logo/\n"
        "    path: /logo.png\n"
        "layout:\n"
        "  - pattern: '*'\n"
        "    filter: site_frame\n"
    )
    return tmp_path

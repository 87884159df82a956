"""Tests for whisker.core.outdated — the outdated oracle."""

from __future__ import annotations

import os
from pathlib import Path

from whisker.core.item import CodeSnippet, Item, Layout
from whisker.core.router import Router
from whisker.core.site import Site

from .conftest import OLD_MTIME, make_site

NEWER = 4_000_000_000.0


def _routed_rep(site: Site):
    rep = site.items[0].rep_named()
    Router(site.config, site.rules).route(rep)
    return rep


def _write_output(rep, mtime: float = 2_000_000.0) -> Path:
    rep.raw_path.parent.mkdir(parents=True, exist_ok=True)
    rep.raw_path.write_text("compiled")
    os.utime(rep.raw_path, (mtime, mtime))
    return rep.raw_path


class TestIsOutdated:
    """Each condition on its own makes the rep outdated."""

    def test_everything_older_is_up_to_date(self, tmp_path: Path) -> None:
        site = make_site(
            tmp_path,
            [Item.text("/a/", "x", mtime=OLD_MTIME)],
            [Layout("/default/", "{content}", mtime=OLD_MTIME)],
        )
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is False

    def test_unknown_item_mtime(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=None)])
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_forced(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=OLD_MTIME)])
        rep = _routed_rep(site)
        _write_output(rep)
        rep.force_outdated = True
        assert rep.is_outdated(site) is True

    def test_no_output_file(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=OLD_MTIME)])
        rep = _routed_rep(site)
        assert rep.is_outdated(site) is True

    def test_not_written_rep(self, tmp_path: Path) -> None:
        site = make_site(
            tmp_path,
            [Item.text("/a/", "x", {"skip_output": True}, mtime=OLD_MTIME)],
        )
        rep = _routed_rep(site)
        assert rep.raw_path is None
        assert rep.is_outdated(site) is True

    def test_item_newer(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=NEWER)])
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_layout_newer(self, tmp_path: Path) -> None:
        site = make_site(
            tmp_path,
            [Item.text("/a/", "x", mtime=OLD_MTIME)],
            [Layout("/default/", "{content}", mtime=NEWER)],
        )
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_layout_mtime_unknown(self, tmp_path: Path) -> None:
        site = make_site(
            tmp_path,
            [Item.text("/a/", "x", mtime=OLD_MTIME)],
            [Layout("/default/", "{content}", mtime=None)],
        )
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_code_newer(self, tmp_path: Path) -> None:
        site = Site(
            make_site(tmp_path, []).config,
            [Item.text("/a/", "x", mtime=OLD_MTIME)],
            code_snippets=[CodeSnippet("filters.py", tmp_path / "filters.py", NEWER)],
            config_mtime=OLD_MTIME,
            rules_mtime=OLD_MTIME,
        )
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_config_newer(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=OLD_MTIME)])
        site.config_mtime = NEWER
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_rules_mtime_unknown(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=OLD_MTIME)])
        site.rules_mtime = None
        rep = _routed_rep(site)
        _write_output(rep)
        assert rep.is_outdated(site) is True

    def test_pure(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, [Item.text("/a/", "x", mtime=OLD_MTIME)])
        rep = _routed_rep(site)
        path = _write_output(rep)
        before = path.stat().st_mtime
        rep.is_outdated(site)
        assert path.stat().st_mtime == before
        assert path.read_text() == "compiled"

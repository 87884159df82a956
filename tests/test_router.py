"""Tests for whisker.core.router — output paths and collisions."""

from __future__ import annotations

from pathlib import Path

import pytest

from whisker._errors import ConfigError, RouteCollision
from whisker.core.item import Item
from whisker.core.router import Router
from whisker.rules.resolver import RuleSet

from .conftest import make_site


def _route(tmp_path: Path, item: Item, rules: RuleSet | None = None, rep: str = "default"):
    site = make_site(tmp_path, [item], rules=rules)
    target = item.rep_named(rep)
    Router(site.config, site.rules).route(target)
    return target


class TestConventionalRoutes:
    def test_default(self, tmp_path: Path) -> None:
        rep = _route(tmp_path, Item.text("/about/", "x"))
        assert rep.path == "/about/"
        assert rep.raw_path == tmp_path / "output" / "about" / "index.html"

    def test_root_item(self, tmp_path: Path) -> None:
        rep = _route(tmp_path, Item.text("/", "x"))
        assert rep.path == "/"
        assert rep.raw_path == tmp_path / "output" / "index.html"

    def test_filename_and_extension_attributes(self, tmp_path: Path) -> None:
        item = Item.text("/feed/", "x", {"filename": "atom", "extension": "xml"})
        rep = _route(tmp_path, item)
        assert rep.path == "/feed/atom.xml"
        assert rep.raw_path == tmp_path / "output" / "feed" / "atom.xml"

    def test_binary_uses_source_extension(self, tmp_path: Path) -> None:
        rep = _route(tmp_path, Item.binary_file("/logo/", tmp_path / "logo.png"))
        assert rep.path == "/logo/index.png"

    def test_named_rep(self, tmp_path: Path) -> None:
        rules = RuleSet().compile("/about/", rep="print")
        rep = _route(tmp_path, Item.text("/about/", "x"), rules, rep="print")
        assert rep.path == "/about/index-print.html"

    def test_skip_output(self, tmp_path: Path) -> None:
        rep = _route(tmp_path, Item.text("/draft/", "x", {"skip_output": True}))
        assert rep.path is None
        assert rep.raw_path is None
        assert rep.routed


class TestRouteRules:
    def test_custom_path(self, tmp_path: Path) -> None:
        rules = RuleSet().route("/style/", "/style.css")
        rep = _route(tmp_path, Item.text("/style/", "x"), rules)
        assert rep.path == "/style.css"
        assert rep.raw_path == tmp_path / "output" / "style.css"

    def test_placeholders(self, tmp_path: Path) -> None:
        rules = RuleSet().route("/blog/*", "{identifier}{rep}.{extension}")
        rep = _route(tmp_path, Item.text("/blog/post/", "x"), rules)
        assert rep.path == "/blog/post/default.html"

    def test_null_path_not_written(self, tmp_path: Path) -> None:
        rules = RuleSet().route("/drafts/*", None)
        rep = _route(tmp_path, Item.text("/drafts/one/", "x"), rules)
        assert rep.raw_path is None

    def test_bad_placeholder(self, tmp_path: Path) -> None:
        rules = RuleSet().route("*", "{nope}.html")
        with pytest.raises(ConfigError, match="Invalid route template"):
            _route(tmp_path, Item.text("/a/", "x"), rules)

    def test_route_computed_once(self, tmp_path: Path) -> None:
        item = Item.text("/a/", "x")
        site = make_site(tmp_path, [item])
        rep = item.rep_named()
        router = Router(site.config, site.rules)
        router.route(rep)
        item.attributes["filename"] = "changed"
        router.route(rep)
        assert rep.path == "/a/"


class TestCheckCollisions:
    def test_collision_names_both(self, tmp_path: Path) -> None:
        rules = RuleSet().route("*", "/same.html")
        site = make_site(tmp_path, [Item.text("/a/", "1"), Item.text("/b/", "2")], rules=rules)
        with pytest.raises(RouteCollision) as exc_info:
            Router(site.config, site.rules).check_collisions(site.reps())
        assert exc_info.value.identifiers == ("/a/", "/b/")

    def test_unwritten_reps_do_not_collide(self, tmp_path: Path) -> None:
        rules = RuleSet().route("*", None)
        site = make_site(tmp_path, [Item.text("/a/", "1"), Item.text("/b/", "2")], rules=rules)
        Router(site.config, site.rules).check_collisions(site.reps())


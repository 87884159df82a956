"""Tests for whisker.rules — rule matching, resolution and loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from whisker._errors import ConfigError
from whisker.core.item import Item, Layout
from whisker.rules import RuleSet, identifier_matches, load_rules, normalize_step


class TestIdentifierMatches:
    def test_exact(self) -> None:
        assert identifier_matches("/about/", "/about/")
        assert identifier_matches("about", "/about/")
        assert not identifier_matches("/about/", "/about/team/")

    def test_wildcard_spans_slashes(self) -> None:
        assert identifier_matches("/blog/*", "/blog/2024/post/")
        assert identifier_matches("*", "/")


class TestNormalizeStep:
    def test_name_only(self) -> None:
        assert normalize_step("markdown") == ("markdown", {})

    def test_mapping(self) -> None:
        name, params = normalize_step({"kida": {"autoescape": True}})
        assert name == "kida"
        assert params == {"autoescape": True}

    def test_pair(self) -> None:
        assert normalize_step(("append", {"suffix": "!"}))[1] == {"suffix": "!"}

    def test_invalid(self) -> None:
        with pytest.raises(ConfigError):
            normalize_step(42)

    def test_params_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError, match="must be a mapping"):
            normalize_step({"kida": ["x"]})


class TestRuleSet:
    """RuleSet — first matching rule wins, in declaration order."""

    def test_first_match_wins(self) -> None:
        rules = (
            RuleSet()
            .compile("/special/", filters=["upcase"])
            .compile("*", filters=["markdown"], layout="/default/")
        )
        special = Item.text("/special/", "")
        other = Item.text("/other/", "")
        assert rules.resolve(special, "default") == [("upcase", {})]
        assert rules.resolve(other, "default") == [("markdown", {})]
        assert rules.resolve_compile(special, "default").layout is None
        assert rules.resolve_compile(other, "default").layout == "/default/"

    def test_no_match(self) -> None:
        rules = RuleSet().compile("/a/", filters=["upcase"])
        assert rules.resolve(Item.text("/b/", ""), "default") == []
        assert rules.resolve_compile(Item.text("/b/", ""), "default") is None

    def test_rep_specific(self) -> None:
        rules = RuleSet().compile("*", rep="print", filters=["upcase"])
        item = Item.text("/a/", "")
        assert rules.resolve(item, "default") == []
        assert rules.resolve(item, "print") == [("upcase", {})]

    def test_rep_names(self) -> None:
        rules = RuleSet().compile("/a/", rep="print").route("*", "/x", rep="json")
        assert rules.rep_names_for(Item.text("/a/", "")) == ("default", "print", "json")
        assert rules.rep_names_for(Item.text("/b/", "")) == ("default", "json")

    def test_layout_filter(self) -> None:
        rules = RuleSet().layout("/feed/", "frame").layout("*", "kida", autoescape=True)
        assert rules.resolve_layout_filter(Layout("/feed/", "")) == ("frame", {})
        assert rules.resolve_layout_filter(Layout("/page/", "")) == (
            "kida",
            {"autoescape": True},
        )

    def test_layout_filter_unresolved(self) -> None:
        assert RuleSet().resolve_layout_filter(Layout("/page/", "")) is None


class TestLoadRules:
    def test_missing_file(self, tmp_path: Path) -> None:
        rules = load_rules(tmp_path / "rules.yaml")
        assert rules.compile_rules == []

    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            "compile:\n"
            "  - pattern: /style/\n"
            "    filters: [upcase]\n"
            "  - pattern: '*'\n"
            "    filters:\n"
            "      - markdown\n"
            "      - append: {suffix: '!'}\n"
            "    layout: /default/\n"
            "route:\n"
            "  - pattern: /style/\n"
            "    path: /style.css\n"
            "  - pattern: /drafts/*\n"
            "    path: null\n"
            "layout:\n"
            "  - pattern: '*'\n"
            "    filter: kida\n"
            "    params: {autoescape: false}\n"
        )
        rules = load_rules(path)
        item = Item.text("/post/", "")
        assert rules.resolve(item, "default") == [("markdown", {}), ("append", {"suffix": "!"})]
        assert rules.resolve_route(Item.text("/style/", ""), "default").path == "/style.css"
        assert rules.resolve_route(Item.text("/drafts/x/", ""), "default").path is None
        assert rules.resolve_layout_filter(Layout("/default/", "")) == (
            "kida",
            {"autoescape": False},
        )

    @pytest.mark.parametrize(
        "source",
        [
            "compile: [unclosed\n",
            "- just a list\n",
            "extra: []\n",
            "compile:\n  - filters: [markdown]\n",
            "compile:\n  - pattern: '*'\n    filters: markdown\n",
            "route:\n  - pattern: '*'\n",
            "layout:\n  - pattern: '*'\n",
        ],
    )
    def test_malformed(self, tmp_path: Path, source: str) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(source)
        with pytest.raises(ConfigError):
            load_rules(path)

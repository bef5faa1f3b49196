#!/usr/bin/env python3
"""Tests for pattern matching rules."""

import re

import pytest

from rebackup.core.constants import ItemType
from rebackup.core.types import Item
from rebackup.rules.engine import ExcludeItem, IncludeItem, SkipRule
from rebackup.rules.patterns import (
    PatternMatcher,
    PatternType,
    make_include_only_rule,
    make_pattern_rule,
)


class TestPatternMatcher:
    """Tests for PatternMatcher."""

    def test_empty_matcher(self):
        """An empty matcher matches nothing."""
        matcher = PatternMatcher()

        assert not matcher
        assert len(matcher) == 0
        assert not matcher.matches("file.txt")

    def test_simple_glob(self):
        matcher = PatternMatcher()
        matcher.add_glob_pattern("*.log")

        assert matcher.matches("app.log")
        assert not matcher.matches("app.txt")

    def test_simple_glob_crosses_separators(self):
        """Without '**', '*' also matches directory separators."""
        matcher = PatternMatcher()
        matcher.add_glob_pattern("*.log")

        assert matcher.matches("var/log/app.log")

    def test_doublestar_prefix(self):
        """'**/' matches any number of leading directories."""
        matcher = PatternMatcher()
        matcher.add_glob_pattern("**/*.log")

        assert matcher.matches("app.log")
        assert matcher.matches("var/log/app.log")
        assert not matcher.matches("var/log/app.txt")

    def test_doublestar_star_stays_in_segment(self):
        """With '**', a single '*' does not cross separators."""
        matcher = PatternMatcher()
        matcher.add_glob_pattern("**/build/*.o")

        assert matcher.matches("src/build/main.o")
        assert not matcher.matches("src/build/sub/main.o")

    def test_doublestar_suffix(self):
        """'/**' matches the directory and everything below it."""
        matcher = PatternMatcher()
        matcher.add_glob_pattern("docs/**")

        assert matcher.matches("docs")
        assert matcher.matches("docs/api/index.md")
        assert not matcher.matches("src/docs.md")

    def test_question_mark(self):
        matcher = PatternMatcher()
        matcher.add_glob_pattern("**/file?.txt")

        assert matcher.matches("a/file1.txt")
        assert not matcher.matches("a/file10.txt")

    def test_regex_searches_anywhere(self):
        """Regex patterns are searched, not anchored."""
        matcher = PatternMatcher()
        matcher.add_regex_pattern(r"\.tmp$")

        assert matcher.matches("cache/data.tmp")
        assert not matcher.matches("cache/data.tmp.bak")

    def test_invalid_regex(self):
        with pytest.raises(re.error):
            PatternMatcher().add_regex_pattern("[unclosed")

    def test_add_pattern_dispatches(self):
        matcher = PatternMatcher()
        matcher.add_pattern("*.py")
        matcher.add_pattern(r"^build/", PatternType.REGEX)

        assert matcher.matches("main.py")
        assert matcher.matches("build/out")
        assert matcher.get_patterns() == ["*.py", r"^build/"]

    def test_case_insensitive(self):
        """Case-insensitive matchers ignore case on both sides."""
        matcher = PatternMatcher(case_sensitive=False)
        matcher.add_glob_pattern("*.LOG")
        matcher.add_regex_pattern(r"^readme")

        assert matcher.matches("App.log")
        assert matcher.matches("README.md")

    def test_case_sensitive(self):
        matcher = PatternMatcher()
        matcher.add_glob_pattern("*.LOG")

        assert not matcher.matches("app.log")

    def test_leading_slash_ignored(self):
        matcher = PatternMatcher()
        matcher.add_glob_pattern("**/*.log")

        assert matcher.matches("/var/app.log")

    def test_any_pattern_matches(self):
        """Patterns are combined with OR logic."""
        matcher = PatternMatcher()
        matcher.add_glob_pattern("*.log")
        matcher.add_glob_pattern("*.tmp")

        assert matcher.matches("a.tmp")
        assert len(matcher) == 2


class TestPatternRules:
    """Tests for rules built from patterns."""

    def test_pattern_rule_matches_relative_path(self, tmp_path, make_context):
        """Patterns are matched against the path relative to the root."""
        context = make_context(tmp_path)
        rule = make_pattern_rule("exclude-pattern", ["logs/*.log"], ExcludeItem())

        assert rule.matches(Item(tmp_path / "logs" / "app.log", ItemType.FILE), context)
        assert not rule.matches(Item(tmp_path / "app.log", ItemType.FILE), context)
        assert rule.action(Item(tmp_path / "app.log", ItemType.FILE), context) == ExcludeItem()

    def test_pattern_rule_metadata(self):
        rule = make_pattern_rule(
            "keep",
            ["*.md", "*.txt"],
            IncludeItem(),
            only_for=ItemType.FILE,
        )

        assert rule.name == "keep"
        assert rule.description == "Pattern: *.md, *.txt"
        assert rule.only_for == ItemType.FILE

    def test_pattern_rule_custom_description(self):
        rule = make_pattern_rule("keep", ["*.md"], IncludeItem(), description="Docs")

        assert rule.description == "Docs"

    def test_regex_pattern_rule(self, tmp_path, make_context):
        context = make_context(tmp_path)
        rule = make_pattern_rule(
            "exclude-pattern", [r"^cache/"], ExcludeItem(), pattern_type=PatternType.REGEX
        )

        assert rule.matches(Item(tmp_path / "cache" / "x", ItemType.FILE), context)
        assert not rule.matches(Item(tmp_path / "src" / "cache" / "x", ItemType.FILE), context)

    def test_include_only_keeps_matching_files(self, tmp_path, make_context):
        """Matching files are left to the following rules."""
        context = make_context(tmp_path)
        rule = make_include_only_rule(["**/*.jpg"])
        item = Item(tmp_path / "photos" / "cat.jpg", ItemType.FILE)

        assert rule.name == "include-only-pattern"
        assert rule.matches(item, context)
        assert rule.action(item, context) == SkipRule()

    def test_include_only_excludes_other_files(self, tmp_path, make_context):
        context = make_context(tmp_path)
        rule = make_include_only_rule(["**/*.jpg"])
        item = Item(tmp_path / "notes.txt", ItemType.FILE)

        assert rule.action(item, context) == ExcludeItem()

    def test_include_only_ignores_directories(self, tmp_path, make_context):
        """Directories are traversed to reach matching files."""
        context = make_context(tmp_path)
        rule = make_include_only_rule(["**/*.jpg"])

        assert not rule.matches(Item(tmp_path / "photos", ItemType.DIRECTORY), context)
        assert rule.matches(Item(tmp_path / "link", ItemType.SYMLINK), context)

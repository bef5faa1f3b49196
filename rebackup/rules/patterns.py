#!/usr/bin/env python3
r"""Pattern matching rules for glob and regex patterns.

This module provides pattern based rules for the walker:
- Glob pattern matching (*.log, **/node_modules)
- Regex pattern matching with compiled patterns
- Matching on paths relative to the walk root
- Case-sensitive and case-insensitive modes

Simple globs are matched with fnmatch, so ``*`` also crosses directory
separators there. Globs containing ``**`` are translated to a regex in which
``*`` stays within one path segment.

Example:
    >>> matcher = PatternMatcher()
    >>> matcher.add_glob_pattern("**/*.log")
    >>> matcher.add_regex_pattern(r"\.tmp$")
    >>> matcher.matches("var/log/app.log")
    True
"""

import fnmatch
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Union

from rebackup.core.constants import ItemType
from rebackup.core.types import Item, WalkContext
from rebackup.rules.engine import ExcludeItem, Rule, RuleResult, SkipRule, constant


class PatternType(Enum):
    """Pattern matching type."""

    GLOB = "glob"  # Shell-style patterns (*.txt, **/*.py)
    REGEX = "regex"  # Regular expressions


@dataclass
class PatternEntry:
    """A single compiled pattern."""

    pattern: str
    pattern_type: PatternType
    compiled: Union[Pattern, str]
    case_sensitive: bool = True


def _glob_to_regex(pattern: str) -> str:
    """Translate a glob containing ``**`` into an anchored regex."""
    doublestar = "\x00DOUBLESTAR\x00"
    star = "\x00STAR\x00"
    question = "\x00QUESTION\x00"

    regex = pattern.replace("**", doublestar).replace("*", star).replace("?", question)
    regex = re.escape(regex)

    # **/ at start or after / matches any number of leading segments (including none)
    regex = regex.replace(re.escape(doublestar) + re.escape("/"), "(?:.*/|)")
    # /** matches any number of trailing segments (including none)
    regex = regex.replace(re.escape("/") + re.escape(doublestar), "(?:/.*|)")
    regex = regex.replace(re.escape(doublestar), ".*")
    regex = regex.replace(re.escape(star), "[^/]*")
    regex = regex.replace(re.escape(question), "[^/]")

    return "^" + regex + "$"


class PatternMatcher:
    """Pattern matcher supporting glob and regex patterns.

    Matches if any registered pattern matches (OR logic).
    """

    def __init__(self, case_sensitive: bool = True):
        """Initialize pattern matcher.

        Args:
            case_sensitive: Whether patterns are case-sensitive
        """
        self._patterns: List[PatternEntry] = []
        self._case_sensitive = case_sensitive

    def add_glob_pattern(self, pattern: str) -> None:
        """Add glob pattern (e.g., "*.py", "**/build")."""
        normalized = pattern.replace("\\", "/")
        if not self._case_sensitive:
            normalized = normalized.lower()

        if "**" in normalized:
            compiled: Union[Pattern, str] = re.compile(_glob_to_regex(normalized))
        else:
            compiled = normalized

        self._patterns.append(
            PatternEntry(pattern, PatternType.GLOB, compiled, self._case_sensitive)
        )

    def add_regex_pattern(self, pattern: str) -> None:
        """Add regex pattern, searched anywhere in the path.

        Raises:
            re.error: If the pattern does not compile
        """
        flags = 0 if self._case_sensitive else re.IGNORECASE
        self._patterns.append(
            PatternEntry(pattern, PatternType.REGEX, re.compile(pattern, flags), self._case_sensitive)
        )

    def add_pattern(self, pattern: str, pattern_type: PatternType = PatternType.GLOB) -> None:
        if pattern_type == PatternType.GLOB:
            self.add_glob_pattern(pattern)
        else:
            self.add_regex_pattern(pattern)

    def _normalize_path(self, path: Union[str, Path], case_sensitive: bool) -> str:
        """Normalize a path for matching: forward slashes, no leading slash."""
        path = str(path).replace("\\", "/").lstrip("/")
        if not case_sensitive:
            path = path.lower()
        return path

    def matches(self, path: Union[str, Path]) -> bool:
        """Check if path matches any pattern.

        Args:
            path: Path to check, usually relative to the walk root

        Returns:
            True if path matches any pattern
        """
        for entry in self._patterns:
            normalized = self._normalize_path(path, entry.case_sensitive)

            if isinstance(entry.compiled, str):
                if fnmatch.fnmatchcase(normalized, entry.compiled):
                    return True
            elif entry.pattern_type == PatternType.GLOB:
                if entry.compiled.match(normalized):
                    return True
            elif entry.compiled.search(normalized):
                return True

        return False

    def get_patterns(self) -> List[str]:
        """Get all registered pattern strings."""
        return [entry.pattern for entry in self._patterns]

    def __len__(self) -> int:
        return len(self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)


def _build_matcher(
    patterns: Iterable[str], pattern_type: PatternType, case_sensitive: bool
) -> PatternMatcher:
    matcher = PatternMatcher(case_sensitive)
    for pattern in patterns:
        matcher.add_pattern(pattern, pattern_type)
    return matcher


def make_pattern_rule(
    name: str,
    patterns: Iterable[str],
    result: RuleResult,
    pattern_type: PatternType = PatternType.GLOB,
    only_for: Optional[ItemType] = None,
    case_sensitive: bool = True,
    description: Optional[str] = None,
) -> Rule:
    """Build a rule returning ``result`` for items matching any pattern.

    Patterns are matched against the item path relative to the walk root.

    Args:
        name: Rule name
        patterns: Glob or regex patterns
        result: Result returned on match
        pattern_type: Pattern syntax
        only_for: Optional item type filter
        case_sensitive: Whether matching is case-sensitive
        description: Optional description (defaults to the pattern list)

    Returns:
        Rule
    """
    patterns = list(patterns)
    matcher = _build_matcher(patterns, pattern_type, case_sensitive)

    def matches(item: Item, context: WalkContext) -> bool:
        return matcher.matches(context.relative(item.path))

    return Rule(
        name=name,
        matches=matches,
        action=constant(result),
        description=description or f"Pattern: {', '.join(patterns)}",
        only_for=only_for,
    )


def make_include_only_rule(
    patterns: Iterable[str],
    pattern_type: PatternType = PatternType.GLOB,
    case_sensitive: bool = True,
) -> Rule:
    """Build a rule excluding every non-directory item matching none of the patterns.

    Directories are left alone so that matching items below them are reached;
    combine with ``drop_empty_dirs`` to avoid listing emptied directories.
    """
    patterns = list(patterns)
    matcher = _build_matcher(patterns, pattern_type, case_sensitive)

    def matches(item: Item, context: WalkContext) -> bool:
        return not item.is_dir

    def action(item: Item, context: WalkContext) -> RuleResult:
        if matcher.matches(context.relative(item.path)):
            return SkipRule()
        return ExcludeItem()

    return Rule(
        name="include-only-pattern",
        matches=matches,
        action=action,
        description=f"Only: {', '.join(patterns)}",
    )

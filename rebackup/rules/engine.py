#!/usr/bin/env python3
"""Rule engine for item selection.

This module decides what happens to each item met by the walker:
- Ordered rules, first definitive result wins
- Optional item type filter per rule
- Include, exclude and remap results
- Rule failures abort the walk with a RuleError

Example:
    >>> engine = RuleEngine([
    ...     Rule(
    ...         name="dotgit",
    ...         only_for=ItemType.DIRECTORY,
    ...         matches=lambda item, ctx: item.name == ".git",
    ...         action=lambda item, ctx: ExcludeItem(),
    ...     )
    ... ])
    >>> engine.resolve(item, context)
    ExcludeItem()
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from rebackup.core.constants import ItemType
from rebackup.core.errors import RuleError
from rebackup.core.logging import get_logger
from rebackup.core.types import Item, WalkContext


@dataclass(frozen=True)
class IncludeItem:
    """Keep the item as-is."""


@dataclass(frozen=True)
class ExcludeItem:
    """Drop the item and, for a directory, its whole subtree."""


@dataclass(frozen=True)
class MapItem:
    """Keep the item but report it as ``new_path``.

    For a directory, its descendants are reported under ``new_path``.
    """

    new_path: Path

    def __post_init__(self):
        object.__setattr__(self, "new_path", Path(self.new_path))


@dataclass(frozen=True)
class MapAsList:
    """Walk the listed sub-items instead of traversing the item.

    Paths are absolute or relative to the item. They must be located inside
    the item and must exist. Only valid on directories, including followed
    symbolic links to directories.
    """

    paths: Tuple[Path, ...]

    def __post_init__(self):
        object.__setattr__(self, "paths", tuple(Path(p) for p in self.paths))


@dataclass(frozen=True)
class SkipRule:
    """The rule declines after all; the next rule is consulted."""


@dataclass(frozen=True)
class RuleFailure:
    """The rule failed with a message; the walk is aborted."""

    message: str


RuleResult = Union[IncludeItem, ExcludeItem, MapItem, MapAsList, SkipRule, RuleFailure]

MatchFn = Callable[[Item, WalkContext], bool]
ActionFn = Callable[[Item, WalkContext], RuleResult]


@dataclass(frozen=True)
class Rule:
    """A named predicate and action evaluated against one item.

    ``matches`` should be cheap; ``action`` is only run when it returns True.
    An action may run external processes, but must restore any process-wide
    state (working directory, environment) before returning.
    """

    name: str
    matches: MatchFn
    action: ActionFn
    description: Optional[str] = None
    only_for: Optional[ItemType] = None

    def applies_to(self, item: Item) -> bool:
        """Check the rule's item type filter."""
        return self.only_for is None or self.only_for == item.item_type


def always(item: Item, context: WalkContext) -> bool:
    """Predicate matching every item."""
    return True


def constant(result: RuleResult) -> ActionFn:
    """Build an action that always returns ``result``."""

    def action(item: Item, context: WalkContext) -> RuleResult:
        return result

    return action


class RuleEngine:
    """Resolve an ordered rule list into one decision per item.

    Features:
    - First-definitive-result-wins precedence
    - Item type filtering
    - Default decision is IncludeItem
    - Rule failures wrapped with rule name and item path
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        """Initialize rule engine.

        Args:
            rules: Rules in evaluation order
        """
        self._rules: List[Rule] = list(rules)
        self._logger = get_logger()

    def add_rule(self, rule: Rule) -> None:
        """Append rule to the evaluation order."""
        self._rules.append(rule)

    def get_rules(self) -> List[Rule]:
        """Get all rules in evaluation order."""
        return self._rules.copy()

    def resolve(self, item: Item, context: WalkContext) -> RuleResult:
        """Decide what to do with an item.

        Args:
            item: Item under inspection
            context: Walk context

        Returns:
            IncludeItem, ExcludeItem, MapItem or MapAsList

        Raises:
            RuleError: If a rule fails
        """
        return self.decide(item, context)[1]

    def decide(self, item: Item, context: WalkContext) -> Tuple[Optional[Rule], RuleResult]:
        """Decide what to do with an item and report which rule decided.

        Returns:
            The deciding rule (None for the default decision) and its result

        Raises:
            RuleError: If a rule fails
        """
        for rule in self._rules:
            if not rule.applies_to(item):
                continue

            if not self._call(rule, rule.matches, item, context):
                continue

            result = self._call(rule, rule.action, item, context)
            self._logger.debug(
                "Rule returned response", rule=rule.name, item=item.path, result=result
            )

            if isinstance(result, SkipRule):
                continue

            if isinstance(result, RuleFailure):
                raise RuleError(rule.name, item.path, result.message, rule.description)

            if not isinstance(result, (IncludeItem, ExcludeItem, MapItem, MapAsList)):
                raise RuleError(
                    rule.name,
                    item.path,
                    f"invalid rule result: {result!r}",
                    rule.description,
                )

            return rule, result

        return None, IncludeItem()

    def _call(self, rule: Rule, fn: Callable, item: Item, context: WalkContext):
        """Run a rule callback, wrapping any failure into a RuleError."""
        try:
            return fn(item, context)
        except RuleError:
            raise
        except Exception as e:
            raise RuleError(rule.name, item.path, str(e) or type(e).__name__, rule.description) from e

    def __len__(self) -> int:
        """Return number of rules."""
        return len(self._rules)

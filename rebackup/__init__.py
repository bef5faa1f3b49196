"""ReBackup - build the list of files to back up.

ReBackup walks a source directory and decides, through an ordered list of
rules, which items should be backed up and under which path. The resulting
list is meant to be piped into an archiving tool.

Example:
    >>> from rebackup import WalkerConfig, walk
    >>> from rebackup.rules.builtin import dotgit
    >>> walk("/data", WalkerConfig(rules=[dotgit()]))
"""

from rebackup.core.constants import REBACKUP_VERSION, ItemType
from rebackup.core.errors import RuleError, RuleMappingError, WalkError, WalkerIOError
from rebackup.core.types import Item, WalkContext, WalkerConfig
from rebackup.rules.engine import (
    ExcludeItem,
    IncludeItem,
    MapAsList,
    MapItem,
    Rule,
    RuleEngine,
    RuleFailure,
    RuleResult,
    SkipRule,
)
from rebackup.walker import VisitTracker, Walker, walk

__version__ = REBACKUP_VERSION

__all__ = [
    "__version__",
    # Data types
    "ItemType",
    "Item",
    "WalkContext",
    "WalkerConfig",
    # Rules
    "Rule",
    "RuleEngine",
    "RuleResult",
    "IncludeItem",
    "ExcludeItem",
    "MapItem",
    "MapAsList",
    "SkipRule",
    "RuleFailure",
    # Walker
    "Walker",
    "VisitTracker",
    "walk",
    # Errors
    "WalkError",
    "WalkerIOError",
    "RuleError",
    "RuleMappingError",
]

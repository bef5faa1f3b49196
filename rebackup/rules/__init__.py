"""ReBackup Rules System.

This module provides the rules deciding what the walker does with each item:
- RuleEngine: first-definitive-result-wins evaluation
- PatternMatcher: glob and regex pattern rules
- Shell filters: rules backed by external commands
- Built-in rules: nomedia, dotgit, node_modules, cargo_target, gitignore
"""

from .builtin import BUILTIN_RULES, get_builtin_rule, list_builtin_rules
from .engine import (
    ExcludeItem,
    IncludeItem,
    MapAsList,
    MapItem,
    Rule,
    RuleEngine,
    RuleFailure,
    RuleResult,
    SkipRule,
    always,
    constant,
)
from .factory import build_rule, build_rules, shell_settings_from_config
from .patterns import PatternMatcher, PatternType, make_include_only_rule, make_pattern_rule
from .shell import ShellSettings, make_shell_filter_rule

__all__ = [
    # Rule engine
    "Rule",
    "RuleEngine",
    "RuleResult",
    "IncludeItem",
    "ExcludeItem",
    "MapItem",
    "MapAsList",
    "SkipRule",
    "RuleFailure",
    "always",
    "constant",
    # Pattern matching
    "PatternType",
    "PatternMatcher",
    "make_pattern_rule",
    "make_include_only_rule",
    # Shell filters
    "ShellSettings",
    "make_shell_filter_rule",
    # Built-in rules
    "BUILTIN_RULES",
    "get_builtin_rule",
    "list_builtin_rules",
    # Configuration
    "build_rule",
    "build_rules",
    "shell_settings_from_config",
]

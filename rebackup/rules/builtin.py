#!/usr/bin/env python3
"""Built-in rules for common backup exclusions.

Available rules:
- nomedia: exclude directories containing a '.nomedia' file
- dotgit: exclude '.git' directories
- node_modules: exclude 'node_modules' directories
- cargo_target: exclude the 'target' directory of Cargo projects
- gitignore: exclude items ignored by Git in Git working trees
"""

import os
import subprocess
from typing import Callable, Dict, List

from rebackup.core.constants import ItemType
from rebackup.core.types import Item, WalkContext
from rebackup.rules.engine import ExcludeItem, Rule, RuleResult, SkipRule, constant


def nomedia() -> Rule:
    """Exclude directories containing a '.nomedia' file."""
    return Rule(
        name="nomedia",
        only_for=ItemType.DIRECTORY,
        matches=lambda item, ctx: (item.path / ".nomedia").is_file(),
        action=constant(ExcludeItem()),
    )


def dotgit() -> Rule:
    """Exclude '.git' directories."""
    return Rule(
        name="dotgit",
        only_for=ItemType.DIRECTORY,
        matches=lambda item, ctx: item.name == ".git",
        action=constant(ExcludeItem()),
    )


def node_modules() -> Rule:
    """Exclude 'node_modules' directories."""
    return Rule(
        name="node_modules",
        only_for=ItemType.DIRECTORY,
        matches=lambda item, ctx: item.name == "node_modules",
        action=constant(ExcludeItem()),
    )


def cargo_target() -> Rule:
    """Exclude the 'target' directory next to a 'Cargo.toml' file."""
    return Rule(
        name="cargo_target",
        only_for=ItemType.DIRECTORY,
        matches=lambda item, ctx: item.name == "target"
        and (item.path.parent / "Cargo.toml").is_file(),
        action=constant(ExcludeItem()),
    )


def _in_git_worktree(item: Item, context: WalkContext) -> bool:
    return any((ancestor / ".git").is_dir() for ancestor in item.path.parents)


def _git_check_ignore(item: Item, context: WalkContext) -> RuleResult:
    """Ask git whether the item is ignored.

    git is run from the item's directory, the walker's working directory is
    left untouched.
    """
    workdir = item.path if item.is_dir else item.path.parent

    completed = subprocess.run(
        ["git", "check-ignore", "-q", os.fsdecode(item.path)],
        cwd=workdir,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=False,
    )

    if completed.returncode == 0:
        return ExcludeItem()
    return SkipRule()


def gitignore() -> Rule:
    """Exclude items ignored by Git ('git check-ignore')."""
    return Rule(
        name="gitignore",
        matches=_in_git_worktree,
        action=_git_check_ignore,
    )


BUILTIN_RULES: Dict[str, Callable[[], Rule]] = {
    "nomedia": nomedia,
    "dotgit": dotgit,
    "node_modules": node_modules,
    "cargo_target": cargo_target,
    "gitignore": gitignore,
}


def get_builtin_rule(name: str) -> Rule:
    """Build a built-in rule by name.

    Raises:
        KeyError: If no built-in rule has this name
    """
    try:
        factory = BUILTIN_RULES[name]
    except KeyError:
        raise KeyError(f"Unknown builtin rule: {name}. Must be one of {sorted(BUILTIN_RULES)}")
    return factory()


def list_builtin_rules() -> List[str]:
    return sorted(BUILTIN_RULES)

#!/usr/bin/env python3
"""Shell filter rules.

A shell filter runs a command for every item it is applied on. The item path
is exposed to the command through the ``REBACKUP_ITEM`` environment variable.
The item is excluded when the command fails; on success the following rules
still get to decide.

Example:
    >>> rule = make_shell_filter_rule('test ! -f "$REBACKUP_ITEM/.nobackup"')
"""

import os
import subprocess
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from rebackup.core.constants import ITEM_ENV_VAR
from rebackup.core.types import Item, WalkContext
from rebackup.rules.engine import ExcludeItem, Rule, RuleResult, SkipRule, always


@dataclass(frozen=True)
class ShellSettings:
    """Shell used to run filter commands.

    Without an explicit ``path``, ``sh -c`` is used (``cmd.exe /C`` on
    Windows) and the configured arguments are ignored.
    """

    path: Optional[str] = None
    head_args: List[str] = field(default_factory=list)
    tail_args: List[str] = field(default_factory=list)
    display_output: bool = False

    def command_line(self, command: str) -> List[str]:
        """Build the argument vector running ``command``."""
        if self.path:
            return [self.path, *self.head_args, command, *self.tail_args]
        if sys.platform == "win32":
            return ["cmd.exe", "/C", command]
        return ["sh", "-c", command]


def make_shell_filter_rule(command: str, shell: Optional[ShellSettings] = None) -> Rule:
    """Build a rule filtering items with a shell command.

    Args:
        command: Shell command, reads the item path from $REBACKUP_ITEM
        shell: Shell settings

    Returns:
        Rule applied on every item
    """
    shell = shell or ShellSettings()
    argv = shell.command_line(command)

    def action(item: Item, context: WalkContext) -> RuleResult:
        env = dict(os.environ)
        env[ITEM_ENV_VAR] = os.fsdecode(item.path)

        output = None if shell.display_output else subprocess.DEVNULL
        completed = subprocess.run(argv, env=env, stdout=output, stderr=output, check=False)

        if completed.returncode == 0:
            return SkipRule()
        return ExcludeItem()

    return Rule(
        name="shell-filter",
        matches=always,
        action=action,
        description=f"Command: {command}",
    )

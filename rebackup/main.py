#!/usr/bin/env python3
"""Main entry point for building a files list.

This module handles:
- Rule construction from the merged configuration
- Running the walker on the source directory
- Rendering paths (relative/absolute, prefix, UTF-8 policy)
- Writing the list to STDOUT or to a file

Example:
    >>> from rebackup.main import run_rebackup
    >>> run_rebackup(args, config, logger)
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from rebackup.core.config import ConfigManager
from rebackup.core.constants import ConfigKey, ExitCode, NonUtf8Policy
from rebackup.core.errors import WalkError
from rebackup.core.logging import Logger
from rebackup.core.types import WalkerConfig
from rebackup.core.validators import ValidationError
from rebackup.rules.factory import build_rules, shell_settings_from_config
from rebackup.walker.walker import Walker


class InvalidFilenameError(Exception):
    """A path cannot be rendered as UTF-8."""

    def __init__(self, path: str):
        super().__init__(f"Found invalid UTF-8 name: {path}")
        self.path = path


def _key(*parts: str) -> str:
    return ".".join((ConfigKey.ROOT,) + parts)


def build_walker_config(config: ConfigManager) -> WalkerConfig:
    """Create the walker configuration from the merged configuration.

    Raises:
        ValidationError: If a rule entry is invalid
    """
    shell = shell_settings_from_config(config.get(_key(ConfigKey.SHELL)))
    rules = build_rules(config.get_rules(), shell)

    return WalkerConfig(
        rules=tuple(rules),
        follow_symlinks=bool(config.get(_key(ConfigKey.WALKER, ConfigKey.FOLLOW_SYMLINKS), False)),
        drop_empty_dirs=bool(config.get(_key(ConfigKey.WALKER, ConfigKey.DROP_EMPTY_DIRS), False)),
    )


def render_path(path: Path, source: Path, absolute: bool, policy: NonUtf8Policy) -> Optional[str]:
    """Render one path for the output.

    Returns:
        Rendered path, or None when the path must be skipped

    Raises:
        InvalidFilenameError: If the path is not valid UTF-8 and the policy is FAIL
    """
    if not absolute and path.is_absolute():
        try:
            path = path.relative_to(source)
        except ValueError:
            pass  # Mapped outside of the source, keep as-is

    rendered = str(path)

    try:
        rendered.encode("utf-8")
    except UnicodeEncodeError:
        lossy = os.fsencode(rendered).decode("utf-8", errors="replace")
        if policy == NonUtf8Policy.LOSSY:
            return lossy
        if policy == NonUtf8Policy.IGNORE:
            return None
        raise InvalidFilenameError(lossy)

    return rendered


def render_paths(
    paths: Iterable[Path],
    source: Path,
    absolute: bool = False,
    prefix: Optional[str] = None,
    sort: bool = True,
    policy: NonUtf8Policy = NonUtf8Policy.FAIL,
    logger: Optional[Logger] = None,
) -> List[str]:
    """Render walker paths as output lines.

    Raises:
        InvalidFilenameError: If a path is not valid UTF-8 and the policy is FAIL
    """
    lines = []

    for path in paths:
        rendered = render_path(path, source, absolute, policy)
        if rendered is None:
            if logger:
                logger.error("Found invalid UTF-8 name, skipping it", path=os.fsencode(str(path)))
            continue

        if prefix:
            rendered = f"{prefix}{rendered}"

        lines.append(rendered)

    if sort:
        lines.sort()

    return lines


def write_output(lines: List[str], output: Optional[str]) -> None:
    """Write the files list to ``output`` or to STDOUT.

    Raises:
        OSError: If the output file cannot be written
    """
    content = "\n".join(lines)
    if lines:
        content += "\n"

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(content)
    else:
        sys.stdout.write(content)
        sys.stdout.flush()


def run_rebackup(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    """Build and output the files list.

    Args:
        args: Parsed command-line arguments
        config: Merged configuration
        logger: Logger instance

    Returns:
        Process exit code
    """
    try:
        walker_config = build_walker_config(config)
    except ValidationError as e:
        logger.error(f"Invalid rule: {e}")
        return ExitCode.INVALID_PATTERN

    source = Path(os.path.abspath(args.source))
    logger.info("Building files list...", source=source, rules=len(walker_config.rules))

    try:
        items = Walker(walker_config, logger).walk(source)
    except WalkError as e:
        logger.error(f"Failed to build files list: {e}")
        return ExitCode.WALK_FAILED

    logger.debug("Converting filenames...", count=len(items))

    try:
        lines = render_paths(
            items,
            source,
            absolute=bool(config.get(_key(ConfigKey.OUTPUT, ConfigKey.OUTPUT_ABSOLUTE), False)),
            prefix=config.get(_key(ConfigKey.OUTPUT, ConfigKey.OUTPUT_PREFIX)),
            sort=bool(config.get(_key(ConfigKey.OUTPUT, ConfigKey.OUTPUT_SORT), True)),
            policy=NonUtf8Policy(
                config.get(_key(ConfigKey.OUTPUT, ConfigKey.OUTPUT_NON_UTF8), NonUtf8Policy.FAIL.value)
            ),
            logger=logger,
        )
    except InvalidFilenameError as e:
        logger.error(str(e))
        return ExitCode.INVALID_FILENAME

    if args.dry_run:
        logger.info("Dry run, not writing the files list", count=len(lines))
        return ExitCode.SUCCESS

    try:
        write_output(lines, args.output)
    except OSError as e:
        logger.error(f"Failed to write output file: {e}", output=args.output)
        return ExitCode.OUTPUT_FAILED

    logger.debug("Done!")
    return ExitCode.SUCCESS

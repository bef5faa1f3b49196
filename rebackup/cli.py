#!/usr/bin/env python3
"""Command-line interface for ReBackup.

This module provides the CLI building a files list for archiving tools:
- Argument parsing and validation
- Configuration file loading
- Rule options (patterns, shell filters, built-in rules)
- Help and version information

Example:
    >>> from rebackup.cli import parse_arguments
    >>> args = parse_arguments(['/data', '--exclude', '**/*.log'])
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rebackup.core.config import ConfigError, ConfigManager, ConfigSource
from rebackup.core.constants import REBACKUP_VERSION, ConfigKey, ExitCode, NonUtf8Policy
from rebackup.core.logging import Logger, configure_logging
from rebackup.core.validators import ValidationError, validate_config
from rebackup.rules.builtin import list_builtin_rules

DESCRIPTION = "ReBackup - build the list of files to back up"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    def __init__(self, message: str, exit_code: ExitCode = ExitCode.USAGE_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If validation fails
    """
    parser = argparse.ArgumentParser(
        prog="rebackup",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Archive a directory, skipping Git metadata
  rebackup /data --builtin dotgit | tar -cf backup.tar -C /data -T -

  # Exclude log files and directories holding a .nomedia file
  rebackup /data -e '**/*.log' --builtin nomedia --drop-empty-dirs

  # Filter items with a shell command ($REBACKUP_ITEM holds the item path)
  rebackup /data -f 'test ! -f "$REBACKUP_ITEM/.nobackup"'

  # Use a configuration file and write the list to a file
  rebackup /data --config rebackup.yaml -o files.txt
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {REBACKUP_VERSION}",
    )

    parser.add_argument("source", metavar="SOURCE", type=str, help="Source directory")

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Output options
    output_group = parser.add_argument_group("output options")

    output_group.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        type=str,
        help="Output file (prints to STDOUT if omitted)",
    )

    output_group.add_argument(
        "-a",
        "--absolute",
        action="store_true",
        help="Output absolute paths (default is relative to the source)",
    )

    output_group.add_argument(
        "-p",
        "--prefix",
        metavar="PREFIX",
        type=str,
        help="Prefix all output lines with a specific string",
    )

    output_group.add_argument(
        "--no-sort",
        action="store_true",
        help="Don't sort the rendered lines",
    )

    utf8_group = output_group.add_mutually_exclusive_group()

    utf8_group.add_argument(
        "--allow-non-utf8-filenames",
        action="store_true",
        help="Convert invalid UTF-8 filenames to lossy filenames",
    )

    utf8_group.add_argument(
        "-i",
        "--ignore-non-utf8-filenames",
        action="store_true",
        help="Don't back up items with invalid UTF-8 filenames",
    )

    output_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the list without printing or writing it",
    )

    # Walker options
    walker_group = parser.add_argument_group("walker options")

    walker_group.add_argument(
        "-s",
        "--follow-symlinks",
        action="store_true",
        help="Follow symbolic links",
    )

    walker_group.add_argument(
        "--drop-empty-dirs",
        action="store_true",
        help="Drop empty directories",
    )

    # Rule options
    rules_group = parser.add_argument_group("rule options")

    rules_group.add_argument(
        "--builtin",
        metavar="NAME",
        action="append",
        default=[],
        choices=list_builtin_rules(),
        help=f"Enable a built-in rule ({', '.join(list_builtin_rules())})",
    )

    rules_group.add_argument(
        "--include",
        metavar="PATTERN",
        action="append",
        default=[],
        help="Include items matching a glob pattern, ignoring all following rules",
    )

    rules_group.add_argument(
        "-e",
        "--exclude",
        metavar="PATTERN",
        action="append",
        default=[],
        help="Exclude items matching a glob pattern",
    )

    rules_group.add_argument(
        "--include-only",
        metavar="PATTERN",
        action="append",
        default=[],
        help="Only include files matching a glob pattern",
    )

    # Shell filter options
    shell_group = parser.add_argument_group("shell filter options")

    shell_group.add_argument(
        "-f",
        "--filter-with",
        metavar="COMMAND",
        action="append",
        default=[],
        help="Exclude items when the command fails (uses the REBACKUP_ITEM variable)",
    )

    shell_group.add_argument(
        "--shell",
        metavar="BINARY",
        type=str,
        help="Shell binary used to run filters",
    )

    shell_group.add_argument(
        "--shell-head-arg",
        metavar="ARG",
        action="append",
        dest="shell_head_args",
        default=[],
        help="Shell argument provided before commands (requires --shell, use --shell-head-arg=-c for dashed values)",
    )

    shell_group.add_argument(
        "--shell-tail-arg",
        metavar="ARG",
        action="append",
        dest="shell_tail_args",
        default=[],
        help="Shell argument provided after commands (requires --shell)",
    )

    shell_group.add_argument(
        "--display-shell-output",
        action="store_true",
        help="Print the commands' STDOUT and STDERR",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Display debug information",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to a file",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    source_path = Path(args.source)

    if not source_path.exists():
        raise CLIError(
            f"Source directory was not found at path: {args.source}", ExitCode.SOURCE_NOT_FOUND
        )

    if not source_path.is_dir():
        raise CLIError(f"Source is not a directory: {args.source}", ExitCode.SOURCE_NOT_FOUND)

    if (args.shell_head_args or args.shell_tail_args) and not args.shell:
        raise CLIError("--shell-head-arg and --shell-tail-arg require --shell")

    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build configuration dictionary from command-line arguments.

    Only options given on the command line are set, so that they override
    configuration files without resetting their other values.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration dictionary for ConfigManager
    """
    walker: Dict[str, Any] = {}
    if args.follow_symlinks:
        walker[ConfigKey.FOLLOW_SYMLINKS] = True
    if args.drop_empty_dirs:
        walker[ConfigKey.DROP_EMPTY_DIRS] = True

    output: Dict[str, Any] = {}
    if args.absolute:
        output[ConfigKey.OUTPUT_ABSOLUTE] = True
    if args.prefix:
        output[ConfigKey.OUTPUT_PREFIX] = args.prefix
    if args.no_sort:
        output[ConfigKey.OUTPUT_SORT] = False
    if args.allow_non_utf8_filenames:
        output[ConfigKey.OUTPUT_NON_UTF8] = NonUtf8Policy.LOSSY.value
    elif args.ignore_non_utf8_filenames:
        output[ConfigKey.OUTPUT_NON_UTF8] = NonUtf8Policy.IGNORE.value

    shell: Dict[str, Any] = {}
    if args.shell:
        shell[ConfigKey.SHELL_PATH] = args.shell
        shell[ConfigKey.SHELL_HEAD_ARGS] = list(args.shell_head_args)
        shell[ConfigKey.SHELL_TAIL_ARGS] = list(args.shell_tail_args)
    if args.display_shell_output:
        shell[ConfigKey.SHELL_DISPLAY_OUTPUT] = True

    rules: List[Dict[str, Any]] = [{ConfigKey.RULE_BUILTIN: name} for name in args.builtin]
    rules += [
        {ConfigKey.RULE_NAME: "include-pattern", ConfigKey.RULE_TYPE: "include", ConfigKey.RULE_PATTERN: p}
        for p in args.include
    ]
    rules += [
        {ConfigKey.RULE_NAME: "exclude-pattern", ConfigKey.RULE_TYPE: "exclude", ConfigKey.RULE_PATTERN: p}
        for p in args.exclude
    ]
    if args.include_only:
        rules.append({ConfigKey.RULE_TYPE: "include_only", ConfigKey.RULE_PATTERNS: list(args.include_only)})
    rules += [{ConfigKey.RULE_SHELL: command} for command in args.filter_with]

    config: Dict[str, Any] = {}
    for key, section in (
        (ConfigKey.WALKER, walker),
        (ConfigKey.OUTPUT, output),
        (ConfigKey.SHELL, shell),
        (ConfigKey.RULES, rules),
    ):
        if section:
            config[key] = section

    if args.log_file:
        config[ConfigKey.LOGGING] = {"file": args.log_file}

    return {ConfigKey.ROOT: config}


def load_configuration(args: argparse.Namespace) -> ConfigManager:
    """
    Build the merged configuration for a run.

    Precedence: defaults < system file < user file or --config < environment
    < command line.

    Raises:
        CLIError: If a configuration file cannot be loaded or an option is invalid
    """
    cli_config = build_config_from_args(args)
    try:
        validate_config(cli_config[ConfigKey.ROOT])
    except ValidationError as e:
        raise CLIError(f"Invalid pattern provided: {e}", ExitCode.INVALID_PATTERN)

    try:
        config = ConfigManager()
        config.load_default_files()
        if args.config:
            config.load_file(args.config, ConfigSource.USER_CONFIG)
        config.load_dict(cli_config, ConfigSource.CLI_ARGS)
        config.validate()
    except ConfigError as e:
        raise CLIError(str(e))

    return config


def setup_logging(args: argparse.Namespace, config: ConfigManager) -> Logger:
    """
    Setup logging based on arguments and configuration.

    Args:
        args: Parsed arguments namespace
        config: Configuration manager

    Returns:
        Configured logger instance
    """
    log_level = "DEBUG" if args.verbose else config.get("rebackup.logging.level", "ERROR")
    log_file = config.get("rebackup.logging.file")

    return configure_logging(log_level, log_file)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing, configuration and logging setup, then passes
    control to rebackup.main to build the files list.
    """
    try:
        args = parse_arguments(argv)
        config = load_configuration(args)
        logger = setup_logging(args, config)

        from rebackup.main import run_rebackup

        return run_rebackup(args, config, logger)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return ExitCode.INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())

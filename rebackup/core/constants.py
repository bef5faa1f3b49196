"""
ReBackup Core: Constants and Type Definitions

This module provides system-wide constants, error codes, exit codes and the
item classification used by the walker and the rules.
"""
import stat
from enum import Enum, IntEnum

# Version information
REBACKUP_VERSION = "1.0.0"

# Environment variable exposing the current item to shell filters
ITEM_ENV_VAR = "REBACKUP_ITEM"

# Environment variable prefix read by the configuration manager
ENV_PREFIX = "REBACKUP_"


class ErrorCode(IntEnum):
    """Standardized error codes carried by ReBackup exceptions."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or resource doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    IO_ERROR = 4  # Filesystem failure
    RULE_FAILED = 5  # A walker rule failed
    INTERNAL_ERROR = 6  # Bug in ReBackup


class ExitCode(IntEnum):
    """Process exit codes of the command-line tool."""

    SUCCESS = 0
    USAGE_ERROR = 1
    SOURCE_NOT_FOUND = 2
    WALK_FAILED = 3
    INVALID_FILENAME = 4
    OUTPUT_FAILED = 5
    INVALID_PATTERN = 10
    INTERRUPTED = 130


class ItemType(Enum):
    """Type of a filesystem item met during traversal."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"

    @classmethod
    def from_mode(cls, mode: int) -> "ItemType":
        """Determine item type from an lstat() mode.

        Anything that is neither a directory nor a symbolic link is handled
        as a file (regular files, fifos, sockets, devices).
        """
        if stat.S_ISLNK(mode):
            return cls.SYMLINK
        elif stat.S_ISDIR(mode):
            return cls.DIRECTORY
        return cls.FILE


class NonUtf8Policy(Enum):
    """How the CLI renders paths that are not valid UTF-8."""

    FAIL = "fail"  # Abort with an error
    LOSSY = "lossy"  # Replace invalid sequences
    IGNORE = "ignore"  # Drop the item from the output


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    ROOT = "rebackup"

    # Top-level sections
    WALKER = "walker"
    RULES = "rules"
    SHELL = "shell"
    OUTPUT = "output"
    LOGGING = "logging"

    # Walker section
    FOLLOW_SYMLINKS = "follow_symlinks"
    DROP_EMPTY_DIRS = "drop_empty_dirs"

    # Rule entries
    RULE_NAME = "name"
    RULE_TYPE = "type"
    RULE_PATTERN = "pattern"
    RULE_PATTERNS = "patterns"
    RULE_PATTERN_TYPE = "pattern_type"
    RULE_ONLY_FOR = "only_for"
    RULE_BUILTIN = "builtin"
    RULE_SHELL = "shell"
    RULE_DESCRIPTION = "description"

    # Shell section
    SHELL_PATH = "path"
    SHELL_HEAD_ARGS = "head_args"
    SHELL_TAIL_ARGS = "tail_args"
    SHELL_DISPLAY_OUTPUT = "display_output"

    # Output section
    OUTPUT_ABSOLUTE = "absolute"
    OUTPUT_PREFIX = "prefix"
    OUTPUT_SORT = "sort"
    OUTPUT_NON_UTF8 = "non_utf8"


# Pattern rule types accepted in configuration files
class PatternRuleType(Enum):
    """Types of pattern rules."""

    INCLUDE = "include"  # Keep matching items, later rules are not consulted
    EXCLUDE = "exclude"  # Drop matching items
    INCLUDE_ONLY = "include_only"  # Drop files matching none of the patterns


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.ROOT: {
        ConfigKey.WALKER: {
            ConfigKey.FOLLOW_SYMLINKS: False,
            ConfigKey.DROP_EMPTY_DIRS: False,
        },
        ConfigKey.RULES: [],
        ConfigKey.SHELL: {
            ConfigKey.SHELL_PATH: None,
            ConfigKey.SHELL_HEAD_ARGS: [],
            ConfigKey.SHELL_TAIL_ARGS: [],
            ConfigKey.SHELL_DISPLAY_OUTPUT: False,
        },
        ConfigKey.OUTPUT: {
            ConfigKey.OUTPUT_ABSOLUTE: False,
            ConfigKey.OUTPUT_PREFIX: None,
            ConfigKey.OUTPUT_SORT: True,
            ConfigKey.OUTPUT_NON_UTF8: NonUtf8Policy.FAIL.value,
        },
        ConfigKey.LOGGING: {
            "level": "ERROR",
            "file": None,
        },
    }
}

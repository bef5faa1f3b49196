"""
ReBackup Core: Input Validators.

This module provides validation functions for configuration sections, rule
entries and patterns loaded from YAML files or the command line.
"""
import re
from typing import Any, Dict

from rebackup.core.constants import ConfigKey, ErrorCode, ItemType, NonUtf8Policy, PatternRuleType

MAX_PATTERN_LENGTH = 4096

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate the ``rebackup`` configuration section.

    Args:
        config: Configuration dictionary (content of the ``rebackup`` key)

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    if ConfigKey.WALKER in config:
        validate_walker_config(config[ConfigKey.WALKER])

    if ConfigKey.RULES in config:
        rules = config[ConfigKey.RULES]
        if not isinstance(rules, list):
            raise ValidationError("Rules must be a list")

        for i, rule in enumerate(rules):
            try:
                validate_rule_config(rule)
            except ValidationError as e:
                raise ValidationError(f"Invalid rule configuration at index {i}: {e}")

    if ConfigKey.SHELL in config:
        validate_shell_config(config[ConfigKey.SHELL])

    if ConfigKey.OUTPUT in config:
        validate_output_config(config[ConfigKey.OUTPUT])

    if ConfigKey.LOGGING in config:
        validate_logging_config(config[ConfigKey.LOGGING])

    return True


def validate_walker_config(walker: Dict[str, Any]) -> bool:
    """Validate the walker section.

    Raises:
        ValidationError: If a flag is not a boolean or unknown
    """
    if not isinstance(walker, dict):
        raise ValidationError("Walker configuration must be a dictionary")

    valid_fields = {ConfigKey.FOLLOW_SYMLINKS, ConfigKey.DROP_EMPTY_DIRS}
    unknown_fields = set(walker.keys()) - valid_fields
    if unknown_fields:
        raise ValidationError(
            f"Unknown walker configuration fields: {', '.join(sorted(unknown_fields))}"
        )

    for key, value in walker.items():
        if not isinstance(value, bool):
            raise ValidationError(f"Walker {key} must be boolean: {value}")

    return True


def validate_rule_config(rule: Dict[str, Any]) -> bool:
    """Validate a rule entry.

    A rule entry is exactly one of:
    - a built-in rule: ``{builtin: nomedia}``
    - a shell filter: ``{shell: "command"}``
    - a pattern rule: ``{type: exclude, patterns: [...]}``

    Args:
        rule: Rule configuration dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If rule is invalid
    """
    if not isinstance(rule, dict):
        raise ValidationError("Rule must be a dictionary")

    kinds = [k for k in (ConfigKey.RULE_BUILTIN, ConfigKey.RULE_SHELL, ConfigKey.RULE_TYPE) if k in rule]
    if len(kinds) != 1:
        raise ValidationError("Rule must have exactly one of 'builtin', 'shell' or 'type' fields")

    if ConfigKey.RULE_BUILTIN in rule:
        builtin = rule[ConfigKey.RULE_BUILTIN]
        if not isinstance(builtin, str) or not builtin:
            raise ValidationError(f"Invalid builtin rule name: {builtin}")
        return True

    if ConfigKey.RULE_SHELL in rule:
        command = rule[ConfigKey.RULE_SHELL]
        if not isinstance(command, str) or not command.strip():
            raise ValidationError(f"Invalid shell filter command: {command}")
        return True

    rule_type = rule[ConfigKey.RULE_TYPE]
    try:
        PatternRuleType(rule_type)
    except ValueError:
        valid_types = [t.value for t in PatternRuleType]
        raise ValidationError(f"Invalid rule type: {rule_type}. Must be one of {valid_types}")

    has_pattern = ConfigKey.RULE_PATTERN in rule
    has_patterns = ConfigKey.RULE_PATTERNS in rule
    if not has_pattern and not has_patterns:
        raise ValidationError("Rule must have 'pattern' or 'patterns' field")

    pattern_type = rule.get(ConfigKey.RULE_PATTERN_TYPE, "glob")
    if pattern_type not in ("glob", "regex"):
        raise ValidationError(f"Invalid pattern type: {pattern_type}. Must be 'glob' or 'regex'")

    patterns = []
    if has_pattern:
        patterns.append(rule[ConfigKey.RULE_PATTERN])
    if has_patterns:
        if not isinstance(rule[ConfigKey.RULE_PATTERNS], list):
            raise ValidationError("Patterns must be a list")
        patterns.extend(rule[ConfigKey.RULE_PATTERNS])

    for pattern in patterns:
        validate_pattern(pattern, regex=pattern_type == "regex")

    if ConfigKey.RULE_ONLY_FOR in rule:
        validate_item_type(rule[ConfigKey.RULE_ONLY_FOR])

    if ConfigKey.RULE_NAME in rule and not isinstance(rule[ConfigKey.RULE_NAME], str):
        raise ValidationError(f"Rule name must be string: {rule[ConfigKey.RULE_NAME]}")

    return True


def validate_shell_config(shell: Dict[str, Any]) -> bool:
    """Validate the shell section used by shell filters.

    Raises:
        ValidationError: If shell configuration is invalid
    """
    if not isinstance(shell, dict):
        raise ValidationError("Shell configuration must be a dictionary")

    path = shell.get(ConfigKey.SHELL_PATH)
    if path is not None and (not isinstance(path, str) or not path):
        raise ValidationError(f"Shell path must be a non-empty string: {path}")

    for key in (ConfigKey.SHELL_HEAD_ARGS, ConfigKey.SHELL_TAIL_ARGS):
        args = shell.get(key, [])
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise ValidationError(f"Shell {key} must be a list of strings")

    display = shell.get(ConfigKey.SHELL_DISPLAY_OUTPUT, False)
    if not isinstance(display, bool):
        raise ValidationError(f"Shell display_output must be boolean: {display}")

    return True


def validate_output_config(output: Dict[str, Any]) -> bool:
    """Validate the output section.

    Raises:
        ValidationError: If output configuration is invalid
    """
    if not isinstance(output, dict):
        raise ValidationError("Output configuration must be a dictionary")

    for key in (ConfigKey.OUTPUT_ABSOLUTE, ConfigKey.OUTPUT_SORT):
        if key in output and not isinstance(output[key], bool):
            raise ValidationError(f"Output {key} must be boolean: {output[key]}")

    prefix = output.get(ConfigKey.OUTPUT_PREFIX)
    if prefix is not None and not isinstance(prefix, str):
        raise ValidationError(f"Output prefix must be string: {prefix}")

    policy = output.get(ConfigKey.OUTPUT_NON_UTF8, NonUtf8Policy.FAIL.value)
    try:
        NonUtf8Policy(policy)
    except ValueError:
        valid = [p.value for p in NonUtf8Policy]
        raise ValidationError(f"Invalid non_utf8 policy: {policy}. Must be one of {valid}")

    return True


def validate_logging_config(logging_config: Dict[str, Any]) -> bool:
    """Validate the logging section.

    Raises:
        ValidationError: If the level is unknown or the file is not a string
    """
    if not isinstance(logging_config, dict):
        raise ValidationError("Logging configuration must be a dictionary")

    level = logging_config.get("level", "ERROR")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ValidationError(f"Invalid log level: {level}. Must be one of {list(LOG_LEVELS)}")

    log_file = logging_config.get("file")
    if log_file is not None and not isinstance(log_file, str):
        raise ValidationError(f"Log file must be string: {log_file}")

    return True


def validate_item_type(value: Any) -> ItemType:
    """Validate an item type name.

    Returns:
        Matching ItemType

    Raises:
        ValidationError: If value names no item type
    """
    try:
        return ItemType(value)
    except ValueError:
        valid = [t.value for t in ItemType]
        raise ValidationError(f"Invalid item type: {value}. Must be one of {valid}")


def validate_pattern(pattern: Any, regex: bool = False) -> bool:
    """Validate a glob or regex pattern.

    Args:
        pattern: Pattern string
        regex: Whether the pattern is a regular expression

    Returns:
        True if valid

    Raises:
        ValidationError: If pattern is invalid
    """
    if not isinstance(pattern, str):
        raise ValidationError(f"Pattern must be string, got {type(pattern)}")

    if not pattern:
        raise ValidationError("Pattern cannot be empty")

    if len(pattern) > MAX_PATTERN_LENGTH:
        raise ValidationError(f"Pattern exceeds maximum length ({MAX_PATTERN_LENGTH})")

    if "\x00" in pattern:
        raise ValidationError("Invalid pattern: contains null bytes")

    if regex:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValidationError(f"Invalid regex pattern '{pattern}': {e}")

    return True

"""Build walker rules from configuration entries.

Entries come from YAML configuration files and from the command line, see
rebackup.core.validators.validate_rule_config for the accepted shapes.
"""

from typing import Any, Dict, Iterable, List, Optional

from rebackup.core.constants import ConfigKey, PatternRuleType
from rebackup.core.validators import ValidationError, validate_item_type, validate_rule_config
from rebackup.rules.builtin import get_builtin_rule
from rebackup.rules.engine import ExcludeItem, IncludeItem, Rule
from rebackup.rules.patterns import PatternType, make_include_only_rule, make_pattern_rule
from rebackup.rules.shell import ShellSettings, make_shell_filter_rule


def shell_settings_from_config(shell: Optional[Dict[str, Any]]) -> ShellSettings:
    """Create shell settings from the ``shell`` configuration section."""
    shell = shell or {}
    return ShellSettings(
        path=shell.get(ConfigKey.SHELL_PATH),
        head_args=list(shell.get(ConfigKey.SHELL_HEAD_ARGS) or []),
        tail_args=list(shell.get(ConfigKey.SHELL_TAIL_ARGS) or []),
        display_output=bool(shell.get(ConfigKey.SHELL_DISPLAY_OUTPUT, False)),
    )


def build_rule(entry: Dict[str, Any], shell: Optional[ShellSettings] = None) -> Rule:
    """Build one rule from a configuration entry.

    Args:
        entry: Rule configuration dictionary
        shell: Shell settings for shell filters

    Returns:
        Rule

    Raises:
        ValidationError: If the entry is invalid
    """
    validate_rule_config(entry)

    if ConfigKey.RULE_BUILTIN in entry:
        try:
            return get_builtin_rule(entry[ConfigKey.RULE_BUILTIN])
        except KeyError as e:
            raise ValidationError(e.args[0])

    if ConfigKey.RULE_SHELL in entry:
        return make_shell_filter_rule(entry[ConfigKey.RULE_SHELL], shell)

    patterns: List[str] = []
    if ConfigKey.RULE_PATTERN in entry:
        patterns.append(entry[ConfigKey.RULE_PATTERN])
    patterns.extend(entry.get(ConfigKey.RULE_PATTERNS, []))

    pattern_type = PatternType(entry.get(ConfigKey.RULE_PATTERN_TYPE, PatternType.GLOB.value))
    rule_type = PatternRuleType(entry[ConfigKey.RULE_TYPE])

    if rule_type == PatternRuleType.INCLUDE_ONLY:
        return make_include_only_rule(patterns, pattern_type)

    only_for = None
    if ConfigKey.RULE_ONLY_FOR in entry:
        only_for = validate_item_type(entry[ConfigKey.RULE_ONLY_FOR])

    if rule_type == PatternRuleType.INCLUDE:
        result, default_name = IncludeItem(), "include-pattern"
    else:
        result, default_name = ExcludeItem(), "exclude-pattern"

    return make_pattern_rule(
        name=entry.get(ConfigKey.RULE_NAME) or default_name,
        patterns=patterns,
        result=result,
        pattern_type=pattern_type,
        only_for=only_for,
        description=entry.get(ConfigKey.RULE_DESCRIPTION),
    )


def build_rules(entries: Iterable[Dict[str, Any]], shell: Optional[ShellSettings] = None) -> List[Rule]:
    """Build rules from configuration entries, keeping their order.

    Raises:
        ValidationError: If an entry is invalid
    """
    rules = []
    for i, entry in enumerate(entries):
        try:
            rules.append(build_rule(entry, shell))
        except ValidationError as e:
            raise ValidationError(f"Invalid rule configuration at index {i}: {e}", e.error_code)
    return rules

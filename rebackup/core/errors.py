"""
ReBackup Core: Walk errors.

Every failure of a walk is reported as a single terminal exception. Symlink
cycles are not errors: the walker silently stops descending instead.
"""
from pathlib import Path
from typing import Optional, Union

from rebackup.core.constants import ErrorCode


class WalkError(Exception):
    """Base exception for walk failures."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        """Initialize WalkError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class WalkerIOError(WalkError):
    """A filesystem operation failed on a specific path."""

    def __init__(self, path: Union[str, Path], cause: OSError, action: str = "access"):
        """Initialize WalkerIOError.

        Args:
            path: Offending path
            cause: Underlying OS error
            action: What the walker was doing (stat, list, resolve, ...)
        """
        if isinstance(cause, FileNotFoundError):
            error_code = ErrorCode.NOT_FOUND
        elif isinstance(cause, PermissionError):
            error_code = ErrorCode.PERMISSION_DENIED
        else:
            error_code = ErrorCode.IO_ERROR

        reason = cause.strerror or str(cause)
        super().__init__(f"Failed to {action} path: {path} ({reason})", error_code)
        self.path = Path(path)
        self.cause = cause


class RuleError(WalkError):
    """A walker rule failed while deciding about an item."""

    def __init__(
        self,
        rule_name: str,
        item_path: Union[str, Path],
        reason: str,
        rule_description: Optional[str] = None,
    ):
        """Initialize RuleError.

        Args:
            rule_name: Name of the failing rule
            item_path: Path of the item the rule was applied on
            reason: Failure description
            rule_description: Optional description of the rule
        """
        description = rule_description or "<no rule description>"
        super().__init__(
            f"Rule '{rule_name}' ({description}) failed to execute: {reason} "
            f"(on item: {item_path})",
            ErrorCode.RULE_FAILED,
        )
        self.rule_name = rule_name
        self.rule_description = rule_description
        self.item_path = Path(item_path)
        self.reason = reason


class RuleMappingError(RuleError):
    """A rule returned a mapping that cannot be applied to its item."""

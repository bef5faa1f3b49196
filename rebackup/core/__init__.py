"""ReBackup Core - Shared utilities and infrastructure.

This module provides the utilities used throughout the ReBackup codebase.

Import specific functions from submodules:
    from rebackup.core.config import ConfigManager
    from rebackup.core import constants
    from rebackup.core import errors
    from rebackup.core import logging
    from rebackup.core import types
    from rebackup.core import validators
"""

# Re-export main module references for convenience
from rebackup.core import (
    config,
    constants,
    errors,
    logging,
    types,
    validators,
)

__all__ = [
    "config",
    "constants",
    "errors",
    "logging",
    "types",
    "validators",
]

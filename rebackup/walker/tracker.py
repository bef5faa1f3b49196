"""Visit tracking for cycle-safe traversal.

A VisitTracker belongs to a single walk. It records canonical paths so that
no filesystem object is processed twice, which bounds a walk that follows
symbolic links even when they form cycles.
"""

import errno
import os
from pathlib import Path
from typing import Set, Union


def canonicalize(path: Union[str, Path]) -> Path:
    """Resolve every symbolic link in ``path`` and collapse '.' and '..'.

    Args:
        path: Path to resolve

    Returns:
        Absolute canonical path

    Raises:
        OSError: If the path or one of its link targets does not exist, or
            the links form a loop
    """
    try:
        return Path(path).resolve(strict=True)
    except RuntimeError as e:
        # Older interpreters report link loops as RuntimeError
        raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), str(path)) from e


class VisitTracker:
    """Set of canonical paths already processed by a walk."""

    def __init__(self):
        self._visited: Set[Path] = set()

    def mark_and_check(self, canonical_path: Path) -> bool:
        """Mark a canonical path as visited.

        Args:
            canonical_path: Path returned by canonicalize()

        Returns:
            True if the path was already visited, False if it was just marked
        """
        if canonical_path in self._visited:
            return True
        self._visited.add(canonical_path)
        return False

    def is_visited(self, canonical_path: Path) -> bool:
        return canonical_path in self._visited

    def __len__(self) -> int:
        return len(self._visited)

"""ReBackup Walker.

This module provides the traversal engine:
- Walker / walk: depth-first traversal driven by the rule engine
- VisitTracker: canonical path tracking against symbolic link cycles
"""

from .tracker import VisitTracker, canonicalize
from .walker import Walker, walk

__all__ = [
    "Walker",
    "walk",
    "VisitTracker",
    "canonicalize",
]

"""
ReBackup Core: Walker data types.

Values shared by the walker and the rules: the item under inspection, the
context handed to rule callbacks and the walker configuration.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from rebackup.core.constants import ItemType

if TYPE_CHECKING:
    from rebackup.rules.engine import Rule


@dataclass(frozen=True)
class Item:
    """A filesystem entry met during traversal.

    ``path`` is the path as reached by the walker and is never resolved.
    ``target`` is the canonical target of a symbolic link; it is only set
    when the walker follows symbolic links.
    """

    path: Path
    item_type: ItemType
    target: Optional[Path] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.item_type == ItemType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.item_type == ItemType.FILE

    @property
    def is_symlink(self) -> bool:
        return self.item_type == ItemType.SYMLINK


@dataclass(frozen=True)
class WalkerConfig:
    """Configuration of a single walk.

    Rules are evaluated in order, the first definitive result wins.
    """

    rules: Tuple["Rule", ...] = ()
    follow_symlinks: bool = False
    drop_empty_dirs: bool = False

    def __post_init__(self):
        # Freeze whatever sequence the caller handed in
        if not isinstance(self.rules, tuple):
            object.__setattr__(self, "rules", tuple(self.rules))

    @classmethod
    def new(cls, rules: Sequence["Rule"]) -> "WalkerConfig":
        """Create a configuration with default flags from a list of rules."""
        return cls(rules=tuple(rules))


@dataclass(frozen=True)
class WalkContext:
    """Read-only context handed to rule callbacks."""

    config: WalkerConfig
    source: Path  # Walk root, absolute, as given by the caller
    canonical_source: Path  # Walk root with all symbolic links resolved

    def relative(self, path: Path) -> Path:
        """Return ``path`` relative to the walk root.

        Paths outside the root are returned unchanged.
        """
        try:
            return path.relative_to(self.source)
        except ValueError:
            return path

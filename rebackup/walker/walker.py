#!/usr/bin/env python3
"""Directory walker building the list of items to back up.

The walker traverses a source directory depth-first and asks the rule
engine what to do with every item it meets:
- Items are visited in name order, so a walk is deterministic
- Excluded directories are not traversed
- Mapped items are reported under their new path, children included
- Directories are only listed when they contribute no other entry
- Symbolic links are listed as-is, or followed with cycle detection
- The first filesystem or rule failure aborts the whole walk

Example:
    >>> walk("/data", WalkerConfig(rules=[dotgit()], drop_empty_dirs=True))
    [PosixPath('/data/notes.txt'), PosixPath('/data/photos/cat.jpg')]
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Union

from rebackup.core.constants import ItemType
from rebackup.core.errors import RuleMappingError, WalkerIOError
from rebackup.core.logging import Logger, get_logger
from rebackup.core.types import Item, WalkContext, WalkerConfig
from rebackup.rules.engine import ExcludeItem, MapAsList, MapItem, Rule, RuleEngine
from rebackup.walker.tracker import VisitTracker, canonicalize


@dataclass
class _WalkState:
    """State owned by one walk call."""

    context: WalkContext
    engine: RuleEngine
    tracker: VisitTracker = field(default_factory=VisitTracker)
    items: Set[Path] = field(default_factory=set)


class Walker:
    """Traversal driver composing the rule engine and the visit tracker."""

    def __init__(self, config: WalkerConfig, logger: Optional[Logger] = None):
        """Initialize walker.

        Args:
            config: Walker configuration, borrowed read-only
            logger: Optional logger (defaults to the shared logger)
        """
        self.config = config
        self.logger = logger or get_logger()

    def walk(self, root: Union[str, Path]) -> List[Path]:
        """Build the sorted list of paths to back up below ``root``.

        The root itself is never submitted to the rules. A root that is a
        file or an unfollowed symbolic link is returned alone.

        Args:
            root: Source directory

        Returns:
            Paths sorted lexicographically

        Raises:
            WalkerIOError: If a filesystem operation fails
            RuleError: If a rule fails
        """
        source = Path(os.path.abspath(root))
        root_type = self._classify(source)

        if root_type == ItemType.SYMLINK and not self.config.follow_symlinks:
            self.logger.debug("Source is a symbolic link, not following it", source=source)
            return [source]

        canonical_source = self._canonicalize(source)
        state = _WalkState(
            context=WalkContext(self.config, source, canonical_source),
            engine=RuleEngine(self.config.rules),
        )
        state.tracker.mark_and_check(canonical_source)

        if not canonical_source.is_dir():
            return [source]

        with self.logger.add_context(source=source):
            if self._walk_dir(source, source, state) == 0:
                state.items.add(source)

        return sorted(state.items, key=str)

    def _walk_dir(self, dir_path: Path, output_path: Path, state: _WalkState) -> int:
        """Walk the children of a directory.

        Returns:
            Number of entries recorded for the directory's subtree
        """
        self.logger.debug("Walking into directory", path=dir_path)

        recorded = 0
        for name in self._list_dir(dir_path):
            recorded += self._walk_item(dir_path / name, output_path / name, state)
        return recorded

    def _walk_item(self, path: Path, output_path: Path, state: _WalkState) -> int:
        """Walk a single item.

        Returns:
            Number of entries recorded for the item (and its subtree)
        """
        item_type = self._classify(path)
        target = None

        if item_type == ItemType.SYMLINK:
            if self.config.follow_symlinks:
                target = self._canonicalize(path)
                if state.tracker.mark_and_check(target):
                    self.logger.warning(
                        "Symlink target was already walked on, skipping it",
                        path=path,
                        target=target,
                    )
                    return 0
                item_type = self._classify(target)
            else:
                self.logger.debug("Detected symlink, not following it", path=path)
        elif item_type == ItemType.DIRECTORY or self.config.follow_symlinks:
            if state.tracker.mark_and_check(self._canonicalize(path)):
                self.logger.warning("Item was already walked on, skipping it", path=path)
                return 0

        item = Item(path, item_type, target)
        self.logger.debug("Treating item", path=path, type=item_type.value)

        rule, result = state.engine.decide(item, state.context)

        if isinstance(result, ExcludeItem):
            self.logger.debug("Item excluded", path=path, rule=rule.name if rule else None)
            return 0

        if isinstance(result, MapAsList):
            return self._walk_mapped_list(item, rule, result, output_path, state)

        if isinstance(result, MapItem):
            self.logger.debug("Item mapped", path=path, mapped=result.new_path)
            output_path = result.new_path

        if item.is_dir:
            recorded = self._walk_dir(path, output_path, state)
            if recorded == 0 and not self.config.drop_empty_dirs:
                state.items.add(output_path)
                return 1
            return recorded

        state.items.add(output_path)
        return 1

    def _walk_mapped_list(
        self,
        item: Item,
        rule: Rule,
        mapping: MapAsList,
        output_path: Path,
        state: _WalkState,
    ) -> int:
        """Walk the sub-items a rule listed in place of a directory."""

        def mapping_error(reason: str) -> RuleMappingError:
            return RuleMappingError(rule.name, item.path, reason, rule.description)

        if not item.is_dir:
            raise mapping_error("mapped a non-directory item as a directory")

        self.logger.debug("Item mapped as a list", path=item.path, count=len(mapping.paths))

        recorded = 0
        for mapped in mapping.paths:
            mapped_path = mapped if mapped.is_absolute() else item.path / mapped
            mapped_path = Path(os.path.normpath(mapped_path))

            try:
                relative = mapped_path.relative_to(item.path)
            except ValueError:
                raise mapping_error(f"mapping contains external item: {mapped_path}")

            if relative == Path("."):
                raise mapping_error(f"mapping contains the item itself: {mapped_path}")

            if not os.path.lexists(mapped_path):
                raise mapping_error(f"mapping contains non-existing item: {mapped_path}")

            recorded += self._walk_item(mapped_path, output_path / relative, state)

        return recorded

    def _classify(self, path: Path) -> ItemType:
        try:
            return ItemType.from_mode(os.lstat(path).st_mode)
        except OSError as e:
            raise WalkerIOError(path, e, "get metadata of") from e

    def _canonicalize(self, path: Path) -> Path:
        try:
            return canonicalize(path)
        except OSError as e:
            raise WalkerIOError(path, e, "canonicalize") from e

    def _list_dir(self, path: Path) -> List[str]:
        try:
            with os.scandir(path) as entries:
                return sorted(entry.name for entry in entries)
        except OSError as e:
            raise WalkerIOError(path, e, "list directory") from e


def walk(root: Union[str, Path], config: WalkerConfig) -> List[Path]:
    """Walk ``root`` with ``config``, see Walker.walk()."""
    return Walker(config).walk(root)

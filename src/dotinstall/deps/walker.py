"""
Depth-ordered traversal of linked package directories.

Starting at a base directory, the walker descends through every directory
(following symlinks), skips directories named like the prune role, and for
each directory named like the recurse role records its immediate children
together with the directory's depth below the base. Repeated names keep only
their deepest (or shallowest) occurrence, and the survivors are listed by
depth.
"""

import logging
import os
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

from dotinstall.core.config import Settings, settings
from dotinstall.deps.schemas import DepthEntry, WalkOrder, WalkResult

logger = logging.getLogger(__name__)


class DependencyWalker:
    """
    Walks ``upstream``-style directory links and orders what it finds by depth.

    Loops in the link structure are cut when a directory's (device, inode)
    pair is already on the current path, and no path is followed more than
    ``max_depth`` levels below the base.
    """

    def __init__(
        self,
        recurse_dir: str = "upstream",
        prune_dir: str = "downstream",
        order: WalkOrder = WalkOrder.DEEP_FIRST,
        max_depth: int = 64,
    ):
        self.recurse_dir = recurse_dir
        self.prune_dir = prune_dir
        self.order = order
        self.max_depth = max_depth

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None, **overrides) -> "DependencyWalker":
        config = config or settings
        options = {
            "recurse_dir": config.upstream_dirname,
            "prune_dir": config.downstream_dirname,
            "max_depth": config.max_depth,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**options)

    def walk(self, base: Path) -> WalkResult:
        """
        Walk the tree below base.

        A missing base directory is reported in the result's errors; the walk
        itself never raises for filesystem problems.

        Args:
            base: Directory to start from (usually a package directory)

        Returns:
            WalkResult with names in dependency order
        """
        base = Path(base)
        result = WalkResult()
        if not base.is_dir():
            message = f"Could not find directory '{base}'"
            logger.error(message)
            result.errors.append(message)
            return result

        found: List[DepthEntry] = []
        self._visit(base, 0, frozenset(), found, result)
        result.entries = self._select(found)
        result.names = [entry.name for entry in result.entries]
        logger.debug(f"Walk from {base} found {len(result.names)} packages")
        return result

    def walk_package(self, root: Path, package: str) -> WalkResult:
        """Walk starting at ``<root>/<package>``."""
        return self.walk(Path(root) / package)

    def _visit(
        self,
        path: Path,
        depth: int,
        ancestors: FrozenSet[Tuple[int, int]],
        found: List[DepthEntry],
        result: WalkResult,
    ) -> None:
        if path.name == self.prune_dir:
            return
        try:
            st = path.stat()
        except OSError as e:
            result.errors.append(f"Cannot stat '{path}': {e}")
            return
        key = (st.st_dev, st.st_ino)
        if key in ancestors:
            logger.warning(f"Link loop at '{path}'; not descending")
            result.cycles.append(str(path))
            return
        if depth > self.max_depth:
            message = f"Depth limit {self.max_depth} reached at '{path}'"
            logger.warning(message)
            result.errors.append(message)
            return

        try:
            with os.scandir(path) as it:
                children = sorted(
                    (entry for entry in it if not entry.name.startswith(".")),
                    key=lambda entry: entry.name,
                )
        except OSError as e:
            result.errors.append(f"Cannot list '{path}': {e}")
            return

        if path.name == self.recurse_dir:
            found.extend(DepthEntry(depth=depth, name=entry.name) for entry in children)

        ancestors = ancestors | {key}
        for entry in children:
            try:
                is_dir = entry.is_dir()     # follows symlinks
            except OSError:
                is_dir = False
            if is_dir:
                self._visit(Path(entry.path), depth + 1, ancestors, found, result)

    def _select(self, found: List[DepthEntry]) -> List[DepthEntry]:
        deep = self.order == WalkOrder.DEEP_FIRST
        best: Dict[str, int] = {}
        for entry in found:
            current = best.get(entry.name)
            if current is None or (entry.depth > current if deep else entry.depth < current):
                best[entry.name] = entry.depth

        # Whole entries sort together, so deep-first ties come out by name descending
        ordered = sorted(best.items(), key=lambda item: (item[1], item[0]), reverse=deep)
        return [DepthEntry(depth=depth, name=name) for name, depth in ordered]

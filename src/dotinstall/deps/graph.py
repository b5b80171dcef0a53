"""
Explicit dependency graph built from the install tree's link directories.

Where the walker reports depth along directory paths, the graph is scanned
once into an adjacency list (package -> packages it depends on) and answers
ordering questions with ordinary graph algorithms.
"""

import heapq
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from dotinstall.core.exceptions import PackageNotFoundError, TagStoreWriteError
from dotinstall.deps.schemas import GraphOrder
from dotinstall.tags.store import is_valid_name

logger = logging.getLogger(__name__)


class LinkGraph:
    """
    Dependency graph keyed by package ID.

    ``edges[p]`` holds the packages that p depends on (its upstream).
    """

    def __init__(self, edges: Optional[Dict[str, Iterable[str]]] = None):
        self.edges: Dict[str, Set[str]] = {}
        for package, deps in (edges or {}).items():
            for dep in deps:
                self.add_edge(package, dep)
            self.edges.setdefault(package, set())

    def add_edge(self, package: str, dependency: str) -> None:
        self.edges.setdefault(package, set()).add(dependency)
        self.edges.setdefault(dependency, set())

    @property
    def nodes(self) -> List[str]:
        return sorted(self.edges)

    @classmethod
    def scan(
        cls,
        root: Path,
        upstream_dirname: str = "upstream",
        downstream_dirname: str = "downstream",
    ) -> "LinkGraph":
        """
        Build the graph from ``<root>/<pkg>/upstream/<dep>`` entries and the
        inverse ``<root>/<pkg>/downstream/<dependent>`` entries.
        """
        graph = cls()
        root = Path(root)
        if not root.is_dir():
            logger.error(f"Could not find directory '{root}'")
            return graph

        for pkg_dir in sorted(root.iterdir()):
            if not is_valid_name(pkg_dir.name) or not pkg_dir.is_dir():
                continue
            package = pkg_dir.name
            graph.edges.setdefault(package, set())
            for dep in _role_entries(pkg_dir / upstream_dirname):
                graph.add_edge(package, dep)
            for dependent in _role_entries(pkg_dir / downstream_dirname):
                graph.add_edge(dependent, package)

        logger.debug(f"Scanned {len(graph.edges)} packages under {root}")
        return graph

    def dependencies(self, package: str, transitive: bool = False) -> List[str]:
        """Packages that package depends on, directly or transitively."""
        if package not in self.edges:
            return []
        if not transitive:
            return sorted(self.edges[package])
        seen: Set[str] = set()
        stack = list(self.edges[package])
        while stack:
            dep = stack.pop()
            if dep in seen:
                continue
            seen.add(dep)
            stack.extend(self.edges.get(dep, ()))
        seen.discard(package)
        return sorted(seen)

    def dependents(self, package: str) -> List[str]:
        """Packages that depend directly on package."""
        return sorted(p for p, deps in self.edges.items() if package in deps)

    def install_order(self, packages: Optional[Iterable[str]] = None) -> GraphOrder:
        """
        Order packages so that every dependency comes before its dependents.

        When no package is ready, the first cycle (by name) whose outside
        dependencies are all placed is appended as a group, and ordering
        resumes behind it.

        Args:
            packages: Restrict the order to these packages and everything they
                depend on; all nodes when omitted

        Returns:
            GraphOrder; members of each cycle appear together in name order,
            and each cycle is also listed separately
        """
        if packages is None:
            scope = set(self.edges)
        else:
            scope = set()
            for package in packages:
                scope.add(package)
                scope.update(self.dependencies(package, transitive=True))
        edges = {p: self.edges.get(p, set()) & scope for p in scope}

        # Kahn's algorithm; the heap keeps ties in name order
        remaining_deps = {p: len(deps) for p, deps in edges.items()}
        dependents: Dict[str, List[str]] = {p: [] for p in scope}
        for package, deps in edges.items():
            for dep in deps:
                dependents[dep].append(package)

        ready = [p for p, count in remaining_deps.items() if count == 0]
        heapq.heapify(ready)
        order: List[str] = []
        placed: Set[str] = set()
        cycles: List[List[str]] = []
        while len(placed) < len(scope):
            if ready:
                package = heapq.heappop(ready)
                if package in placed:
                    continue
                batch = [package]
            else:
                batch = self._next_cycle(edges, sorted(scope - placed), placed)
                cycles.append(batch)
            order.extend(batch)
            placed.update(batch)
            for package in batch:
                for dependent in dependents[package]:
                    remaining_deps[dependent] -= 1
                    if remaining_deps[dependent] == 0 and dependent not in placed:
                        heapq.heappush(ready, dependent)

        if cycles:
            logger.warning(f"Dependency cycles: {cycles}")
        return GraphOrder(order=order, cycles=cycles)

    @staticmethod
    def _next_cycle(edges: Dict[str, Set[str]], stuck: List[str], placed: Set[str]) -> List[str]:
        """
        First cycle among the stuck packages that depends on nothing unplaced
        outside itself.

        Such a cycle always exists: a stuck package with no unplaced
        dependencies would have been ready.
        """
        within = set(stuck)
        reach: Dict[str, Set[str]] = {}
        for package in stuck:
            seen: Set[str] = set()
            stack = [d for d in edges[package] if d in within]
            while stack:
                dep = stack.pop()
                if dep in seen:
                    continue
                seen.add(dep)
                stack.extend(d for d in edges[dep] if d in within)
            reach[package] = seen

        for package in stuck:
            if package not in reach[package]:
                continue
            group = sorted(p for p in reach[package] if package in reach[p])
            members = set(group)
            if all(edges[p] <= placed | members for p in group):
                return group
        raise RuntimeError(f"No cycle found among blocked packages {stuck}")


def _role_entries(role_dir: Path) -> List[str]:
    if not role_dir.is_dir():
        return []
    return sorted(name for name in os.listdir(role_dir) if not name.startswith("."))


def link(
    root: Path,
    package: str,
    upstream: str,
    upstream_dirname: str = "upstream",
    downstream_dirname: str = "downstream",
) -> None:
    """
    Record that package depends on upstream by creating the symlink pair
    ``<package>/upstream/<upstream> -> ../../<upstream>`` and
    ``<upstream>/downstream/<package> -> ../../<package>``.

    Existing links are left alone.

    Raises:
        ValueError: For invalid names or a package linked to itself
        PackageNotFoundError: If either package directory is missing
        TagStoreWriteError: If a link cannot be created
    """
    if not (is_valid_name(package) and is_valid_name(upstream)):
        raise ValueError(f"Invalid package ID in link {package!r} -> {upstream!r}")
    if package == upstream:
        raise ValueError(f"Package '{package}' cannot depend on itself")

    root = Path(root)
    for name in (package, upstream):
        if not (root / name).is_dir():
            raise PackageNotFoundError(f"No directory for package '{name}' under {root}")

    pairs = (
        (root / package / upstream_dirname / upstream, Path("..") / ".." / upstream),
        (root / upstream / downstream_dirname / package, Path("..") / ".." / package),
    )
    for link_path, target in pairs:
        if link_path.is_symlink() or link_path.exists():
            continue
        try:
            link_path.parent.mkdir(parents=True, exist_ok=True)
            link_path.symlink_to(target, target_is_directory=True)
        except OSError as e:
            raise TagStoreWriteError(f"Could not create link '{link_path}': {e}") from e
        logger.info(f"Linked {link_path} -> {target}")

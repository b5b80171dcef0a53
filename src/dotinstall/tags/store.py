"""
Tag Store for file-backed tag membership.

Each tag is a file ``<install-root>/.tags/<tag>`` listing package IDs, one per
line, sorted and without duplicates. Packages also keep a copy of their own
tags in ``<install-root>/<package>/.tags``; the two copies are only compared
by ``TagStore.check()``, never repaired automatically.
"""

import contextlib
import fcntl
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from dotinstall.core.config import Settings, settings
from dotinstall.core.exceptions import InstallRootNotFoundError, TagStoreWriteError
from dotinstall.core.settings import LOCK_FILE_NAME, PACKAGE_TAGS_FILE, QUERY_FILE_NAME
from dotinstall.tags.schemas import IntegrityIssue, IntegrityReport, IssueKind
from dotinstall.tags.setops import dedupe_sorted, is_normalized, normalize

logger = logging.getLogger(__name__)


def is_valid_name(name: str) -> bool:
    """Tag names and package IDs are plain, non-hidden path components."""
    return bool(name) and "/" not in name and "\0" not in name and not name.startswith(".")


def _read_lines(path: Path) -> List[str]:
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _write_lines(path: Path, lines: Iterable[str]) -> None:
    """Atomically replace path with the given lines."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(f"{line}\n")
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise TagStoreWriteError(f"Could not write '{path}': {e}") from e


class TagStore:
    """
    Store for tags and their member sets under one install root.

    The store holds no state beyond its paths; every read goes to disk, so
    several stores (or processes) may point at the same root. Mutations are
    serialized with an ``flock`` on ``.tags/.lock``.
    """

    def __init__(self, root: Path, tag_dir_name: str = ".tags"):
        self.root = Path(root).expanduser()
        self.tag_dir = self.root / tag_dir_name

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "TagStore":
        config = config or settings
        return cls(config.root, config.tag_dir_name)

    @property
    def query_file(self) -> Path:
        return self.tag_dir / QUERY_FILE_NAME

    def tag_path(self, tag: str) -> Path:
        if not is_valid_name(tag):
            raise ValueError(f"Invalid tag name: {tag!r}")
        return self.tag_dir / tag

    def package_dir(self, package: str) -> Path:
        if not is_valid_name(package):
            raise ValueError(f"Invalid package ID: {package!r}")
        return self.root / package

    def require_root(self) -> None:
        """Raise InstallRootNotFoundError unless the install root exists."""
        if not self.root.is_dir():
            raise InstallRootNotFoundError(f"Could not find directory '{self.root}'")

    @contextlib.contextmanager
    def lock(self, shared: bool = False) -> Iterator[None]:
        """
        Hold the store lock for the duration of the block.

        Use as:
            with store.lock():
                ...

        Args:
            shared: Take a shared (reader) lock instead of an exclusive one
        """
        try:
            self.tag_dir.mkdir(parents=True, exist_ok=True)
            handle = (self.tag_dir / LOCK_FILE_NAME).open("a+")
        except OSError as e:
            raise TagStoreWriteError(f"Could not open lock file in '{self.tag_dir}': {e}") from e
        with handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    # --- Reads ---

    def ensure(self, tag: str) -> Path:
        """
        Make sure a backing file exists for tag, creating an empty one if needed.

        Returns:
            Path of the tag file

        Raises:
            TagStoreWriteError: If the tag directory or file cannot be created
        """
        path = self.tag_path(tag)
        if path.exists():
            return path
        try:
            self.tag_dir.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
        except OSError as e:
            raise TagStoreWriteError(f"Could not create tag file '{path}': {e}") from e
        logger.info(f"Created empty tag '{tag}'")
        return path

    def members(self, tag: str) -> List[str]:
        """
        Return the sorted, duplicate-free members of tag.

        A missing tag file is an empty tag. Read errors (permissions, etc.)
        propagate as OSError.
        """
        path = self.tag_path(tag)
        if not path.exists():
            return []
        lines = _read_lines(path)
        if is_normalized(lines):
            return lines
        logger.debug(f"Tag file '{path}' is not normalized; sorting on read")
        return normalize(lines)

    def list_tags(self) -> List[str]:
        """Names of all tags that have a backing file."""
        if not self.tag_dir.is_dir():
            return []
        return sorted(
            entry.name for entry in self.tag_dir.iterdir()
            if is_valid_name(entry.name) and entry.is_file()
        )

    def universe(self, warnings: Optional[List[str]] = None) -> List[str]:
        """
        Union of the members of every tag.

        Args:
            warnings: If given, unreadable tag files are skipped and described
                here; otherwise the OSError propagates.

        Returns:
            Sorted package IDs that carry at least one tag
        """
        collected: List[str] = []
        for tag in self.list_tags():
            try:
                collected.extend(self.members(tag))
            except OSError as e:
                if warnings is None:
                    raise
                message = f"Skipping unreadable tag '{tag}': {e}"
                logger.warning(message)
                warnings.append(message)
        return dedupe_sorted(sorted(collected))

    def package_tags(self, package: str) -> List[str]:
        """Tags recorded in the package's own .tags file."""
        path = self.package_dir(package) / PACKAGE_TAGS_FILE
        if not path.is_file():
            return []
        return normalize(_read_lines(path))

    def packages(self) -> List[str]:
        """Package directories present under the install root."""
        if not self.root.is_dir():
            return []
        return sorted(
            entry.name for entry in self.root.iterdir()
            if is_valid_name(entry.name) and entry.is_dir()
        )

    # --- Writes ---

    def add_members(self, tag: str, packages: Iterable[str]) -> List[str]:
        """Add packages to tag's member file. Returns the new member list."""
        additions = list(packages)
        for package in additions:
            self.package_dir(package)  # validates
        with self.lock():
            return self._update_tag(tag, add=additions)

    def remove_members(self, tag: str, packages: Iterable[str]) -> List[str]:
        """Remove packages from tag's member file. Returns the new member list."""
        with self.lock():
            return self._update_tag(tag, remove=packages)

    def tag_package(self, package: str, tags: Iterable[str]) -> List[str]:
        """
        Tag a package in both places: each tag file, and the package's own
        .tags file when its directory exists.

        Returns:
            The package's tags after the update
        """
        tags = list(tags)
        pkg_dir = self.package_dir(package)
        for tag in tags:
            self.tag_path(tag)  # validates
        with self.lock():
            for tag in tags:
                self._update_tag(tag, add=[package])
            if not pkg_dir.is_dir():
                logger.debug(f"No directory for package '{package}'; tag files only")
                return normalize(tags)
            updated = normalize(self.package_tags(package) + tags)
            _write_lines(pkg_dir / PACKAGE_TAGS_FILE, updated)
            return updated

    def untag_package(self, package: str, tags: Iterable[str]) -> List[str]:
        """Inverse of tag_package."""
        tags = list(tags)
        pkg_dir = self.package_dir(package)
        with self.lock():
            for tag in tags:
                self._update_tag(tag, remove=[package])
            if not pkg_dir.is_dir():
                return []
            dropped = set(tags)
            updated = [t for t in self.package_tags(package) if t not in dropped]
            _write_lines(pkg_dir / PACKAGE_TAGS_FILE, updated)
            return updated

    def save_query(self, members: Iterable[str]) -> Path:
        """Overwrite the .query scratch file with the latest result."""
        with self.lock():
            _write_lines(self.query_file, members)
        return self.query_file

    def _update_tag(self, tag: str, add: Iterable[str] = (), remove: Iterable[str] = ()) -> List[str]:
        # Caller holds the lock
        path = self.ensure(tag)
        current = self.members(tag)
        dropped = set(remove)
        updated = normalize([m for m in current if m not in dropped] + list(add))
        if updated != _read_lines(path):
            _write_lines(path, updated)
            logger.info(f"Tag '{tag}': {len(current)} -> {len(updated)} members")
        return updated

    # --- Consistency ---

    def check(self) -> IntegrityReport:
        """
        Traverse the whole tag tree and report inconsistencies.

        Checks tag files for ordering and duplicates, and compares tag files
        with the per-package .tags files in both directions. Nothing is
        modified.
        """
        report = IntegrityReport()
        tag_members: Dict[str, List[str]] = {}

        if self.tag_dir.is_dir():
            for entry in sorted(self.tag_dir.iterdir()):
                if entry.name.startswith("."):
                    continue
                if not entry.is_file():
                    report.issues.append(IntegrityIssue(
                        kind=IssueKind.INVALID_TAG, tag=entry.name,
                        detail="not a regular file"
                    ))
                    continue
                try:
                    lines = _read_lines(entry)
                except OSError as e:
                    report.issues.append(IntegrityIssue(
                        kind=IssueKind.UNREADABLE, tag=entry.name, detail=str(e)
                    ))
                    continue
                report.tags_checked += 1
                seen = set()
                for line in lines:
                    if line in seen:
                        report.issues.append(IntegrityIssue(
                            kind=IssueKind.DUPLICATE, tag=entry.name, package=line
                        ))
                    seen.add(line)
                if lines != sorted(lines):
                    report.issues.append(IntegrityIssue(
                        kind=IssueKind.UNSORTED, tag=entry.name
                    ))
                tag_members[entry.name] = normalize(lines)

        package_tags: Dict[str, List[str]] = {}
        for package in self.packages():
            try:
                package_tags[package] = self.package_tags(package)
            except OSError as e:
                report.issues.append(IntegrityIssue(
                    kind=IssueKind.UNREADABLE, package=package, detail=str(e)
                ))
                continue
            if package_tags[package]:
                report.packages_checked += 1

        for tag, members in tag_members.items():
            for package in members:
                # Untracked packages (no directory) have nothing to compare
                if package in package_tags and tag not in package_tags[package]:
                    report.issues.append(IntegrityIssue(
                        kind=IssueKind.MISSING_FROM_PACKAGE, tag=tag, package=package
                    ))

        for package, recorded in package_tags.items():
            for tag in recorded:
                if package not in tag_members.get(tag, []):
                    report.issues.append(IntegrityIssue(
                        kind=IssueKind.MISSING_FROM_TAG, tag=tag, package=package
                    ))

        logger.debug(f"Integrity check found {len(report.issues)} issue(s)")
        return report

# dotinstall/deps/packages.py

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from dotinstall.core.config import Settings, settings
from dotinstall.core.exceptions import TagStoreWriteError
from dotinstall.core.settings import PACKAGE_COMMENTS_FILE
from dotinstall.deps.graph import link
from dotinstall.tags.store import TagStore, is_valid_name

logger = logging.getLogger(__name__)


class PackageEditor:
    """
    Creates and updates package directories: comments, tags and links.
    """

    def __init__(
        self,
        store: TagStore,
        upstream_dirname: str = "upstream",
        downstream_dirname: str = "downstream",
    ):
        self.store = store
        self.upstream_dirname = upstream_dirname
        self.downstream_dirname = downstream_dirname

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "PackageEditor":
        config = config or settings
        return cls(
            TagStore.from_settings(config),
            upstream_dirname=config.upstream_dirname,
            downstream_dirname=config.downstream_dirname,
        )

    @property
    def root(self) -> Path:
        return self.store.root

    def ensure_package(self, package: str) -> Path:
        pkg_dir = self.store.package_dir(package)
        try:
            pkg_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TagStoreWriteError(f"Directory '{pkg_dir}' could not be created: {e}") from e
        return pkg_dir

    def comments(self, package: str) -> List[str]:
        path = self.store.package_dir(package) / PACKAGE_COMMENTS_FILE
        if not path.is_file():
            return []
        return path.read_text(encoding="utf-8").splitlines()

    def add(
        self,
        package: str,
        tags: Iterable[str] = (),
        upstream: Iterable[str] = (),
        downstream: Iterable[str] = (),
        comments: Iterable[str] = (),
    ) -> Path:
        """
        Create or update a package.

        Upstream and downstream packages get their directories created too,
        so that the links between them always resolve.

        Args:
            package: Package ID
            tags: Tags to add to the package
            upstream: Packages this one depends on (installed first)
            downstream: Packages depending on this one (installed after)
            comments: Free-form notes appended to the package's .comments file

        Returns:
            The package directory

        Raises:
            ValueError: For an invalid tag or package ID, or a package linked
                to itself; nothing is written in that case
        """
        tags, upstream, downstream = list(tags), list(upstream), list(downstream)
        for tag in tags:
            if not is_valid_name(tag):
                raise ValueError(f"Invalid tag name: {tag!r}")
        for name in [package] + upstream + downstream:
            if not is_valid_name(name):
                raise ValueError(f"Invalid package ID: {name!r}")
        if package in upstream or package in downstream:
            raise ValueError(f"Package '{package}' cannot depend on itself")

        pkg_dir = self.ensure_package(package)

        comments = list(comments)
        if comments:
            try:
                with (pkg_dir / PACKAGE_COMMENTS_FILE).open("a", encoding="utf-8") as f:
                    for comment in comments:
                        f.write(f"{comment}\n")
            except OSError as e:
                raise TagStoreWriteError(f"Could not write comments for '{package}': {e}") from e

        if tags:
            self.store.tag_package(package, tags)

        for dep in upstream:
            self.ensure_package(dep)
            link(self.root, package, dep, self.upstream_dirname, self.downstream_dirname)
        for child in downstream:
            self.ensure_package(child)
            link(self.root, child, package, self.upstream_dirname, self.downstream_dirname)

        logger.info(f"Updated package '{package}'")
        return pkg_dir

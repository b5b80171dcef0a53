"""Exceptions raised by the store, query and package layers and caught by the CLI.

Recoverable problems (an unreadable tag file during a query, a missing walk
base) are not exceptions; they are reported on the result objects instead.
"""


class DotinstallError(Exception):
    """Base class for dotinstall errors."""


class MalformedOperandError(DotinstallError, ValueError):
    """Raised when a query operand has no valid operator or tag name."""


class TagStoreWriteError(DotinstallError):
    """Raised when a tag, query or package file cannot be created or written."""


class PackageNotFoundError(DotinstallError, LookupError):
    """Raised when a package directory does not exist under the install root."""


class InstallRootNotFoundError(DotinstallError, LookupError):
    """Raised when a read-only operation is pointed at a missing install root."""

"""
Schemas for the tag system.

This module defines the operand, query result and integrity report models
passed between the tag store, the query evaluator and the CLI.
"""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List


class Operator(str, Enum):
    """Set operation applied by a query operand."""
    AND = "&"   # Set intersection
    OR = "|"    # Set union


class Operand(BaseModel):
    """A signed tag reference, e.g. ``&editors`` or ``|fonts``."""
    operator: Operator = Operator.AND
    tag: str

    def __str__(self) -> str:
        return f"{self.operator.value}{self.tag}"


class QueryResult(BaseModel):
    """Outcome of evaluating a query against a tag store."""
    operands: List[Operand] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)  # Unreadable tag files etc.

    @property
    def count(self) -> int:
        return len(self.members)


class IssueKind(str, Enum):
    """Kinds of inconsistency reported by TagStore.check()."""
    UNSORTED = "unsorted"               # Tag file lines out of order
    DUPLICATE = "duplicate"             # Same package listed twice in one tag file
    INVALID_TAG = "invalid_tag"         # File name not usable as a tag
    UNREADABLE = "unreadable"           # Tag or package file could not be read
    MISSING_FROM_PACKAGE = "missing_from_package"  # Tag lists package, package file doesn't list tag
    MISSING_FROM_TAG = "missing_from_tag"          # Package file lists tag, tag file doesn't list package


class IntegrityIssue(BaseModel):
    kind: IssueKind
    tag: Optional[str] = None
    package: Optional[str] = None
    detail: Optional[str] = None


class IntegrityReport(BaseModel):
    """All issues found in one pass over the tag tree."""
    issues: List[IntegrityIssue] = Field(default_factory=list)
    tags_checked: int = 0
    packages_checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.issues

"""
Schemas for dependency walks and install ordering.
"""

from enum import Enum
from pydantic import BaseModel, Field
from typing import List


class WalkOrder(str, Enum):
    """Which end of the dependency chain is listed first."""
    DEEP_FIRST = "deep"         # Most upstream first; suits installing dependencies
    SHALLOW_FIRST = "shallow"   # Nearest first; suits listing dependents


class DepthEntry(BaseModel):
    depth: int
    name: str


class WalkResult(BaseModel):
    """Outcome of one DependencyWalker run."""
    names: List[str] = Field(default_factory=list)
    entries: List[DepthEntry] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    cycles: List[str] = Field(default_factory=list)     # Paths where a loop was cut

    @property
    def ok(self) -> bool:
        return not self.errors


class GraphOrder(BaseModel):
    """Topological install order from a LinkGraph."""
    order: List[str] = Field(default_factory=list)
    cycles: List[List[str]] = Field(default_factory=list)

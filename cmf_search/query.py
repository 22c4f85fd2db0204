"""Query object model for full-text searches over the content repository.

Constraints are plain immutable values; a ``QueryBuilder`` collects them into a
``QueryDescriptor`` that a store compiles into its native query language.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class DescendantNode:
    """Matches nodes located anywhere below ``path``."""

    path: str


@dataclass(frozen=True)
class FullTextSearch:
    """Matches nodes whose ``property_name`` contains ``term`` as free text."""

    property_name: str
    term: str


@dataclass(frozen=True)
class NodeName:
    selector: str


@dataclass(frozen=True)
class Comparison:
    operand: NodeName
    operator: str
    literal: str


@dataclass(frozen=True)
class OrConstraint:
    left: "Constraint"
    right: "Constraint"


@dataclass(frozen=True)
class AndConstraint:
    left: "Constraint"
    right: "Constraint"


Constraint = Union[DescendantNode, FullTextSearch, Comparison, OrConstraint, AndConstraint]


def contains_full_text(constraint: Constraint) -> bool:
    if isinstance(constraint, FullTextSearch):
        return True
    if isinstance(constraint, (OrConstraint, AndConstraint)):
        return contains_full_text(constraint.left) or contains_full_text(constraint.right)
    return False


@dataclass(frozen=True)
class QueryDescriptor:
    """Executable description of a search; constraints are joined with AND."""

    selector: str
    columns: Tuple[str, ...]
    constraints: Tuple[Constraint, ...]
    first_result: int = 0
    max_results: Optional[int] = None

    @property
    def constraint(self) -> Optional[Constraint]:
        """All constraints folded into a single AND tree, or None when unconstrained."""
        combined: Optional[Constraint] = None
        for item in self.constraints:
            combined = item if combined is None else AndConstraint(combined, item)
        return combined


@dataclass
class QueryBuilder:
    """Fluent builder for ``QueryDescriptor`` objects."""

    selector: Optional[str] = None
    columns: List[str] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    first_result: int = 0
    max_results: Optional[int] = None

    def select(self, column: str) -> "QueryBuilder":
        self.columns = [column]
        return self

    def add_select(self, column: str) -> "QueryBuilder":
        if column not in self.columns:
            self.columns.append(column)
        return self

    def from_(self, selector: str) -> "QueryBuilder":
        self.selector = selector
        return self

    def where(self, constraint: Constraint) -> "QueryBuilder":
        self.constraints = [constraint]
        return self

    def and_where(self, constraint: Constraint) -> "QueryBuilder":
        self.constraints.append(constraint)
        return self

    def set_first_result(self, offset: int) -> "QueryBuilder":
        self.first_result = offset
        return self

    def set_max_results(self, limit: Optional[int]) -> "QueryBuilder":
        self.max_results = limit
        return self

    def get_query(self) -> QueryDescriptor:
        if self.selector is None:
            raise ValueError("query has no selector; call from_() first")
        return QueryDescriptor(
            selector=self.selector,
            columns=tuple(self.columns),
            constraints=tuple(self.constraints),
            first_result=self.first_result,
            max_results=self.max_results,
        )


__all__ = [
    "AndConstraint",
    "Comparison",
    "Constraint",
    "DescendantNode",
    "FullTextSearch",
    "NodeName",
    "OrConstraint",
    "QueryBuilder",
    "QueryDescriptor",
    "contains_full_text",
]

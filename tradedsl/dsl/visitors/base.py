"""Base visitor class for typed Condition tree traversal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from tradedsl.dsl.ast import AndCondition, Condition, OrCondition

T = TypeVar("T")


class ConditionVisitor(ABC, Generic[T]):
    """Abstract visitor for Condition trees.

    Subclasses implement visit methods for leaf condition types. The base
    class handles traversal of the composite ``and`` / ``or`` nodes.

    Type parameter T is the return type of visit methods.

    Usage:
        class LeafCounter(ConditionVisitor[int]):
            def visit_default(self, cond):
                return 1

            def combine_and(self, original, left, right):
                return left + right

            def combine_or(self, original, left, right):
                return left + right
    """

    def visit(self, condition: Condition) -> T:
        """Dispatch to visit_{ClassName}, falling back to visit_default."""
        method_name = f"visit_{type(condition).__name__}"
        visitor = getattr(self, method_name, self.visit_default)
        return visitor(condition)

    @abstractmethod
    def visit_default(self, condition: Condition) -> T:
        """Handler for condition types without a specific visit method."""
        ...

    def visit_AndCondition(self, cond: AndCondition) -> T:
        left = self.visit(cond.left)
        right = self.visit(cond.right)
        return self.combine_and(cond, left, right)

    def visit_OrCondition(self, cond: OrCondition) -> T:
        left = self.visit(cond.left)
        right = self.visit(cond.right)
        return self.combine_or(cond, left, right)

    @abstractmethod
    def combine_and(self, original: AndCondition, left: T, right: T) -> T:
        """Combine results from both sides of an AndCondition."""
        ...

    @abstractmethod
    def combine_or(self, original: OrCondition, left: T, right: T) -> T:
        """Combine results from both sides of an OrCondition."""
        ...

"""IndicatorCollector visitor for extracting indicator usage from Condition trees.

Walks every rule condition and records each distinct ``(indicator, period)``
pair, so callers can tell how much price history a strategy needs before its
indicators stop returning fallback values.
"""

from __future__ import annotations

from tradedsl.dsl.ast import (
    AndCondition,
    ComparisonCondition,
    Condition,
    EmaExpression,
    Expression,
    FunctionCondition,
    OrCondition,
    RsiExpression,
    SmaExpression,
    Strategy,
)
from tradedsl.dsl.indicators import warmup_bars
from tradedsl.dsl.visitors.base import ConditionVisitor

IndicatorKey = tuple[str, int]


class IndicatorCollector(ConditionVisitor[None]):
    """Visitor that collects indicator expressions.

    Usage:
        collector = IndicatorCollector()
        collector.collect(strategy)
        collector.indicators        # {("sma", 50), ("rsi", 14)}
        collector.required_history()  # 50
    """

    def __init__(self):
        self.indicators: set[IndicatorKey] = set()

    def collect(self, strategy: Strategy) -> set[IndicatorKey]:
        """Collect indicators from every rule of a strategy."""
        for rule in strategy.rules:
            self.visit(rule.condition)
        return self.indicators

    def required_history(self) -> int:
        """Longest warm-up among the collected indicators (0 if none)."""
        return max(
            (warmup_bars(name, period) for name, period in self.indicators),
            default=0,
        )

    def visit_default(self, condition: Condition) -> None:
        return None

    def visit_ComparisonCondition(self, cond: ComparisonCondition) -> None:
        self._collect_expression(cond.left)
        self._collect_expression(cond.right)

    def visit_FunctionCondition(self, cond: FunctionCondition) -> None:
        self._collect_expression(cond.expression)

    def combine_and(self, original: AndCondition, left: None, right: None) -> None:
        return None

    def combine_or(self, original: OrCondition, left: None, right: None) -> None:
        return None

    def _collect_expression(self, expr: Expression) -> None:
        if isinstance(expr, (RsiExpression, SmaExpression, EmaExpression)):
            self.indicators.add((expr.type, expr.period))


def required_history(strategy: Strategy) -> int:
    """Convenience function: price history a strategy needs for real indicator values."""
    collector = IndicatorCollector()
    collector.collect(strategy)
    return collector.required_history()

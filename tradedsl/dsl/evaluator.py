"""Runtime evaluator for parsed strategies.

Walks a Strategy's rules against a Signal and MarketData and decides whether
any rule fires. Evaluation never executes actions; it reports the triggering
rule so the caller's execution engine can act on it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from tradedsl.dsl.ast import (
    Action,
    AndCondition,
    ComparisonCondition,
    Condition,
    EmaExpression,
    Expression,
    FunctionCondition,
    LiteralExpression,
    OrCondition,
    PriceExpression,
    RsiExpression,
    Rule,
    SmaExpression,
    Strategy,
    TokenVolumeExpression,
    TweetContainsExpression,
)
from tradedsl.dsl.errors import ExecutionTimeout
from tradedsl.dsl.indicators import get_calculator
from tradedsl.models.market import MarketData, Signal

logger = logging.getLogger(__name__)

ExpressionResult = float | bool


# =============================================================================
# Deadline
# =============================================================================


@dataclass(frozen=True)
class Deadline:
    """A wall-clock deadline checked cooperatively during evaluation."""

    timeout_ms: int
    expires_at: float  # time.monotonic() seconds

    @classmethod
    def after(cls, timeout_ms: int) -> Deadline:
        """Deadline ``timeout_ms`` milliseconds from now."""
        return cls(timeout_ms=timeout_ms, expires_at=time.monotonic() + timeout_ms / 1000)

    def expired(self) -> bool:
        """True once the deadline has passed."""
        return time.monotonic() >= self.expires_at

    def check(self) -> None:
        """Raise ExecutionTimeout once the deadline has passed."""
        if self.expired():
            raise ExecutionTimeout(self.timeout_ms)


# =============================================================================
# Evaluation Context
# =============================================================================


@dataclass
class EvalContext:
    """Inputs for one evaluation, passed through the condition tree."""

    signal: Signal
    market_data: MarketData = field(default_factory=MarketData)
    deadline: Deadline | None = None

    def check_deadline(self) -> None:
        if self.deadline is not None:
            self.deadline.check()


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating a strategy: whether it fired and which rule did."""

    triggered: bool
    rule: Rule | None = None
    rule_index: int | None = None

    @property
    def actions(self) -> list[Action]:
        """Actions of the triggering rule, or ``[]`` when nothing fired."""
        if self.rule is None:
            return []
        return list(self.rule.actions)


# =============================================================================
# Expression Resolver
# =============================================================================


class ExpressionResolver:
    """Resolves Expression nodes to numbers or booleans."""

    def resolve(self, expr: Expression, ctx: EvalContext) -> ExpressionResult:
        """Resolve an expression against the context."""
        ctx.check_deadline()

        match expr:
            case TweetContainsExpression(value=value):
                return value.lower() in ctx.signal.text.lower()

            case TokenVolumeExpression():
                return ctx.market_data.volume

            case PriceExpression():
                return ctx.market_data.price

            case RsiExpression(period=period) | SmaExpression(period=period) | EmaExpression(
                period=period
            ):
                return get_calculator(expr.type)(ctx.market_data.prices, period)

            case LiteralExpression(value=value):
                return value

            case _:
                raise ValueError(f"Unknown expression type: {type(expr)}")


# =============================================================================
# Condition Evaluator
# =============================================================================


class ConditionEvaluator:
    """Evaluates Condition trees to booleans."""

    def __init__(self):
        self.resolver = ExpressionResolver()

    def evaluate(self, condition: Condition, ctx: EvalContext) -> bool:
        """Evaluate a condition to a boolean."""
        ctx.check_deadline()

        match condition:
            case AndCondition(left=left, right=right):
                return self.evaluate(left, ctx) and self.evaluate(right, ctx)

            case OrCondition(left=left, right=right):
                return self.evaluate(left, ctx) or self.evaluate(right, ctx)

            case ComparisonCondition(left=left, operator=op, right=right):
                left_val = self.resolver.resolve(left, ctx)
                right_val = self.resolver.resolve(right, ctx)
                return op.apply(left_val, right_val)

            case FunctionCondition(expression=expression):
                return bool(self.resolver.resolve(expression, ctx))

            case _:
                return False


# =============================================================================
# Strategy Evaluator
# =============================================================================


class StrategyEvaluator:
    """Decides whether a strategy fires for a signal and market snapshot."""

    def __init__(self):
        self.condition_evaluator = ConditionEvaluator()

    def evaluate(
        self,
        strategy: Strategy,
        signal: Signal,
        market_data: MarketData | None = None,
        deadline: Deadline | None = None,
    ) -> bool:
        """True as soon as any rule's condition holds. No rules never fires."""
        return self.find_triggered(strategy, signal, market_data, deadline).triggered

    def find_triggered(
        self,
        strategy: Strategy,
        signal: Signal,
        market_data: MarketData | None = None,
        deadline: Deadline | None = None,
    ) -> EvaluationResult:
        """Return the first rule whose condition holds, with its actions."""
        ctx = EvalContext(
            signal=signal,
            market_data=market_data if market_data is not None else MarketData(),
            deadline=deadline,
        )

        for i, rule in enumerate(strategy.rules):
            if self.condition_evaluator.evaluate(rule.condition, ctx):
                logger.debug(f"Strategy '{strategy.name}' rule {i} fired")
                return EvaluationResult(triggered=True, rule=rule, rule_index=i)

        return EvaluationResult(triggered=False)


def create_evaluator() -> StrategyEvaluator:
    """Create a StrategyEvaluator."""
    return StrategyEvaluator()

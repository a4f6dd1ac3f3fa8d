"""Tests for the strategy evaluator."""

import time

import pytest

from tradedsl.dsl.ast import (
    AndCondition,
    CompareOp,
    ComparisonCondition,
    EmaExpression,
    FunctionCondition,
    LiteralExpression,
    OrCondition,
    PriceExpression,
    RsiExpression,
    Rule,
    SellAction,
    SmaExpression,
    Strategy,
    TokenVolumeExpression,
    TweetContainsExpression,
)
from tradedsl.dsl.errors import ExecutionTimeout
from tradedsl.dsl.evaluator import (
    ConditionEvaluator,
    Deadline,
    EvalContext,
    ExpressionResolver,
    StrategyEvaluator,
    create_evaluator,
)
from tradedsl.dsl.parser.strategy_parser import create_parser
from tradedsl.models.market import MarketData


def _compare(left, op: str, right) -> ComparisonCondition:
    return ComparisonCondition(left=left, operator=CompareOp(op), right=right)


def _lit(value: float) -> LiteralExpression:
    return LiteralExpression(value=value)


@pytest.fixture
def rising_context(moon_signal, rising_market) -> EvalContext:
    return EvalContext(signal=moon_signal, market_data=rising_market)


# =============================================================================
# ExpressionResolver Tests
# =============================================================================


class TestExpressionResolver:
    """Tests for ExpressionResolver."""

    def test_tweet_contains_is_case_insensitive(self, rising_context):
        resolver = ExpressionResolver()
        assert resolver.resolve(TweetContainsExpression(value="Moon"), rising_context) is True
        assert resolver.resolve(TweetContainsExpression(value="lambo"), rising_context) is False

    def test_market_fields(self, rising_context):
        resolver = ExpressionResolver()
        assert resolver.resolve(PriceExpression(), rising_context) == 160.0
        assert resolver.resolve(TokenVolumeExpression(), rising_context) == 2_000_000

    def test_indicators_use_price_history(self, rising_context):
        """Prices 100..160: SMA(50) is the mean of 111..160."""
        resolver = ExpressionResolver()
        assert resolver.resolve(SmaExpression(period=50), rising_context) == pytest.approx(135.5)
        assert resolver.resolve(RsiExpression(period=14), rising_context) == 100.0
        assert resolver.resolve(EmaExpression(period=20), rising_context) > 140.0

    def test_literal(self, rising_context):
        assert ExpressionResolver().resolve(_lit(42.5), rising_context) == 42.5

    def test_missing_market_data_defaults(self, quiet_signal):
        ctx = EvalContext(signal=quiet_signal)
        resolver = ExpressionResolver()
        assert resolver.resolve(PriceExpression(), ctx) == 0
        assert resolver.resolve(SmaExpression(period=50), ctx) == 0
        assert resolver.resolve(RsiExpression(period=14), ctx) == 50


# =============================================================================
# ConditionEvaluator Tests
# =============================================================================


class TestConditionEvaluator:
    """Tests for ConditionEvaluator."""

    @pytest.mark.parametrize(
        ("op", "expected"),
        [(">", True), ("<", False), (">=", True), ("<=", False), ("==", False)],
    )
    def test_comparison_operators(self, rising_context, op, expected):
        cond = _compare(PriceExpression(), op, _lit(100.0))
        assert ConditionEvaluator().evaluate(cond, rising_context) is expected

    def test_equality(self, rising_context):
        cond = _compare(PriceExpression(), "==", _lit(160.0))
        assert ConditionEvaluator().evaluate(cond, rising_context) is True

    def test_function_condition_truthiness(self, rising_context, quiet_signal):
        evaluator = ConditionEvaluator()
        cond = FunctionCondition(expression=TweetContainsExpression(value="moon"))
        assert evaluator.evaluate(cond, rising_context) is True
        assert evaluator.evaluate(cond, EvalContext(signal=quiet_signal)) is False

    def test_bare_numeric_function_is_truthy_when_nonzero(self, quiet_signal):
        cond = FunctionCondition(expression=PriceExpression())
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate(cond, EvalContext(signal=quiet_signal)) is False
        ctx = EvalContext(signal=quiet_signal, market_data=MarketData(price=1.5))
        assert evaluator.evaluate(cond, ctx) is True

    def test_and_or(self, rising_context):
        true_cond = _compare(PriceExpression(), ">", _lit(1.0))
        false_cond = _compare(PriceExpression(), "<", _lit(1.0))
        evaluator = ConditionEvaluator()

        assert evaluator.evaluate(AndCondition(left=true_cond, right=true_cond), rising_context)
        assert not evaluator.evaluate(AndCondition(left=true_cond, right=false_cond), rising_context)
        assert evaluator.evaluate(OrCondition(left=false_cond, right=true_cond), rising_context)
        assert not evaluator.evaluate(OrCondition(left=false_cond, right=false_cond), rising_context)

    def test_expired_deadline_stops_evaluation(self, rising_context):
        rising_context.deadline = Deadline(timeout_ms=5, expires_at=time.monotonic() - 1)
        cond = _compare(PriceExpression(), ">", _lit(1.0))
        with pytest.raises(ExecutionTimeout):
            ConditionEvaluator().evaluate(cond, rising_context)


# =============================================================================
# StrategyEvaluator Tests
# =============================================================================


class TestStrategyEvaluator:
    """Tests for StrategyEvaluator."""

    def test_empty_strategy_never_fires(self, moon_signal, rising_market, quiet_signal):
        strategy = Strategy(name="Empty", rules=[])
        evaluator = create_evaluator()
        assert evaluator.evaluate(strategy, moon_signal, rising_market) is False
        assert evaluator.evaluate(strategy, quiet_signal) is False

    def test_ma_cross_fires_above_sma(self, ma_cross_source, moon_signal, rising_market):
        strategy = create_parser().parse(ma_cross_source)
        assert StrategyEvaluator().evaluate(strategy, moon_signal, rising_market) is True

    def test_ma_cross_quiet_without_history(self, ma_cross_source, moon_signal):
        """SMA falls back to 0 and a zero price is not above it."""
        strategy = create_parser().parse(ma_cross_source)
        market = MarketData(price=0.0, prices=[1.0])
        assert StrategyEvaluator().evaluate(strategy, moon_signal, market) is False

    def test_find_triggered_returns_first_matching_rule(
        self, multi_rule_source, moon_signal, rising_market
    ):
        strategy = create_parser().parse(multi_rule_source)
        # Volume is 2M and the text mentions the moon, so rule 0 fires
        result = StrategyEvaluator().find_triggered(strategy, moon_signal, rising_market)

        assert result.triggered is True
        assert result.rule_index == 0
        assert [a.type for a in result.actions] == ["buy"]
        assert result.actions[0].parameters["token"] == "SOL"

    def test_find_triggered_later_rule(self, multi_rule_source, quiet_signal, rising_market):
        """RSI(14) is 100 on a rising series, so the sell rule fires."""
        strategy = create_parser().parse(multi_rule_source)
        result = StrategyEvaluator().find_triggered(strategy, quiet_signal, rising_market)

        assert result.rule_index == 1
        assert result.actions == [SellAction(parameters={"token": "SOL", "qty": 1})]

    def test_nothing_fires(self, multi_rule_source, quiet_signal, thin_market):
        strategy = create_parser().parse(multi_rule_source)
        result = StrategyEvaluator().find_triggered(strategy, quiet_signal, thin_market)

        assert result.triggered is False
        assert result.rule is None
        assert result.actions == []

    def test_evaluation_does_not_mutate_strategy(self, ma_cross_source, moon_signal, rising_market):
        strategy = create_parser().parse(ma_cross_source)
        before = strategy.to_json()
        StrategyEvaluator().evaluate(strategy, moon_signal, rising_market)
        assert strategy.to_json() == before

    def test_rules_short_circuit(self, moon_signal):
        """Rules after the first match are never evaluated."""

        class CountingEvaluator(ConditionEvaluator):
            def __init__(self):
                super().__init__()
                self.calls = 0

            def evaluate(self, condition, ctx):
                self.calls += 1
                return super().evaluate(condition, ctx)

        strategy = Strategy(
            name="Short",
            rules=[
                Rule(condition=FunctionCondition(expression=TweetContainsExpression(value="moon"))),
                Rule(condition=FunctionCondition(expression=PriceExpression())),
            ],
        )
        evaluator = StrategyEvaluator()
        evaluator.condition_evaluator = CountingEvaluator()

        result = evaluator.find_triggered(strategy, moon_signal)

        assert result.rule_index == 0
        assert evaluator.condition_evaluator.calls == 1

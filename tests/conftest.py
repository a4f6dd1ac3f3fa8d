"""Shared test fixtures and helpers."""

import pytest

from tradedsl.dsl.ast import (
    AndCondition,
    Condition,
    FunctionCondition,
    LiteralExpression,
    PriceExpression,
)
from tradedsl.models.market import MarketData, Signal

MA_CROSS_SOURCE = (
    'strategy("MA Cross") { if price > sma(50) { buy(token=SOL, qty=1, sl=2%, tp=5%) } }'
)

MULTI_RULE_SOURCE = """
strategy("Moon Watcher") {
    if tweet.contains("moon") and token.volume > 1000000 {
        buy(SOL, qty=2, sl=3%, tp=10%)
    }
    if rsi(14) > 70 or price < ema(20) {
        sell(SOL, qty=1)
    }
}
"""


def nested_condition(depth: int) -> Condition:
    """Build a condition whose deepest node sits at exactly ``depth`` (root = 0).

    ``depth`` must be at least 1: the innermost FunctionCondition is at
    ``depth - 1`` and its expression at ``depth``.
    """
    cond: Condition = FunctionCondition(expression=PriceExpression())
    for _ in range(depth - 1):
        cond = AndCondition(
            left=cond,
            right=FunctionCondition(expression=LiteralExpression(value=1.0)),
        )
    return cond


@pytest.fixture
def ma_cross_source() -> str:
    return MA_CROSS_SOURCE


@pytest.fixture
def multi_rule_source() -> str:
    return MULTI_RULE_SOURCE


@pytest.fixture
def moon_signal() -> Signal:
    return Signal(id="sig-1", text="SOL is going to the MOON", token="SOL", sentiment="bullish")


@pytest.fixture
def quiet_signal() -> Signal:
    return Signal(text="nothing to see here")


@pytest.fixture
def rising_market() -> MarketData:
    """60 steadily rising prices ending at 160, well above their SMA(50)."""
    prices = [100.0 + i for i in range(61)]
    return MarketData(price=prices[-1], volume=2_000_000, prices=prices)


@pytest.fixture
def thin_market() -> MarketData:
    """Too little history for any indicator used in the fixtures."""
    return MarketData(price=10.0, volume=500, prices=[9.0, 10.0])

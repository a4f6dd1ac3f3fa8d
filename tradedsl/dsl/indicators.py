"""Technical indicators over a price history.

Prices are ordered oldest to newest. When the history is too short each
indicator returns a fixed fallback instead of raising:

- RSI: 50.0 (neutral) with fewer than ``period + 1`` prices
- SMA / EMA: 0.0 with fewer than ``period`` prices

RSI is the simple (non Wilder-smoothed) variant.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

RSI_NEUTRAL = 50.0

IndicatorCalculator = Callable[[Sequence[float], int], float]


def calculate_rsi(prices: Sequence[float], period: int) -> float:
    """Relative Strength Index from the last ``period`` price deltas."""
    if len(prices) < period + 1:
        return RSI_NEUTRAL

    gains = 0.0
    losses = 0.0
    for i in range(len(prices) - period, len(prices)):
        change = prices[i] - prices[i - 1]
        if change > 0:
            gains += change
        else:
            losses += abs(change)

    avg_gain = gains / period
    avg_loss = losses / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


def calculate_sma(prices: Sequence[float], period: int) -> float:
    """Arithmetic mean of the last ``period`` prices."""
    if len(prices) < period:
        return 0.0
    return sum(prices[-period:]) / period


def calculate_ema(prices: Sequence[float], period: int) -> float:
    """Exponential Moving Average seeded with the SMA of the first ``period`` prices."""
    if len(prices) < period:
        return 0.0

    multiplier = 2 / (period + 1)
    ema = calculate_sma(prices[:period], period)
    for price in prices[period:]:
        ema = (price - ema) * multiplier + ema
    return ema


# Registry mapping indicator expression tags to calculators
INDICATOR_CALCULATORS: dict[str, IndicatorCalculator] = {
    "rsi": calculate_rsi,
    "sma": calculate_sma,
    "ema": calculate_ema,
}


def get_calculator(indicator_type: str) -> IndicatorCalculator:
    """Look up the calculator for an indicator tag.

    Raises:
        KeyError: If the tag is not a known indicator
    """
    calculator = INDICATOR_CALCULATORS.get(indicator_type)
    if calculator is None:
        raise KeyError(f"Unknown indicator type: {indicator_type}")
    return calculator


def warmup_bars(indicator_type: str, period: int) -> int:
    """Minimum number of prices before an indicator stops returning its fallback."""
    if indicator_type == "rsi":
        return period + 1
    return period

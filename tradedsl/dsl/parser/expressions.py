"""Expression parser: turns a single clause operand into a typed Expression."""

from __future__ import annotations

import re

from tradedsl.dsl.ast import (
    EmaExpression,
    Expression,
    LiteralExpression,
    PriceExpression,
    RsiExpression,
    SmaExpression,
    TokenVolumeExpression,
    TweetContainsExpression,
)
from tradedsl.dsl.errors import DSLSyntaxError

TWEET_CONTAINS_PATTERN = re.compile(r"""tweet\.contains\s*\(\s*["']([^"']+)["']\s*\)""")
INDICATOR_PATTERN = re.compile(r"(rsi|sma|ema)\s*\(\s*(\d+)\s*\)")
NUMBER_PATTERN = re.compile(r"\d+\.?\d*|\.\d+")

INDICATOR_EXPRESSIONS: dict[str, type[RsiExpression | SmaExpression | EmaExpression]] = {
    "rsi": RsiExpression,
    "sma": SmaExpression,
    "ema": EmaExpression,
}


def parse_expression(text: str) -> Expression:
    """Parse an operand.

    Recognized forms, in priority order: ``tweet.contains("<text>")``,
    ``token.volume``, ``price``, ``rsi(<n>)``, ``sma(<n>)``, ``ema(<n>)`` and
    bare non-negative numbers.

    Raises:
        DSLSyntaxError: If the text is not a known expression
    """
    expr = text.strip()

    match = TWEET_CONTAINS_PATTERN.fullmatch(expr)
    if match:
        return TweetContainsExpression(value=match.group(1))

    if expr == "token.volume":
        return TokenVolumeExpression()

    if expr == "price":
        return PriceExpression()

    match = INDICATOR_PATTERN.fullmatch(expr)
    if match:
        name, period = match.group(1), int(match.group(2))
        if period <= 0:
            raise DSLSyntaxError(f"Invalid indicator period: {expr}")
        return INDICATOR_EXPRESSIONS[name](period=period)

    if NUMBER_PATTERN.fullmatch(expr):
        return LiteralExpression(value=float(expr))

    raise DSLSyntaxError(f"Unknown expression: {expr}")

"""Typed AST for the strategy DSL.

Every node is a frozen Pydantic model carrying a literal ``type`` tag, and the
node families are joined into discriminated unions:

- Expression: values a clause can compare or test (signal text, market
  fields, indicators, literals)
- Condition: boolean trees built from ``and`` / ``or``, comparisons and bare
  function calls
- Action: ``buy(...)`` / ``sell(...)`` with their parameter maps

A parsed Strategy is immutable and round-trips through JSON unchanged.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ASTNode(BaseModel):
    """Base for all AST nodes; nodes are read-only once built."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Enums
# =============================================================================


class CompareOp(str, Enum):
    """Comparison operators accepted by the grammar."""

    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    EQ = "=="

    def apply(self, left: float | bool, right: float | bool) -> bool:
        """Apply the comparison operator."""
        match self:
            case CompareOp.GT:
                return left > right
            case CompareOp.LT:
                return left < right
            case CompareOp.GTE:
                return left >= right
            case CompareOp.LTE:
                return left <= right
            case CompareOp.EQ:
                return left == right
            case _:
                return False


# =============================================================================
# Expressions
# =============================================================================


class TweetContainsExpression(ASTNode):
    """Case-insensitive substring test against the signal text."""

    type: Literal["tweet.contains"] = "tweet.contains"
    value: str


class TokenVolumeExpression(ASTNode):
    """Current traded volume of the token."""

    type: Literal["token.volume"] = "token.volume"


class PriceExpression(ASTNode):
    """Current token price."""

    type: Literal["price"] = "price"


class RsiExpression(ASTNode):
    """Relative Strength Index over the price history."""

    type: Literal["rsi"] = "rsi"
    period: int = Field(gt=0)


class SmaExpression(ASTNode):
    """Simple Moving Average over the price history."""

    type: Literal["sma"] = "sma"
    period: int = Field(gt=0)


class EmaExpression(ASTNode):
    """Exponential Moving Average over the price history."""

    type: Literal["ema"] = "ema"
    period: int = Field(gt=0)


class LiteralExpression(ASTNode):
    """A literal numeric value."""

    type: Literal["literal"] = "literal"
    value: float


Expression = Annotated[
    TweetContainsExpression
    | TokenVolumeExpression
    | PriceExpression
    | RsiExpression
    | SmaExpression
    | EmaExpression
    | LiteralExpression,
    Field(discriminator="type"),
]

IndicatorExpression = RsiExpression | SmaExpression | EmaExpression


# =============================================================================
# Conditions
# =============================================================================


class AndCondition(ASTNode):
    """Both sides must hold."""

    type: Literal["and"] = "and"
    left: Condition
    right: Condition


class OrCondition(ASTNode):
    """Either side must hold."""

    type: Literal["or"] = "or"
    left: Condition
    right: Condition


class ComparisonCondition(ASTNode):
    """Compare two expressions."""

    type: Literal["comparison"] = "comparison"
    left: Expression
    operator: CompareOp
    right: Expression


class FunctionCondition(ASTNode):
    """A bare expression used as a truth test, e.g. ``tweet.contains("moon")``."""

    type: Literal["function"] = "function"
    expression: Expression


Condition = Annotated[
    AndCondition | OrCondition | ComparisonCondition | FunctionCondition,
    Field(discriminator="type"),
]

# Resolve the recursive Condition references
AndCondition.model_rebuild()
OrCondition.model_rebuild()


# =============================================================================
# Actions
# =============================================================================

# Values written as ``N%`` are stored as N (percentage points)
ParamValue = float | str


class BuyAction(ASTNode):
    """Buy order request; well-known keys are token, qty, sl and tp."""

    type: Literal["buy"] = "buy"
    parameters: dict[str, ParamValue] = Field(default_factory=dict)


class SellAction(ASTNode):
    """Sell order request; well-known keys are token, qty, sl and tp."""

    type: Literal["sell"] = "sell"
    parameters: dict[str, ParamValue] = Field(default_factory=dict)


Action = Annotated[BuyAction | SellAction, Field(discriminator="type")]


# =============================================================================
# Rules and strategy
# =============================================================================


class Rule(ASTNode):
    """One ``if <condition> { <actions> }`` block."""

    condition: Condition
    actions: list[Action] = Field(default_factory=list)


class Strategy(ASTNode):
    """A parsed strategy. An empty rule list never fires."""

    name: str = Field(min_length=1)
    rules: list[Rule] = Field(default_factory=list)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to canonical JSON."""
        return self.model_dump_json(indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> Strategy:
        """Deserialize from JSON produced by ``to_json``.

        Decoded with ``json`` first: deep ``and`` chains exceed the nesting
        limit of pydantic's own JSON parser.
        """
        return cls.model_validate(json.loads(json_str))


class ParseError(BaseModel):
    """A parse diagnostic. Positions are not tracked, so always 1:1."""

    line: int = 1
    column: int = 1
    message: str

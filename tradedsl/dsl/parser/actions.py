"""Action parser: extracts buy(...) / sell(...) calls from an action block."""

from __future__ import annotations

import re

from tradedsl.dsl.ast import Action, BuyAction, ParamValue, SellAction
from tradedsl.dsl.errors import DSLSyntaxError

BUY_PATTERN = re.compile(r"\bbuy\s*\(([^)]*)\)")
SELL_PATTERN = re.compile(r"\bsell\s*\(([^)]*)\)")
NUMBER_PATTERN = re.compile(r"[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def parse_actions(text: str) -> list[Action]:
    """Parse an action block body.

    The first ``buy(...)`` and the first ``sell(...)`` each become an
    Action, buy first. A block with neither yields no actions.
    """
    actions: list[Action] = []

    buy_match = BUY_PATTERN.search(text)
    if buy_match:
        actions.append(BuyAction(parameters=parse_action_params(buy_match.group(1))))

    sell_match = SELL_PATTERN.search(text)
    if sell_match:
        actions.append(SellAction(parameters=parse_action_params(sell_match.group(1))))

    return actions


def parse_action_params(text: str) -> dict[str, ParamValue]:
    """Parse ``SOL, qty=1, sl=2%, tp=5%`` into a parameter map.

    The first bare positional value becomes ``token`` unless one was
    already given. ``N%`` is stored as N percentage points, numeric values
    as floats and anything else as a string.

    Raises:
        DSLSyntaxError: If a percentage value is not numeric
    """
    params: dict[str, ParamValue] = {}

    for part in text.split(","):
        item = part.strip()
        if not item:
            continue

        if "=" in item:
            # Text after a second "=" is dropped
            key, value = item.split("=")[:2]
            params[key.strip()] = _parse_value(value.strip())
        elif "token" not in params:
            params["token"] = item

    return params


def _parse_value(value: str) -> ParamValue:
    if value.endswith("%"):
        number = value[:-1].strip()
        if not NUMBER_PATTERN.fullmatch(number):
            raise DSLSyntaxError(f"Invalid percentage value: {value}")
        return float(number)

    if NUMBER_PATTERN.fullmatch(value):
        return float(value)
    return value

"""Parsers for the strategy DSL, leaves first: expressions, conditions, actions."""

from .actions import parse_action_params, parse_actions
from .conditions import MAX_PARSE_DEPTH, ConditionParser, parse_condition
from .expressions import parse_expression
from .strategy_parser import StrategyParser, create_parser

__all__ = [
    "MAX_PARSE_DEPTH",
    "ConditionParser",
    "StrategyParser",
    "create_parser",
    "parse_action_params",
    "parse_actions",
    "parse_condition",
    "parse_expression",
]

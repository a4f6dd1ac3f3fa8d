"""Strategy DSL: parser, evaluator and sandbox.

The processing path:
  1. Source text -> StrategyParser -> Strategy (typed, immutable AST)
  2. Strategy -> Sandbox.validate (depth limit, whitelist, content scan)
  3. Strategy + Signal + MarketData -> StrategyEvaluator -> fires or not

Strategy.to_json() / Strategy.from_json() give the canonical stored form.
"""

from .ast import Action, Condition, Expression, ParseError, Rule, Strategy
from .errors import (
    DangerousPatternDetected,
    DisallowedOperation,
    DSLError,
    DSLSyntaxError,
    ExecutionTimeout,
    MaxDepthExceeded,
    SandboxError,
)
from .evaluator import Deadline, EvaluationResult, StrategyEvaluator, create_evaluator
from .parser import StrategyParser, create_parser
from .sandbox import Sandbox

__all__ = [
    "Action",
    "Condition",
    "DSLError",
    "DSLSyntaxError",
    "DangerousPatternDetected",
    "Deadline",
    "DisallowedOperation",
    "EvaluationResult",
    "ExecutionTimeout",
    "Expression",
    "MaxDepthExceeded",
    "ParseError",
    "Rule",
    "Sandbox",
    "SandboxError",
    "Strategy",
    "StrategyEvaluator",
    "StrategyParser",
    "create_evaluator",
    "create_parser",
]

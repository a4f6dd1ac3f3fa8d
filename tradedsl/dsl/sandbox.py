"""Sandbox - validates an AST and runs evaluation under a deadline.

The sandbox works on any AST handed to it, including ones built by hand or
deserialized from untrusted JSON, not only on parser output. Three layers:

1. Structural walk, one level at a time and models included: a tagged node
   nested deeper than ``max_depth`` raises MaxDepthExceeded, and a node whose
   ``type`` tag is not whitelisted raises DisallowedOperation.
2. Content scan: the tree is serialized to JSON and searched for forbidden
   substrings. This is a coarse second line behind the whitelist and may
   reject legitimate text that happens to contain a forbidden word.
3. Timed execution: evaluation runs on a daemon worker thread raced against
   ``timeout_ms``. The built-in evaluator also receives a Deadline it checks
   at every step, so a losing evaluation stops instead of running on.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from tradedsl.dsl.ast import Strategy
from tradedsl.dsl.errors import (
    DangerousPatternDetected,
    DisallowedOperation,
    ExecutionTimeout,
    MaxDepthExceeded,
)
from tradedsl.dsl.evaluator import Deadline, EvaluationResult, StrategyEvaluator
from tradedsl.models.market import MarketData, Signal

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_AST_DEPTH = 50
MAX_EXECUTION_TIME_MS = 1000

ALLOWED_OPERATIONS = frozenset(
    {
        # Conditions
        "and",
        "or",
        "comparison",
        "function",
        # Expressions
        "tweet.contains",
        "token.volume",
        "price",
        "rsi",
        "sma",
        "ema",
        "literal",
        # Actions
        "buy",
        "sell",
    }
)

# Names tied to dynamic code loading, file-system access and process spawning
DANGEROUS_PATTERNS = (
    "require",
    "import",
    "eval",
    "exec",
    "compile",
    "Function",
    "fs",
    "process",
    "child_process",
    "subprocess",
    "__",
    "os.system",
    "open(",
)

# Untagged containers (Strategy, Rule) allowed above the tagged node tree
WRAPPER_LEVELS = 2

# Keys holding plain data rather than AST nodes; their "type" is not checked
DATA_KEYS = frozenset({"parameters"})


class Sandbox:
    """Validates ASTs and runs evaluations with a wall-clock limit."""

    def __init__(
        self,
        max_depth: int = MAX_AST_DEPTH,
        timeout_ms: int = MAX_EXECUTION_TIME_MS,
        evaluator: StrategyEvaluator | None = None,
    ):
        self.max_depth = max_depth
        self.timeout_ms = timeout_ms
        self.evaluator = evaluator or StrategyEvaluator()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, ast: Any) -> None:
        """Validate an AST model or its plain dict/list form.

        Depth counts tagged nodes only, so the Strategy and Rule wrappers
        around a condition tree do not use up the limit. Untagged nesting is
        bounded separately at ``max_depth + WRAPPER_LEVELS``.

        Raises:
            MaxDepthExceeded: If any node is nested deeper than ``max_depth``
            DisallowedOperation: If a node's type tag is not whitelisted
            DangerousPatternDetected: If the serialized tree contains a
                forbidden substring
        """
        self._validate_node(ast, depth=0, nesting=0, typed=True)
        # Serialize only after the walk has bounded the depth
        self._scan_content(ast)

    def _validate_node(self, node: Any, depth: int, nesting: int, typed: bool) -> None:
        if isinstance(node, (list, tuple)):
            self._check_depth(depth, nesting)
            for child in node:
                # Lists are transparent, but a list directly inside a list
                # still counts as a level so nesting stays bounded
                step = 1 if isinstance(child, (list, tuple)) else 0
                self._validate_node(child, depth + step, nesting + step, typed)
            return

        fields = _fields(node)
        if fields is None:
            return

        self._check_depth(depth, nesting)
        is_node = typed and "type" in fields
        if is_node:
            self._check_operation(fields["type"])

        child_depth = depth + 1 if is_node else depth
        for key, child in fields.items():
            self._validate_node(child, child_depth, nesting + 1, typed and key not in DATA_KEYS)

    def _check_depth(self, depth: int, nesting: int) -> None:
        if depth > self.max_depth:
            raise MaxDepthExceeded(depth, self.max_depth)
        if nesting > self.max_depth + WRAPPER_LEVELS:
            raise MaxDepthExceeded(nesting, self.max_depth + WRAPPER_LEVELS)

    def _check_operation(self, operation: Any) -> None:
        if not isinstance(operation, str) or operation not in ALLOWED_OPERATIONS:
            raise DisallowedOperation(str(operation))

    def _scan_content(self, ast: Any) -> None:
        serialized = json.dumps(ast, default=_json_default)
        for pattern in DANGEROUS_PATTERNS:
            if pattern in serialized:
                raise DangerousPatternDetected(pattern)

    # -------------------------------------------------------------------------
    # Timed execution
    # -------------------------------------------------------------------------

    def execute(self, ast: Any, fn: Callable[[Any], T]) -> T:
        """Validate ``ast``, then run ``fn(ast)`` under the deadline.

        ``fn`` runs on a daemon thread. If it has not returned when the
        deadline passes, ExecutionTimeout is raised and its result is
        discarded; a function that ignores deadlines may keep running in the
        background until it returns. Exceptions raised by ``fn`` propagate.
        """
        self.validate(ast)
        return self._race(fn, ast)

    def evaluate(
        self,
        strategy: Strategy,
        signal: Signal,
        market_data: MarketData | None = None,
    ) -> EvaluationResult:
        """Validate a strategy and evaluate it under the deadline.

        The evaluator checks the same deadline at every condition and
        expression, so it stops promptly after a timeout.
        """
        self.validate(strategy)
        deadline = Deadline.after(self.timeout_ms)
        return self._race(
            self.evaluator.find_triggered, strategy, signal, market_data, deadline
        )

    def _race(self, fn: Callable[..., T], *args: Any) -> T:
        outcome: dict[str, Any] = {}
        done = threading.Event()

        def _run() -> None:
            try:
                outcome["result"] = fn(*args)
            except Exception as e:
                outcome["error"] = e
            finally:
                done.set()

        worker = threading.Thread(target=_run, name="dsl-sandbox", daemon=True)
        worker.start()

        if not done.wait(self.timeout_ms / 1000):
            logger.warning(f"DSL evaluation exceeded {self.timeout_ms} ms, abandoning worker")
            raise ExecutionTimeout(self.timeout_ms)

        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]


def _fields(node: Any) -> dict[str, Any] | None:
    """One level of a node's children, without dumping the subtree."""
    if isinstance(node, BaseModel):
        return {name: getattr(node, name) for name in type(node).model_fields}
    if isinstance(node, dict):
        return node
    return None


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    return str(obj)

"""Condition parser: turns boolean clause text into a Condition tree.

Precedence follows the legacy grammar exactly:

1. If the clause contains ``" and "``, split at the first occurrence and
   build ``And(parse(left), parse(rest))``.
2. Otherwise, if it contains ``" or "``, split the same way into ``Or``.
3. Otherwise try ``<expr> <op> <expr>``.
4. Otherwise the clause is a bare function call such as
   ``tweet.contains("moon")``.

The result is a right-leaning tree with no parenthesization. ``and`` only
binds tighter than ``or`` when it appears textually first:
``a or b and c`` parses as ``And(Or(a, b), c)``. Existing strategies depend
on this shape, so it is kept as is.
"""

from __future__ import annotations

import re

from tradedsl.dsl.ast import (
    AndCondition,
    CompareOp,
    ComparisonCondition,
    Condition,
    FunctionCondition,
    OrCondition,
)
from tradedsl.dsl.errors import DSLSyntaxError
from tradedsl.dsl.parser.expressions import parse_expression

MAX_PARSE_DEPTH = 200

COMPARISON_PATTERN = re.compile(r"(.+?)\s*([><=]+)\s*(.+)", re.DOTALL)

BOOLEAN_KEYWORDS: list[tuple[str, type[AndCondition | OrCondition]]] = [
    (" and ", AndCondition),
    (" or ", OrCondition),
]


class ConditionParser:
    """Parses condition clauses, bounding recursion depth explicitly."""

    def __init__(self, max_depth: int = MAX_PARSE_DEPTH):
        self.max_depth = max_depth

    def parse(self, text: str) -> Condition:
        """Parse a condition clause.

        Raises:
            DSLSyntaxError: On an unknown expression, an unsupported operator,
                or nesting deeper than ``max_depth``
        """
        return self._parse(text.strip(), depth=0)

    def _parse(self, text: str, depth: int) -> Condition:
        if depth > self.max_depth:
            raise DSLSyntaxError(
                f"Condition nesting exceeds maximum depth of {self.max_depth}"
            )
        if not text:
            raise DSLSyntaxError("Empty condition")

        for keyword, node_cls in BOOLEAN_KEYWORDS:
            if keyword in text:
                left, _, rest = text.partition(keyword)
                return node_cls(
                    left=self._parse(left.strip(), depth + 1),
                    right=self._parse(rest.strip(), depth + 1),
                )

        match = COMPARISON_PATTERN.match(text)
        if match:
            return self._parse_comparison(text, *match.groups())

        return FunctionCondition(expression=parse_expression(text))

    def _parse_comparison(self, text: str, left: str, op: str, right: str) -> Condition:
        try:
            operator = CompareOp(op)
        except ValueError:
            raise DSLSyntaxError(f"Unsupported comparison operator: {op}") from None

        if not left.strip() or not right.strip():
            raise DSLSyntaxError(f"Invalid comparison: {text}")

        return ComparisonCondition(
            left=parse_expression(left),
            operator=operator,
            right=parse_expression(right),
        )


def parse_condition(text: str, max_depth: int = MAX_PARSE_DEPTH) -> Condition:
    """Convenience function to parse a single condition clause."""
    return ConditionParser(max_depth=max_depth).parse(text)

"""Strategy parser - top-level driver for DSL source text.

Source shape::

    strategy("MA Cross") {
        if price > sma(50) { buy(token=SOL, qty=1, sl=2%, tp=5%) }
        if rsi(14) > 70 { sell(SOL) }
    }

Each ``if`` block body is matched by a single pair of braces, so action
blocks cannot contain nested braces. Parsing stops at the first problem;
no partial strategy is ever returned.
"""

from __future__ import annotations

import logging
import re

from tradedsl.dsl.ast import ParseError, Rule, Strategy
from tradedsl.dsl.errors import DSLSyntaxError
from tradedsl.dsl.parser.actions import parse_actions
from tradedsl.dsl.parser.conditions import MAX_PARSE_DEPTH, ConditionParser

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"""strategy\s*\(\s*["']([^"']+)["']\s*\)""")
IF_BLOCK_PATTERN = re.compile(r"\bif\s+([^{]+)\s*\{([^}]+)\}")
IF_KEYWORD_PATTERN = re.compile(r"\bif\s+")

SNIPPET_LENGTH = 40


class StrategyParser:
    """Parses DSL source into a Strategy."""

    def __init__(self, max_depth: int = MAX_PARSE_DEPTH):
        self.condition_parser = ConditionParser(max_depth=max_depth)

    def parse(self, code: str) -> Strategy:
        """Parse strategy source text.

        Raises:
            DSLSyntaxError: On the first problem found
        """
        name_match = NAME_PATTERN.search(code)
        if not name_match:
            raise DSLSyntaxError("Strategy name not found")

        # Rule blocks are searched after the name call only, so a name
        # containing "if" is never read as a block
        body = code[name_match.end() :]
        strategy = Strategy(name=name_match.group(1), rules=self._parse_rules(body))
        logger.debug(f"Parsed strategy '{strategy.name}' with {len(strategy.rules)} rule(s)")
        return strategy

    def _parse_rules(self, code: str) -> list[Rule]:
        rules: list[Rule] = []
        covered: list[tuple[int, int]] = []

        for match in IF_BLOCK_PATTERN.finditer(code):
            covered.append(match.span())
            condition = self.condition_parser.parse(match.group(1))
            actions = parse_actions(match.group(2).strip())
            rules.append(Rule(condition=condition, actions=actions))

        # An "if" outside every complete block has no closing brace pair
        for keyword in IF_KEYWORD_PATTERN.finditer(code):
            start = keyword.start()
            if not any(lo <= start < hi for lo, hi in covered):
                snippet = code[start : start + SNIPPET_LENGTH].strip()
                raise DSLSyntaxError(f"Unmatched if block: {snippet}")

        return rules

    def validate(self, code: str) -> list[ParseError]:
        """Return ``[]`` when the source parses, else a single ParseError.

        This is not a multi-error linter: parsing stops at the first error.
        """
        try:
            self.parse(code)
        except DSLSyntaxError as e:
            return [ParseError(line=e.line, column=e.column, message=e.message)]
        return []

    def to_json(self, strategy: Strategy) -> str:
        """Canonical JSON for persistence and round-trip checks."""
        return strategy.to_json()

    def from_json(self, json_str: str) -> Strategy:
        """Rebuild a Strategy from ``to_json`` output."""
        return Strategy.from_json(json_str)


def create_parser(max_depth: int = MAX_PARSE_DEPTH) -> StrategyParser:
    """Create a StrategyParser."""
    return StrategyParser(max_depth=max_depth)

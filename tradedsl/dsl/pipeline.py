"""Strategy processing pipeline: parse, sandbox-validate, evaluate."""

from __future__ import annotations

import logging

from tradedsl.config import Settings
from tradedsl.dsl.ast import Strategy
from tradedsl.dsl.evaluator import EvaluationResult
from tradedsl.dsl.parser.strategy_parser import StrategyParser
from tradedsl.dsl.sandbox import Sandbox
from tradedsl.dsl.visitors.indicator_collector import required_history
from tradedsl.models.market import MarketData, Signal

logger = logging.getLogger(__name__)


class StrategyPipeline:
    """Runs strategy source through the parser, sandbox and evaluator.

    Pipeline order:
    1. Parse source text into a Strategy
    2. Validate the AST in the sandbox (depth, whitelist, content scan)
    3. Evaluate under the sandbox deadline
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.parser = StrategyParser(max_depth=self.settings.max_parse_depth)
        self.sandbox = Sandbox(
            max_depth=self.settings.sandbox_max_depth,
            timeout_ms=self.settings.sandbox_timeout_ms,
        )

    def load(self, code: str) -> Strategy:
        """Parse and sandbox-validate strategy source.

        Raises:
            DSLSyntaxError: If the source does not parse
            SandboxError: If the parsed AST is rejected
        """
        strategy = self.parser.parse(code)
        self.sandbox.validate(strategy)
        logger.info(f"Loaded strategy '{strategy.name}' ({len(strategy.rules)} rules)")
        return strategy

    def run(
        self,
        strategy: str | Strategy,
        signal: Signal,
        market_data: MarketData | None = None,
    ) -> EvaluationResult:
        """Evaluate source text or an already parsed Strategy.

        Raises:
            DSLSyntaxError: If source text does not parse
            SandboxError: If validation fails or evaluation times out
        """
        if isinstance(strategy, str):
            strategy = self.load(strategy)

        market_data = market_data or MarketData()
        needed = required_history(strategy)
        if len(market_data.prices) < needed:
            logger.warning(
                f"Strategy '{strategy.name}' needs {needed} prices for its indicators, "
                f"got {len(market_data.prices)}; fallback values will be used"
            )

        result = self.sandbox.evaluate(strategy, signal, market_data)
        if result.triggered:
            logger.info(
                f"Strategy '{strategy.name}' fired on rule {result.rule_index} "
                f"with {len(result.actions)} action(s)"
            )
        return result

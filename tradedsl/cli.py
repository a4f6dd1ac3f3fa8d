"""
CLI for checking and dry-running strategy DSL files.

Reads local files only; signals and market data are passed in as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from tradedsl.config import load_settings
from tradedsl.dsl.errors import DSLError
from tradedsl.dsl.pipeline import StrategyPipeline
from tradedsl.models.market import MarketData, Signal

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str | None:
    source_file = Path(path)
    if not source_file.exists():
        logger.error(f"Strategy file not found: {source_file}")
        return None
    return source_file.read_text()


def cmd_parse(args, pipeline: StrategyPipeline) -> int:
    """Parse a strategy and print its canonical JSON."""
    code = _read_source(args.file)
    if code is None:
        return 1

    try:
        strategy = pipeline.parser.parse(code)
    except DSLError as e:
        logger.error(f"Parse failed: {e}")
        return 1

    print(pipeline.parser.to_json(strategy))
    return 0


def cmd_validate(args, pipeline: StrategyPipeline) -> int:
    """Report parse errors, then sandbox problems."""
    code = _read_source(args.file)
    if code is None:
        return 1

    errors = pipeline.parser.validate(code)
    if errors:
        for error in errors:
            print(f"{args.file}:{error.line}:{error.column}: {error.message}")
        return 1

    try:
        pipeline.sandbox.validate(pipeline.parser.parse(code))
    except DSLError as e:
        print(f"{args.file}: {e}")
        return 1

    print(f"✅ {args.file} is valid")
    return 0


def cmd_evaluate(args, pipeline: StrategyPipeline) -> int:
    """Evaluate a strategy against a signal and market snapshot."""
    code = _read_source(args.file)
    if code is None:
        return 1

    try:
        signal = Signal.model_validate_json(args.signal)
        market_data = MarketData.model_validate_json(args.market)
    except ValidationError as e:
        logger.error(f"Invalid input JSON: {e}")
        return 1

    try:
        result = pipeline.run(code, signal, market_data)
    except DSLError as e:
        logger.error(f"Evaluation failed: {e}")
        return 1

    if not result.triggered:
        print("Strategy did not fire")
        return 0

    print(f"Strategy fired on rule {result.rule_index}")
    for action in result.actions:
        print(f"  {action.type}: {json.dumps(action.parameters)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(message)s")

    parser = argparse.ArgumentParser(description="Check and dry-run trading strategy DSL files")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Print a strategy's canonical JSON")
    parse_parser.add_argument("file", help="Strategy source file")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Check a strategy for errors")
    validate_parser.add_argument("file", help="Strategy source file")

    # Evaluate command
    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate a strategy once")
    evaluate_parser.add_argument("file", help="Strategy source file")
    evaluate_parser.add_argument(
        "--signal", default="{}", help='Signal JSON (e.g. \'{"text": "SOL to the moon"}\')'
    )
    evaluate_parser.add_argument(
        "--market", default="{}", help='Market data JSON (e.g. \'{"price": 101, "prices": [...]}\')'
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "parse": cmd_parse,
        "validate": cmd_validate,
        "evaluate": cmd_evaluate,
    }

    return commands[args.command](args, StrategyPipeline(settings))


if __name__ == "__main__":
    sys.exit(main())

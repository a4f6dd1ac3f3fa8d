"""Trading strategy DSL core."""

from .config import Settings, load_settings
from .dsl.pipeline import StrategyPipeline

__all__ = ["Settings", "StrategyPipeline", "load_settings"]

"""Visitors for Condition tree traversal."""

from .base import ConditionVisitor
from .indicator_collector import IndicatorCollector, required_history

__all__ = ["ConditionVisitor", "IndicatorCollector", "required_history"]

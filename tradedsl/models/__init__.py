"""Collaborator input models."""

from .market import MarketData, Signal

__all__ = ["MarketData", "Signal"]

"""Signal and market data supplied by ingestion and market-data collaborators.

The DSL core only reads these; it never fetches them.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Signal(BaseModel):
    """A classified trading signal.

    Only ``text`` is consulted by conditions (``tweet.contains``). The other
    fields are carried through for callers and logging.
    """

    text: str = ""
    id: str | None = None
    token: str | None = None
    sentiment: str | None = None  # "bullish", "bearish", "neutral"
    confidence: float | None = None


class MarketData(BaseModel):
    """Market snapshot for the signal's token."""

    price: float = 0.0
    volume: float = 0.0
    prices: list[float] = Field(default_factory=list)  # oldest -> newest

"""Exchange API clients."""

from funding_history.exchange.hyperliquid import HyperliquidClient

__all__ = ["HyperliquidClient"]

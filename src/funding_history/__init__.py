"""Hyperliquid funding-rate history downloader."""

__version__ = "0.1.0"

"""Funding history pagination."""

from funding_history.fetcher.history import (
    BoundaryPolicy,
    FetchResult,
    FetchState,
    HistoryFetcher,
    normalize_page,
)

__all__ = ["BoundaryPolicy", "FetchResult", "FetchState", "HistoryFetcher", "normalize_page"]

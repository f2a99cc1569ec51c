"""Paginated funding history fetch for a single asset.

The fundingHistory endpoint has no continuation token or total count. It
returns at most ``page_size`` rows with ``time >= startTime``, so the fetcher
re-queries from the timestamp of the last row it received until a page
comes back shorter than the cap.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from funding_history.config.schema import DEFAULT_PAGE_SIZE
from funding_history.exceptions import RemoteServiceError
from funding_history.logging import get_logger
from funding_history.models import FundingRecord
from funding_history.models.funding import dt_to_ms

log = get_logger(__name__)


class FundingHistorySource(Protocol):
    async def get_funding_history(
        self,
        coin: str,
        start_time_ms: int,
        end_time_ms: int | None = None,
    ) -> list[dict]: ...


class RecordSink(Protocol):
    def append(self, record: FundingRecord) -> None: ...

    def flush(self) -> None: ...


class FetchState(str, Enum):
    FETCHING = "fetching"
    DONE = "done"


class BoundaryPolicy(str, Enum):
    """What to do with the row that closes one page and opens the next."""

    KEEP = "keep"
    DEDUPE = "dedupe"


@dataclass
class FetchResult:
    asset: str
    start: datetime
    end: datetime
    pages: int
    records: int


def normalize_page(rows: list[dict]) -> list[FundingRecord]:
    """Convert a whole page before anything from it is emitted."""
    return [FundingRecord.from_raw(row) for row in rows]


class HistoryFetcher:
    """State machine driving the page loop for one asset.

    ``cursor`` is the only mutable field: the earliest timestamp not yet
    confirmed retrieved. Build a new instance per asset.
    """

    def __init__(
        self,
        client: FundingHistorySource,
        asset: str,
        start: datetime,
        page_size: int = DEFAULT_PAGE_SIZE,
        boundary: BoundaryPolicy | str = BoundaryPolicy.KEEP,
    ):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if start.tzinfo is None:
            raise ValueError("start must be timezone-aware")
        self.client = client
        self.asset = asset
        self.start = start
        self.page_size = page_size
        self.boundary = BoundaryPolicy(boundary)
        self.cursor = start
        self.state = FetchState.FETCHING
        self.pages = 0
        self.records = 0

    def _drop_boundary_repeat(self, page: list[FundingRecord], cursor: datetime) -> list[FundingRecord]:
        if self.boundary is BoundaryPolicy.KEEP or self.pages == 1:
            return page
        skip = 0
        while skip < len(page) and page[skip].timestamp == cursor:
            skip += 1
        return page[skip:]

    async def step(self, sink: RecordSink) -> FetchState:
        """Fetch one page, emit it, advance the cursor and return the new state."""
        if self.state is FetchState.DONE:
            return self.state

        cursor = self.cursor
        rows = await self.client.get_funding_history(self.asset, dt_to_ms(cursor))
        self.pages += 1
        n = len(rows)

        if n == 0:
            if self.pages == 1:
                log.info("empty_first_page", asset=self.asset, start=cursor.isoformat())
            self.state = FetchState.DONE
            return self.state

        page = normalize_page(rows)
        emitted = self._drop_boundary_repeat(page, cursor)
        for record in emitted:
            sink.append(record)
        sink.flush()
        self.records += len(emitted)

        self.cursor = page[-1].timestamp
        log.debug(
            "page_fetched",
            asset=self.asset,
            page=self.pages,
            rows=n,
            emitted=len(emitted),
            cursor=self.cursor.isoformat(),
        )

        if n < self.page_size:
            self.state = FetchState.DONE
        elif self.cursor <= cursor:
            raise RemoteServiceError(
                f"fundingHistory for {self.asset} returned a full page ending at "
                f"{self.cursor.isoformat()} without advancing past the cursor"
            )
        return self.state

    async def run(self, sink: RecordSink) -> FetchResult:
        """Drive the loop until a short or empty page ends it."""
        while self.state is FetchState.FETCHING:
            await self.step(sink)
        return FetchResult(
            asset=self.asset,
            start=self.start,
            end=self.cursor,
            pages=self.pages,
            records=self.records,
        )

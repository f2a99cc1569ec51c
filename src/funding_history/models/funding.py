"""Funding history record — normalized from Hyperliquid's fundingHistory rows."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict

from funding_history.exceptions import MalformedRecordError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Plain or exponent notation only: no whitespace, underscores, NaN or Infinity.
_DECIMAL_TEXT = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def ms_to_dt(ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime without float rounding."""
    return _EPOCH + timedelta(milliseconds=ms)


def dt_to_ms(dt: datetime) -> int:
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def _parse_decimal(raw: dict[str, Any], field: str) -> Decimal:
    value = raw.get(field)
    if value is None or isinstance(value, bool):
        raise MalformedRecordError(f"{field}: expected decimal text, got {value!r}")
    text = str(value)
    if not _DECIMAL_TEXT.fullmatch(text):
        raise MalformedRecordError(f"{field}: not a finite decimal: {value!r}")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise MalformedRecordError(f"{field}: not a decimal: {value!r}") from exc


def _parse_time(raw: dict[str, Any]) -> datetime:
    value = raw.get("time")
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedRecordError(f"time: expected epoch milliseconds, got {value!r}")
    try:
        return ms_to_dt(value)
    except OverflowError as exc:
        raise MalformedRecordError(f"time: out of range: {value!r}") from exc


class FundingRecord(BaseModel):
    """One funding interval for one asset."""

    model_config = ConfigDict(frozen=True)

    asset: str
    funding_rate: Decimal
    premium: Decimal
    timestamp: datetime

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> FundingRecord:
        """Normalize a raw service row.

        Expected shape:
            {"coin": "BTC", "fundingRate": "0.0000125",
             "premium": "-0.0003", "time": 1704067200000}

        Raises MalformedRecordError if any field is missing or unparseable.
        """
        if not isinstance(raw, dict):
            raise MalformedRecordError(f"expected a record object, got {type(raw).__name__}")
        coin = raw.get("coin")
        if not isinstance(coin, str) or not coin:
            raise MalformedRecordError(f"coin: expected asset identifier, got {coin!r}")
        return cls(
            asset=coin,
            funding_rate=_parse_decimal(raw, "fundingRate"),
            premium=_parse_decimal(raw, "premium"),
            timestamp=_parse_time(raw),
        )

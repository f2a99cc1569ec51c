"""Per-asset CSV output."""

from __future__ import annotations

import csv
import os
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import IO

from funding_history.exceptions import OutputError
from funding_history.models import FundingRecord

CSV_HEADER = ("asset", "funding_rate", "premium", "timestamp")

_UNSAFE_FILENAME_CHARS = re.compile(r"[/\\:]")


def sink_path(directory: str | Path, asset: str) -> Path:
    """Return ``<directory>/<asset>.csv`` with path separators in *asset* replaced."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", asset)
    if name in ("", ".", ".."):
        name = name.replace(".", "_") or "_"
    return Path(directory) / f"{name}.csv"


def format_decimal(value: Decimal) -> str:
    # Plain notation: str() switches to exponents for very small rates.
    return format(value, "f")


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CsvSink:
    """Writes one asset's FundingRecords to a CSV file.

    ``open()`` truncates any existing file and writes the header row.
    ``flush()`` pushes buffered rows to the OS and, with ``fsync`` on (the
    default), to disk. Usable as a context manager, which opens on entry
    and closes on exit. Filesystem failures surface as OutputError.
    """

    def __init__(self, path: str | Path, fsync: bool = True):
        self.path = Path(path)
        self.fsync = fsync
        self.records_written = 0
        self._file: IO[str] | None = None
        self._writer = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def _output_error(self, action: str, exc: OSError) -> OutputError:
        return OutputError(f"cannot {action} {self.path}: {exc}")

    def open(self) -> None:
        if self._file is not None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "w", newline="", encoding="utf-8")
            self._writer = csv.writer(self._file)
            self._writer.writerow(CSV_HEADER)
        except OSError as exc:
            raise self._output_error("open", exc) from exc
        self.records_written = 0

    def append(self, record: FundingRecord) -> None:
        if self._writer is None:
            raise RuntimeError(f"sink {self.path} is not open")
        try:
            self._writer.writerow((
                record.asset,
                format_decimal(record.funding_rate),
                format_decimal(record.premium),
                format_timestamp(record.timestamp),
            ))
        except OSError as exc:
            raise self._output_error("write", exc) from exc
        self.records_written += 1

    def extend(self, records: Iterable[FundingRecord]) -> None:
        for record in records:
            self.append(record)

    def flush(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
            if self.fsync:
                os.fsync(self._file.fileno())
        except OSError as exc:
            raise self._output_error("flush", exc) from exc

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self.flush()
        finally:
            f, self._file, self._writer = self._file, None, None
            try:
                f.close()
            except OSError as exc:
                raise self._output_error("close", exc) from exc

    def __enter__(self) -> CsvSink:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

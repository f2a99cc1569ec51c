"""Tests for the per-asset CSV sink."""

from __future__ import annotations

import csv
import os
from decimal import Decimal
from pathlib import Path

import pytest

from fakes import START, START_MS, make_row
from funding_history.exceptions import OutputError
from funding_history.models import FundingRecord
from funding_history.sink import CSV_HEADER, CsvSink, sink_path


def _rows(path: Path) -> list[list[str]]:
    with open(path, newline="") as f:
        return list(csv.reader(f))


class TestSinkPath:
    def test_named_after_asset(self, tmp_path):
        assert sink_path(tmp_path, "BTC") == tmp_path / "BTC.csv"

    def test_separators_replaced(self, tmp_path):
        assert sink_path(tmp_path, "PURR/USDC") == tmp_path / "PURR_USDC.csv"
        assert sink_path(tmp_path, "..") == tmp_path / "__.csv"

    def test_index_style_ids_kept(self, tmp_path):
        assert sink_path(tmp_path, "@107") == tmp_path / "@107.csv"


class TestCsvSink:
    def test_header_and_encoding(self, tmp_path):
        path = tmp_path / "BTC.csv"
        record = FundingRecord.from_raw(make_row(START_MS + 76, rate="0.00000001", premium="-0.0003"))
        with CsvSink(path) as sink:
            sink.append(record)

        assert _rows(path) == [
            list(CSV_HEADER),
            ["BTC", "0.00000001", "-0.0003", "2024-01-01T00:00:00.076Z"],
        ]

    def test_encoding_is_lossless(self, tmp_path):
        path = tmp_path / "ETH.csv"
        record = FundingRecord(
            asset="ETH",
            funding_rate=Decimal("-0.00022196"),
            premium=Decimal("0.0001"),
            timestamp=START,
        )
        with CsvSink(path) as sink:
            sink.append(record)

        _, row = _rows(path)
        assert Decimal(row[1]) == record.funding_rate
        assert Decimal(row[2]) == record.premium

    def test_open_truncates(self, tmp_path):
        path = tmp_path / "BTC.csv"
        path.write_text("stale,data\n" * 10)
        with CsvSink(path) as sink:
            sink.extend(FundingRecord.from_raw(make_row(START_MS + i)) for i in range(2))

        assert len(_rows(path)) == 3
        assert _rows(path)[0] == list(CSV_HEADER)

    def test_flush_makes_rows_visible(self, tmp_path):
        path = tmp_path / "BTC.csv"
        sink = CsvSink(path)
        sink.open()
        try:
            sink.append(FundingRecord.from_raw(make_row(START_MS)))
            sink.flush()
            assert len(_rows(path)) == 2
            assert sink.records_written == 1
        finally:
            sink.close()
        assert not sink.is_open

    def test_creates_output_directory(self, tmp_path):
        path = tmp_path / "out" / "nested" / "BTC.csv"
        with CsvSink(path):
            pass
        assert _rows(path) == [list(CSV_HEADER)]

    def test_append_requires_open(self, tmp_path):
        sink = CsvSink(tmp_path / "BTC.csv")
        with pytest.raises(RuntimeError):
            sink.append(FundingRecord.from_raw(make_row(START_MS)))

    def test_flush_syncs_to_disk(self, tmp_path, monkeypatch):
        synced = []
        monkeypatch.setattr(os, "fsync", lambda fd: synced.append(fd))
        with CsvSink(tmp_path / "BTC.csv") as sink:
            sink.append(FundingRecord.from_raw(make_row(START_MS)))
            sink.flush()
            assert len(synced) == 1
        # close() flushes once more
        assert len(synced) == 2

    def test_fsync_can_be_disabled(self, tmp_path, monkeypatch):
        synced = []
        monkeypatch.setattr(os, "fsync", lambda fd: synced.append(fd))
        with CsvSink(tmp_path / "BTC.csv", fsync=False) as sink:
            sink.flush()
        assert synced == []


class TestCsvSinkErrors:
    def test_directory_under_a_file(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        with pytest.raises(OutputError, match="cannot open"):
            CsvSink(blocker / "BTC.csv").open()

    def test_failed_flush(self, tmp_path, monkeypatch):
        def broken_fsync(fd):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "fsync", broken_fsync)
        sink = CsvSink(tmp_path / "BTC.csv")
        sink.open()
        with pytest.raises(OutputError, match="cannot flush"):
            sink.flush()
        with pytest.raises(OutputError):
            sink.close()
        assert not sink.is_open

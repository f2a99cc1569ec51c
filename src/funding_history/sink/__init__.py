"""Output sinks for funding records."""

from funding_history.sink.csv_sink import CSV_HEADER, CsvSink, sink_path

__all__ = ["CSV_HEADER", "CsvSink", "sink_path"]

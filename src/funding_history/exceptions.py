"""Exceptions for the funding history downloader.

Each concrete error carries the process exit status the runner uses when it
aborts on that error.
"""


class FundingHistoryError(Exception):
    """Base exception for all downloader errors."""

    exit_code = 1


class ConfigError(FundingHistoryError):
    """Raised when the configuration file is missing, unreadable or malformed."""

    exit_code = 2


class RemoteServiceError(FundingHistoryError):
    """Raised on transport failures, non-success responses or a bad response envelope."""

    exit_code = 3


class MalformedRecordError(FundingHistoryError):
    """Raised when a funding record's numeric or time fields cannot be parsed."""

    exit_code = 4


class OutputError(FundingHistoryError):
    """Raised when an output file cannot be created, written or flushed."""

    exit_code = 5

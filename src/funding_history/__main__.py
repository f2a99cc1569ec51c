"""Allow running the downloader as: python -m funding_history [--config path]."""

from funding_history.runner import cli

cli()

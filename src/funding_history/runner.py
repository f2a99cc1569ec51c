"""Downloader entry point — one sequential history fetch per configured asset.

Run: python -m funding_history [--config config.json] [--testnet]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

import structlog

from funding_history.config import AppConfig, load_config
from funding_history.exceptions import ConfigError, FundingHistoryError
from funding_history.exchange.hyperliquid import HyperliquidClient
from funding_history.fetcher import FetchResult, HistoryFetcher
from funding_history.fetcher.history import FundingHistorySource
from funding_history.logging import get_logger, setup_logging
from funding_history.sink import CsvSink, sink_path

log = get_logger(__name__)

EXIT_OK = 0


def start_of_year(now: datetime | None = None) -> datetime:
    """Midnight UTC on January 1st of *now*'s year (default: the current year)."""
    now = now or datetime.now(timezone.utc)
    return datetime(now.astimezone(timezone.utc).year, 1, 1, tzinfo=timezone.utc)


def output_paths(config: AppConfig) -> dict[str, Path]:
    """Map each asset to its CSV path, refusing assets that share a file."""
    paths: dict[str, Path] = {}
    owners: dict[Path, str] = {}
    for asset in config.assets:
        path = sink_path(config.output.directory, asset)
        if path in owners:
            raise ConfigError(
                f"assets {owners[path]!r} and {asset!r} would both be written to {path}"
            )
        owners[path] = asset
        paths[asset] = path
    return paths


def build_client(config: AppConfig) -> HyperliquidClient:
    hl = config.hyperliquid
    return HyperliquidClient(
        base_url=hl.api_url,
        timeout_s=hl.timeout_s,
        max_retries=hl.max_retries,
        backoff_base_s=hl.backoff_base_s,
        backoff_max_s=hl.backoff_max_s,
    )


async def fetch_asset(
    client: FundingHistorySource,
    config: AppConfig,
    asset: str,
    start: datetime,
    path: Path | None = None,
) -> FetchResult:
    """Fetch one asset's full history into *path* (default ``<output.directory>/<asset>.csv``)."""
    print(f"Getting funding history for: {asset}", flush=True)
    print(f"Start: {start.isoformat()}", flush=True)

    fetcher = HistoryFetcher(
        client,
        asset,
        start,
        page_size=config.hyperliquid.page_size,
        boundary=config.fetch.boundary,
    )
    path = path or sink_path(config.output.directory, asset)
    with CsvSink(path) as sink:
        result = await fetcher.run(sink)

    print(f"End: {result.end.isoformat()}", flush=True)
    log.info(
        "asset_complete",
        pages=result.pages,
        records=result.records,
        path=str(path),
    )
    return result


async def run(
    config: AppConfig,
    client: FundingHistorySource | None = None,
    now: datetime | None = None,
) -> int:
    """Fetch every configured asset in order and return the process exit status.

    With ``fetch.continue_on_error`` unset the first error propagates and
    halts the run. Otherwise failing assets are logged and skipped, and the
    status of the first failure is returned once all assets were attempted.
    """
    paths = output_paths(config)

    own_client: HyperliquidClient | None = None
    if client is None:
        client = own_client = build_client(config)
    start = start_of_year(now)

    log.info(
        "download_started",
        assets=config.assets,
        start=start.isoformat(),
        network=config.hyperliquid.network,
    )

    exit_code = EXIT_OK
    try:
        for asset in config.assets:
            with structlog.contextvars.bound_contextvars(asset=asset):
                try:
                    await fetch_asset(client, config, asset, start, paths[asset])
                except FundingHistoryError as exc:
                    if not config.fetch.continue_on_error:
                        raise
                    log.error("asset_failed", error=str(exc), kind=type(exc).__name__)
                    if exit_code == EXIT_OK:
                        exit_code = exc.exit_code
    finally:
        if own_client is not None:
            await own_client.close()

    log.info("download_finished", assets=len(config.assets), exit_code=exit_code)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Download Hyperliquid funding rate history")
    parser.add_argument("--config", default="config.json", help="Path to config file")
    parser.add_argument("--testnet", action="store_true", help="Query the testnet API")
    parser.add_argument("--output-dir", default=None, help="Directory for the per-asset CSV files")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        setup_logging()
        log.error("config_error", error=str(exc))
        return exc.exit_code

    if args.testnet:
        config.hyperliquid.network = "testnet"
    if args.output_dir:
        config.output.directory = args.output_dir

    setup_logging(level=config.logging.level, log_format=config.logging.format)

    try:
        return asyncio.run(run(config))
    except FundingHistoryError as exc:
        log.error("download_aborted", error=str(exc), kind=type(exc).__name__)
        return exc.exit_code


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()

"""Configuration schema — Pydantic models for config.json."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

MAINNET_API_URL = "https://api.hyperliquid.xyz"
TESTNET_API_URL = "https://api.hyperliquid-testnet.xyz"

# Largest page the fundingHistory endpoint returns per request.
DEFAULT_PAGE_SIZE = 500


class HyperliquidConfig(BaseModel):
    network: Literal["mainnet", "testnet"] = "mainnet"
    base_url: str | None = None
    timeout_s: float = Field(default=15.0, gt=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    max_retries: int = Field(default=0, ge=0)
    backoff_base_s: float = Field(default=1.0, ge=0)
    backoff_max_s: float = Field(default=30.0, ge=0)

    @property
    def api_url(self) -> str:
        """The explicit base_url if set, else the URL of the selected network."""
        if self.base_url:
            return self.base_url
        return TESTNET_API_URL if self.network == "testnet" else MAINNET_API_URL


class FetchConfig(BaseModel):
    # "keep" writes the page-boundary record twice, "dedupe" drops the repeat.
    boundary: Literal["keep", "dedupe"] = "keep"
    continue_on_error: bool = False


class OutputConfig(BaseModel):
    directory: str = "."


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "console"


class AppConfig(BaseModel):
    assets: list[str]
    hyperliquid: HyperliquidConfig = Field(default_factory=HyperliquidConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("assets")
    @classmethod
    def _assets_unique(cls, assets: list[str]) -> list[str]:
        seen: set[str] = set()
        for asset in assets:
            if asset in seen:
                raise ValueError(f"asset {asset!r} is listed more than once")
            seen.add(asset)
        return assets

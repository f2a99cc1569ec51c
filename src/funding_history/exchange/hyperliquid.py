"""Hyperliquid info API client — funding history over REST."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from funding_history.config.schema import MAINNET_API_URL
from funding_history.exceptions import RemoteServiceError
from funding_history.logging import get_logger

log = get_logger(__name__)

# Status codes worth another attempt when retries are enabled.
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class HyperliquidClient:
    """Async client for Hyperliquid's ``/info`` endpoint.

    Every failure surfaces as RemoteServiceError. With the default
    ``max_retries=0`` the first failure is raised immediately; otherwise
    transport errors and retryable status codes are retried with
    exponential backoff.
    """

    def __init__(
        self,
        base_url: str = MAINNET_API_URL,
        timeout_s: float = 15.0,
        max_retries: int = 0,
        backoff_base_s: float = 1.0,
        backoff_max_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.backoff_base_s = backoff_base_s
        self.backoff_max_s = backoff_max_s
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def __aenter__(self) -> HyperliquidClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number *attempt* (0-based)."""
        return min(self.backoff_max_s, self.backoff_base_s * (2**attempt))

    # --- REST ---

    async def _post_info_once(self, payload: dict) -> Any:
        http = await self._get_http()
        try:
            resp = await http.post(f"{self.base_url}/info", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteServiceError(
                f"{payload.get('type')} request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"{payload.get('type')} request failed: {exc!r}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteServiceError(f"{payload.get('type')} response is not JSON") from exc

    @staticmethod
    def _is_retryable(exc: RemoteServiceError) -> bool:
        cause = exc.__cause__
        if isinstance(cause, httpx.HTTPStatusError):
            return cause.response.status_code in _RETRYABLE_STATUS
        return isinstance(cause, httpx.TransportError)

    async def _post_info(self, payload: dict) -> Any:
        attempt = 0
        while True:
            try:
                return await self._post_info_once(payload)
            except RemoteServiceError as exc:
                if attempt >= self.max_retries or not self._is_retryable(exc):
                    raise
                delay = self.backoff_delay(attempt)
                log.warning(
                    "info_request_retry",
                    request_type=payload.get("type"),
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    delay_s=delay,
                    error=str(exc),
                )
                attempt += 1
                await asyncio.sleep(delay)

    async def get_funding_history(
        self,
        coin: str,
        start_time_ms: int,
        end_time_ms: int | None = None,
    ) -> list[dict]:
        """Fetch one page of historical funding rates, oldest first.

        Returns raw row dicts with keys: coin, fundingRate, premium, time.
        Omitting *end_time_ms* lets the server default to "now".
        """
        payload: dict[str, Any] = {
            "type": "fundingHistory",
            "coin": coin,
            "startTime": start_time_ms,
        }
        if end_time_ms is not None:
            payload["endTime"] = end_time_ms

        data = await self._post_info(payload)
        if not isinstance(data, list):
            raise RemoteServiceError(
                f"fundingHistory for {coin}: expected a list, got {type(data).__name__}"
            )
        return data

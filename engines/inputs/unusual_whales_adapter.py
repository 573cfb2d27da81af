"""Unusual Whales spot-exposure adapter with Bearer auth."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from config.credentials import get_unusual_whales_token
from engines.errors import AuthError, FetchError, RateLimitError
from engines.inputs.parsing import (
    extract_records,
    parse_number_or,
    parse_snapshot,
    parse_strike_levels,
)
from schemas.core_schemas import MarketSnapshot, StrikeLevel


@dataclass
class UnusualWhalesConfig:
    """Runtime configuration for the Unusual Whales adapter."""

    base_url: str
    timeout: float
    token: str

    @classmethod
    def from_env(
        cls,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "UnusualWhalesConfig":
        """Build configuration using environment variables and optional overrides."""

        api_token = get_unusual_whales_token(token)

        if not api_token:
            raise AuthError("Unusual Whales API token is not configured", code="AUTH_MISSING")

        resolved_url = (base_url or os.getenv("UNUSUAL_WHALES_BASE_URL", "https://api.unusualwhales.com")).rstrip("/")
        resolved_timeout = timeout if timeout is not None else float(os.getenv("UNUSUAL_WHALES_TIMEOUT", "10.0"))

        return cls(base_url=resolved_url, timeout=resolved_timeout, token=api_token)


class UnusualWhalesSpotExposureAdapter:
    """Snapshot source backed by the Unusual Whales API.

    Endpoints:
    - /api/stock/{ticker}/spot-exposures          (time series of aggregate exposure)
    - /api/stock/{ticker}/spot-exposures/strike   (per-strike table)

    HTTP failures are mapped onto the engine error taxonomy: 401/403 raise
    AuthError, 429 raises RateLimitError, anything else non-2xx or a transport
    failure raises FetchError.
    """

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = UnusualWhalesConfig.from_env(token, base_url=base_url, timeout=timeout)
        self.base_url = self.config.base_url
        self.timeout = self.config.timeout
        self.headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.token}",
        }
        self.client = client or httpx.AsyncClient(headers=self.headers, timeout=self.timeout)
        self._last_price: Optional[float] = None
        logger.info(
            f"UnusualWhalesSpotExposureAdapter initialized (base_url={self.base_url}, timeout={self.timeout:.1f}s)"
        )

    async def fetch(self, ticker: str) -> Optional[MarketSnapshot]:
        """Latest snapshot for ``ticker``, or None when the provider returns no rows."""
        payload = await self._request(f"/api/stock/{ticker}/spot-exposures")
        records = extract_records(payload)
        if not records:
            logger.info(f"Unusual Whales returned no spot exposures for {ticker}")
            return None

        strikes = await self.fetch_strikes(ticker)
        snapshot = parse_snapshot(records, ticker, strikes=strikes, previous_price=self._last_price)
        if snapshot is not None:
            self._last_price = snapshot.price
        return snapshot

    async def fetch_strikes(self, ticker: str) -> List[StrikeLevel]:
        """Per-strike table; a missing table degrades to an empty list."""
        try:
            payload = await self._request(f"/api/stock/{ticker}/spot-exposures/strike")
        except FetchError as error:
            logger.warning(f"Could not fetch strike table for {ticker}: {error}")
            return []
        return parse_strike_levels(extract_records(payload))

    async def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self.client.get(url, params=params, headers=self.headers)
        except httpx.TimeoutException as error:
            raise FetchError(f"Unusual Whales request timed out: {endpoint}", status=408, code="TIMEOUT") from error
        except httpx.HTTPError as error:
            raise FetchError(f"Unusual Whales transport error on {endpoint}: {error}") from error

        status = response.status_code
        if status in {401, 403}:
            logger.error(f"Unusual Whales rejected credentials ({status})")
            raise AuthError("Unusual Whales API token is invalid or expired", status=status)
        if status == 429:
            retry_after = parse_number_or(response.headers.get("Retry-After"), fallback=0.0) or None
            logger.warning("Rate limited by Unusual Whales API")
            raise RateLimitError("Unusual Whales rate limit hit, slow down", retry_after=retry_after)
        if status < 200 or status >= 300:
            detail = self._extract_detail(response)
            raise FetchError(f"Unusual Whales server error {status}: {detail[:100]}", status=status)

        try:
            return response.json()
        except ValueError as error:
            raise FetchError(f"Unusual Whales returned invalid JSON for {endpoint}", status=status) from error

    @staticmethod
    def _extract_detail(response: Optional[httpx.Response]) -> str:
        if response is None:
            return ""

        try:
            payload = response.json()
            if isinstance(payload, dict):
                for key in ("detail", "message", "error"):
                    if payload.get(key):
                        return str(payload[key])
            return str(payload)[:500]
        except ValueError:
            return response.text[:500] if response.text else ""

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "UnusualWhalesSpotExposureAdapter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

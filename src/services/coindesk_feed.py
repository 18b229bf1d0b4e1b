from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from config import config
from domain.base_types import FeedId
from domain.pricing import PriceFeedService, PriceReading

from .price_types import PriceFeedError, to_fixed_point

logger = logging.getLogger(__name__)


class CoinDeskAPIError(PriceFeedError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass(frozen=True)
class SpotCandle:
    timestamp: datetime
    market: str
    instrument: str
    close: Decimal


class _CoinDeskClient:
    def __init__(
        self,
        base_url: str = "https://data-api.coindesk.com",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 1,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

        retry = Retry(
            total=retry_attempts,
            backoff_factor=retry_backoff_seconds,
            status_forcelist={429},
            allowed_methods={"GET"},
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def get_latest_minute(self, *, market: str, instrument: str, to_ts: int) -> list[SpotCandle]:
        if not market:
            raise ValueError("market must be provided")
        if not instrument:
            raise ValueError("instrument must be provided")

        params = {
            "market": market,
            "instrument": instrument,
            "limit": 1,
            "aggregate": 1,
            "fill": "true",
            "response_format": "JSON",
            "to_ts": to_ts,
        }
        payload = self._request("GET", "/spot/v1/historical/minutes", params=params)
        entries = payload.get("Data") or []
        return [self._parse_candle(entry) for entry in entries]

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        api_key = config().coindesk_api_key
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        try:
            response = self._session.request(method, url, params=params, timeout=self.timeout, headers=headers)
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            message, payload_err = self._extract_error(resp)
            raise CoinDeskAPIError(message, status_code=resp.status_code, payload=payload_err) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise CoinDeskAPIError("CoinDesk API request failed", status_code=status_code) from exc

        try:
            payload: dict[str, Any] = response.json()
        except ValueError as exc:
            raise CoinDeskAPIError("CoinDesk API returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload, dict):
            raise CoinDeskAPIError("CoinDesk API returned unexpected payload type", payload=payload)

        err = payload.get("Err")
        if isinstance(err, dict) and err.get("message"):
            raise CoinDeskAPIError(err["message"], status_code=response.status_code, payload=payload)

        return payload

    def _parse_candle(self, entry: dict[str, Any]) -> SpotCandle:
        ts_raw = entry.get("TIMESTAMP")
        close_raw = entry.get("CLOSE")
        if ts_raw is None or close_raw is None:
            raise CoinDeskAPIError("CoinDesk histo entry missing TIMESTAMP or CLOSE field", payload=entry)

        return SpotCandle(
            timestamp=datetime.fromtimestamp(int(ts_raw), tz=timezone.utc),
            market=str(entry.get("MARKET", "")),
            instrument=str(entry.get("INSTRUMENT", "")),
            close=Decimal(str(close_raw)),
        )

    @staticmethod
    def _extract_error(response: Response) -> tuple[str, Any]:
        message = "CoinDesk API request failed"
        try:
            payload = response.json()
            err = payload.get("Err") if isinstance(payload, dict) else None
            if isinstance(err, dict) and err.get("message"):
                message = err["message"]
        except ValueError:
            payload = response.text
        return message, payload


class CoinDeskPriceFeed(PriceFeedService):
    """Price feed backed by the latest CoinDesk minute candle.

    Feed ids are instrument names such as ``ETH-USD``; the candle close is
    returned with 8 implied decimals and the candle start as ``updated_at``.
    """

    def __init__(
        self,
        *,
        market: str = "coinbase",
        client: _CoinDeskClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not market:
            msg = "market must be provided"
            raise ValueError(msg)
        self.client = client or _CoinDeskClient()
        self.market = market
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def latest_price(self, feed_id: FeedId) -> PriceReading:
        instrument = feed_id.upper()
        to_ts = int(self._clock().timestamp())
        candles = self.client.get_latest_minute(market=self.market, instrument=instrument, to_ts=to_ts)
        if not candles:
            msg = f"No price data returned for {instrument} on {self.market}"
            raise CoinDeskAPIError(msg)

        candle = max(candles, key=lambda entry: entry.timestamp)
        price = to_fixed_point(candle.close)
        logger.debug("CoinDesk %s/%s close=%s at %s", self.market, instrument, candle.close, candle.timestamp)
        return PriceReading(feed_id=feed_id, price=price, updated_at=candle.timestamp)


__all__ = ["CoinDeskAPIError", "CoinDeskPriceFeed", "SpotCandle"]

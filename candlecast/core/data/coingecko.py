"""CoinGecko public API client.

The API returns closes only, so open/high/low are approximated around the
close with small random offsets.
"""
import datetime as dt
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional

import numpy as np

from candlecast.core.config import DataConfig
from candlecast.core.errors import DataFetchError
from candlecast.core.log import get_logger
from candlecast.core.types import Candle
from candlecast.core.utils import ensure_rng, round_price, uniform

logger = get_logger(__name__)


def _get_json(url: str, config: DataConfig) -> Dict[str, Any]:
    last_exc: Optional[Exception] = None
    for attempt in range(config.max_retries + 1):
        try:
            with urllib.request.urlopen(url, timeout=config.request_timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            last_exc = exc
            logger.warning("coingecko_request_failed", url=url, attempt=attempt + 1, error=str(exc))
            if attempt < config.max_retries and config.retry_backoff:
                time.sleep(config.retry_backoff * (2 ** attempt))
    raise DataFetchError(f"CoinGecko request failed: {url}") from last_exc


def _approximate(
    close: float,
    date: dt.datetime,
    volume: int,
    rng: np.random.Generator,
    is_live: bool = False,
) -> Candle:
    open_ = close * (0.99 + uniform(rng, 0.0, 0.02))
    high = max(open_, close) * (1.0 + uniform(rng, 0.0, 0.01))
    low = min(open_, close) * (0.99 - uniform(rng, 0.0, 0.01))
    return Candle(
        date=date,
        open=round_price(open_),
        high=round_price(high),
        low=round_price(low),
        close=round_price(close),
        volume=max(0, int(volume)),
        is_live=is_live,
    )


def parse_market_chart(payload: Dict[str, Any], rng: Optional[np.random.Generator] = None) -> List[Candle]:
    if not isinstance(payload, dict):
        raise DataFetchError(f"Invalid market_chart response: expected an object, got {type(payload).__name__}")
    prices = payload.get("prices")
    volumes = payload.get("total_volumes")
    if not prices or not volumes:
        raise DataFetchError("Invalid market_chart response: missing prices or volumes")
    rng = ensure_rng(rng)

    candles: List[Candle] = []
    last_date: Optional[dt.datetime] = None
    for i, item in enumerate(prices):
        try:
            ts_ms, close = float(item[0]), float(item[1])
            volume = float(volumes[i][1]) if i < len(volumes) else 0.0
        except (TypeError, ValueError, IndexError) as exc:
            raise DataFetchError(f"Malformed market_chart row {i}: {item!r}") from exc
        date = dt.datetime.fromtimestamp(ts_ms / 1000.0)
        # the last point is an intraday sample that can share a day with the previous one
        if last_date is not None and date <= last_date:
            continue
        candles.append(_approximate(close, date, int(volume), rng))
        last_date = date
    return candles


def fetch_historical(
    config: DataConfig,
    days: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[Candle]:
    params = {"vs_currency": config.vs_currency, "days": str(days or config.days), "interval": "daily"}
    url = f"{config.coingecko_url}/coins/{config.coin_id}/market_chart?" + urllib.parse.urlencode(params)
    candles = parse_market_chart(_get_json(url, config), rng)
    logger.info("coingecko_history_loaded", candles=len(candles))
    return candles


def fetch_current(
    config: DataConfig,
    rng: Optional[np.random.Generator] = None,
    now: Optional[dt.datetime] = None,
) -> Candle:
    params = {"ids": config.coin_id, "vs_currencies": config.vs_currency}
    url = f"{config.coingecko_url}/simple/price?" + urllib.parse.urlencode(params)
    payload = _get_json(url, config)
    try:
        close = float(payload[config.coin_id][config.vs_currency])
    except (KeyError, TypeError, ValueError) as exc:
        raise DataFetchError(f"Invalid simple/price response: {payload!r}") from exc
    return _approximate(close, now or dt.datetime.now(), 0, ensure_rng(rng), is_live=True)

import datetime as dt
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from candlecast.core.config import Config
from candlecast.core.data.coingecko import fetch_current, fetch_historical
from candlecast.core.error_log import ErrorLog
from candlecast.core.errors import DataFetchError
from candlecast.core.generator import CandleGenerator
from candlecast.core.log import get_logger
from candlecast.core.types import Candle

logger = get_logger(__name__)


@dataclass(frozen=True)
class MarketData:
    history: List[Candle]
    current: Candle
    source: str


def build_generator(config: Config, rng: Optional[np.random.Generator] = None) -> CandleGenerator:
    return CandleGenerator(
        base_price=config.generator.base_price,
        volatility=config.generator.volatility,
        base_volume=config.generator.base_volume,
        rng=rng,
    )


def load_market(
    config: Config,
    generator: CandleGenerator,
    error_log: Optional[ErrorLog] = None,
    rng: Optional[np.random.Generator] = None,
    now: Optional[dt.datetime] = None,
) -> MarketData:
    """Load live data when enabled, falling back to synthetic candles."""
    if config.data.use_live:
        try:
            history = fetch_historical(config.data, rng=rng)
            current = fetch_current(config.data, rng=rng, now=now)
            if history:
                return MarketData(history=history, current=current, source="coingecko")
            raise DataFetchError("CoinGecko returned an empty history")
        except DataFetchError as exc:
            logger.warning("live_data_unavailable", error=str(exc))
            if error_log is not None:
                error_log.record(exc, source="coingecko")

    history = generator.historical_series(config.generator.history_days, end=now)
    current = generator.current_candle(history, now=now)
    logger.info("synthetic_data_generated", candles=len(history), close=current.close)
    return MarketData(history=history, current=current, source="synthetic")

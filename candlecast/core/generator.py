import datetime as dt
import math
from typing import List, Optional, Sequence

import numpy as np

from candlecast.core.errors import InvalidInputError
from candlecast.core.types import Candle
from candlecast.core.utils import ensure_rng, is_weekend, round_price, uniform

SESSION_MINUTES = 16 * 60
INTRADAY_VOLATILITY = 0.015
LIVE_TICK_CHANGE = 0.001


class CandleGenerator:
    """Synthetic daily candles: a random walk with a slow sine bias.

    The generator holds only its parameters and random source; every call
    returns new candles and never edits ones handed out earlier.
    """

    def __init__(
        self,
        base_price: float = 150.0,
        volatility: float = 0.02,
        base_volume: int = 1_000_000,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if base_price <= 0:
            raise InvalidInputError(f"base_price must be positive, got {base_price}")
        self.base_price = base_price
        self.volatility = volatility
        self.base_volume = base_volume
        self._rng = ensure_rng(rng)

    def historical_series(self, days: int = 90, end: Optional[dt.datetime] = None) -> List[Candle]:
        if days < 0:
            raise InvalidInputError(f"days must be non-negative, got {days}")
        end = end or dt.datetime.now()
        start = (end - dt.timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)
        rng = self._rng

        series: List[Candle] = []
        price = self.base_price
        for i in range(days):
            date = start + dt.timedelta(days=i)
            if is_weekend(date):
                continue

            open_ = price
            trend_factor = math.sin(i / 20.0) * 0.005
            random_factor = uniform(rng, -0.5, 0.5) * self.volatility

            daily_range = price * (0.01 + uniform(rng, 0.0, 0.03))
            high = open_ + daily_range * (0.3 + uniform(rng, 0.0, 0.7))
            low = open_ - daily_range * (0.3 + uniform(rng, 0.0, 0.7))
            close = open_ + open_ * (trend_factor + random_factor)

            price_change = abs(close - open_) / open_
            volume_mult = 0.8 + price_change * 10.0 + uniform(rng, 0.0, 0.4)

            series.append(
                Candle(
                    date=date,
                    open=round_price(open_),
                    high=round_price(max(open_, close, high)),
                    low=round_price(min(open_, close, low)),
                    close=round_price(close),
                    volume=int(self.base_volume * volume_mult),
                )
            )
            price = close
        return series

    def current_candle(
        self,
        history: Optional[Sequence[Candle]] = None,
        now: Optional[dt.datetime] = None,
    ) -> Candle:
        now = now or dt.datetime.now()
        rng = self._rng
        open_ = history[-1].close if history else self.base_price

        time_progress = min(1.0, (now.hour * 60 + now.minute) / SESSION_MINUTES)
        current = open_ + open_ * uniform(rng, -0.5, 0.5) * INTRADAY_VOLATILITY

        day_range = open_ * (0.005 + uniform(rng, 0.0, 0.02))
        high = max(open_, current) + day_range * uniform(rng)
        low = min(open_, current) - day_range * uniform(rng)
        volume = int(self.base_volume * (0.3 + time_progress * 0.7) * (0.8 + uniform(rng, 0.0, 0.4)))

        return Candle(
            date=now,
            open=round_price(open_),
            high=round_price(high),
            low=round_price(low),
            close=round_price(current),
            volume=volume,
            is_live=True,
        )

    def update_candle(self, prev: Optional[Candle], now: Optional[dt.datetime] = None) -> Candle:
        """Return a new live candle with a small move applied to ``prev``."""
        if prev is None:
            raise InvalidInputError("previous candle is required for a live update")
        change = uniform(self._rng, -0.5, 0.5) * LIVE_TICK_CHANGE
        close = round_price(prev.close * (1.0 + change))
        return Candle(
            date=now or prev.date,
            open=prev.open,
            high=max(prev.high, close),
            low=min(prev.low, close),
            close=close,
            volume=prev.volume + int(self.base_volume * uniform(self._rng, 0.0, 0.01)),
            is_live=True,
        )

import datetime as dt
from typing import Optional

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def safe_div(num: float, denom: float, default: float = 0.0) -> float:
    if denom == 0:
        return default
    return num / denom


def is_weekend(date: dt.datetime) -> bool:
    return date.weekday() >= 5


def next_trading_day(date: dt.datetime, days: int = 1) -> dt.datetime:
    """Advance ``days`` calendar days, then roll forward past Saturday/Sunday."""
    out = date + dt.timedelta(days=days)
    while is_weekend(out):
        out += dt.timedelta(days=1)
    return out


def round_price(value: float) -> float:
    return round(float(value), 2)


def ensure_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    if rng is None:
        return np.random.default_rng()
    return rng


def uniform(rng: np.random.Generator, low: float = 0.0, high: float = 1.0) -> float:
    return float(rng.uniform(low, high))

from __future__ import annotations

from typing import Sequence

import numpy as np

from candlecast.core.types import Candle, IndicatorSnapshot
from candlecast.core.utils import safe_div

TREND_MIN_POINTS = 10
MOMENTUM_MIN_POINTS = 5
MOMENTUM_WINDOW = 5


def closes(series: Sequence[Candle]) -> np.ndarray:
    return np.array([c.close for c in series], dtype=np.float64)


def trend_strength(series: Sequence[Candle]) -> float:
    """Fractional change between the mean close of the second and first half."""
    if len(series) < TREND_MIN_POINTS:
        return 0.0
    prices = closes(series)
    mid = prices.size // 2
    first_avg = float(np.mean(prices[:mid]))
    second_avg = float(np.mean(prices[mid:]))
    return safe_div(second_avg - first_avg, first_avg)


def returns(prices: np.ndarray) -> np.ndarray:
    if prices.size < 2:
        return np.array([], dtype=np.float64)
    prev = prices[:-1]
    denom = np.where(prev != 0.0, prev, 1.0)
    return np.where(prev != 0.0, np.diff(prices) / denom, 0.0)


def volatility(series: Sequence[Candle]) -> float:
    """Population standard deviation of close-to-close returns."""
    if len(series) < 2:
        return 0.0
    return float(np.std(returns(closes(series))))


def momentum(series: Sequence[Candle]) -> float:
    """Mean of the last 5 closes against the mean of the 5 before them."""
    if len(series) < MOMENTUM_MIN_POINTS:
        return 0.0
    prices = closes(series)
    recent = prices[-MOMENTUM_WINDOW:]
    older = prices[-2 * MOMENTUM_WINDOW:-MOMENTUM_WINDOW]
    if older.size == 0:
        return 0.0
    recent_avg = float(np.mean(recent))
    older_avg = float(np.mean(older))
    return safe_div(recent_avg - older_avg, older_avg)


def rsi(series: Sequence[Candle], period: int = 14) -> float:
    if period <= 0 or len(series) < period + 1:
        return 50.0
    deltas = np.diff(closes(series))
    gains = np.clip(deltas, 0.0, None)
    losses = -np.clip(deltas, None, 0.0)
    avg_gain = float(np.mean(gains[-period:]))
    avg_loss = float(np.mean(losses[-period:]))
    if avg_loss == 0.0:
        # no losses in the window
        return 100.0 if avg_gain > 0.0 else 50.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def snapshot(series: Sequence[Candle], rsi_period: int = 14) -> IndicatorSnapshot:
    return IndicatorSnapshot(
        trend_strength=trend_strength(series),
        volatility=volatility(series),
        momentum=momentum(series),
        rsi=rsi(series, rsi_period),
    )

import datetime as dt
from typing import List, Optional, Sequence

import numpy as np

from candlecast.core.errors import InvalidInputError
from candlecast.core.scenarios import build_scenarios
from candlecast.core.types import (
    BEARISH,
    BULLISH,
    SIDEWAYS,
    Candle,
    PredictionCandle,
    PredictionMetadata,
    PredictionSet,
    ScenarioParams,
    ScenarioPrediction,
)
from candlecast.core.utils import ensure_rng, next_trading_day, round_price, safe_div, uniform

DEFAULT_HORIZON = 5
DEFAULT_BASE_VOLUME = 1_000_000
CONFIDENCE_DECAY = 0.3


def horizon_label(horizon: int) -> str:
    return f"{horizon}-day outlook"


def synthesize(
    current: Optional[Candle],
    params: ScenarioParams,
    horizon: int = DEFAULT_HORIZON,
    rng: Optional[np.random.Generator] = None,
    scenario: str = BULLISH,
    base_volume: int = DEFAULT_BASE_VOLUME,
) -> ScenarioPrediction:
    """Project ``horizon`` weekday candles from ``current`` toward the target price.

    Each close converges linearly on ``params.target_price`` plus noise scaled
    by ``params.strength``; high and low wrap open/close so every candle keeps
    ``low <= min(open, close) <= max(open, close) <= high``. Confidence decays
    linearly to 70% of the base at the last step while probability stays fixed.
    """
    if current is None:
        raise InvalidInputError("current candle is required for path synthesis")
    if horizon < 1:
        raise InvalidInputError(f"horizon must be at least 1, got {horizon}")
    if params.strength < 0:
        raise InvalidInputError(f"strength must be non-negative, got {params.strength}")
    if params.target_price <= 0:
        raise InvalidInputError(f"target_price must be positive, got {params.target_price}")
    rng = ensure_rng(rng)

    candles: List[PredictionCandle] = []
    start_close = current.close
    price = start_close
    date = current.date

    for i in range(1, horizon + 1):
        date = next_trading_day(date)

        progress = i / horizon
        target_movement = (params.target_price - start_close) * progress
        noise = uniform(rng, -0.5, 0.5) * price * 0.01 * params.strength

        open_ = price
        close = start_close + target_movement + noise

        daily_range = price * (0.005 + uniform(rng, 0.0, 0.015)) * params.strength
        high = max(open_, close) + daily_range * uniform(rng)
        low = min(open_, close) - daily_range * uniform(rng)
        volume = int(base_volume * (0.7 + uniform(rng, 0.0, 0.6)))

        candles.append(
            PredictionCandle(
                date=date,
                open=round_price(open_),
                high=round_price(high),
                low=round_price(low),
                close=round_price(close),
                volume=volume,
                confidence=params.confidence * (1.0 - progress * CONFIDENCE_DECAY),
                probability=params.probability,
            )
        )
        price = close

    return ScenarioPrediction(
        scenario=scenario,
        candles=tuple(candles),
        params=params,
        metadata=PredictionMetadata(
            confidence=params.confidence,
            timeframe=horizon_label(horizon),
        ),
    )


def generate_predictions(
    current: Optional[Candle],
    history: Sequence[Candle],
    rng: Optional[np.random.Generator] = None,
    horizon: int = DEFAULT_HORIZON,
    window: int = 20,
    rsi_period: int = 14,
    level_count: int = 3,
    base_volume: int = DEFAULT_BASE_VOLUME,
    generated_at: Optional[dt.datetime] = None,
) -> PredictionSet:
    rng = ensure_rng(rng)
    scenarios = build_scenarios(
        current,
        history,
        rng=rng,
        window=window,
        rsi_period=rsi_period,
        level_count=level_count,
    )
    paths = {
        name: synthesize(
            current,
            scenarios.get(name),
            horizon=horizon,
            rng=rng,
            scenario=name,
            base_volume=base_volume,
        )
        for name in (BULLISH, BEARISH, SIDEWAYS)
    }
    return PredictionSet(
        bullish=paths[BULLISH],
        bearish=paths[BEARISH],
        sideways=paths[SIDEWAYS],
        generated_at=generated_at,
    )


def update_prediction(
    previous: ScenarioPrediction,
    current: Optional[Candle],
    rng: Optional[np.random.Generator] = None,
    base_volume: int = DEFAULT_BASE_VOLUME,
) -> ScenarioPrediction:
    """Re-anchor a scenario path on a newer live candle.

    The target keeps its relative distance from the anchor close, so a live
    tick shifts the whole projection instead of resetting the scenario.
    """
    if current is None:
        raise InvalidInputError("current candle is required to update a prediction")
    if not previous.candles:
        raise InvalidInputError("previous prediction has no candles")

    anchor = previous.candles[0].open
    ratio = safe_div(previous.params.target_price, anchor, default=1.0)
    params = ScenarioParams(
        probability=previous.params.probability,
        strength=previous.params.strength,
        target_price=current.close * ratio,
        confidence=previous.params.confidence,
    )
    return synthesize(
        current,
        params,
        horizon=len(previous.candles),
        rng=rng,
        scenario=previous.scenario,
        base_volume=base_volume,
    )

"""Scenario parameters and display probabilities.

Two probability computations live here and are deliberately kept apart:

* ``scenario_probability`` feeds path synthesis. It uses the trailing window
  and is clamped to [0.1, 0.9] for the directional scenarios.
* ``display_probabilities`` is the on-screen triple. It uses the full
  history, a smaller linear blend around 0.33, and clamps each directional
  value to [0, 0.8]; sideways takes the remainder.

The two are not expected to agree.
"""
from typing import Optional, Sequence

import numpy as np

from candlecast.core import indicators
from candlecast.core.errors import InvalidInputError
from candlecast.core.levels import levels as support_resistance
from candlecast.core.types import (
    BEARISH,
    BULLISH,
    SCENARIOS,
    SIDEWAYS,
    Candle,
    DisplayProbabilities,
    IndicatorSnapshot,
    ScenarioParams,
    Scenarios,
)
from candlecast.core.utils import clamp, ensure_rng, uniform

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0

SCENARIO_PROB_MIN = 0.1
SCENARIO_PROB_MAX = 0.9
DISPLAY_PROB_MIN = 0.0
DISPLAY_PROB_MAX = 0.8
DISPLAY_BASE = 0.33


def scenario_probability(scenario: str, snap: IndicatorSnapshot) -> float:
    trend = snap.trend_strength
    mom = snap.momentum

    if scenario == BULLISH:
        probability = 0.5
        if trend > 0:
            probability += trend * 2.0
        if mom > 0:
            probability += mom * 1.5
        if snap.rsi < RSI_OVERSOLD:
            probability += 0.2
        elif snap.rsi > RSI_OVERBOUGHT:
            probability -= 0.2
        return clamp(probability, SCENARIO_PROB_MIN, SCENARIO_PROB_MAX)

    if scenario == BEARISH:
        probability = 0.5
        if trend < 0:
            probability += abs(trend) * 2.0
        if mom < 0:
            probability += abs(mom) * 1.5
        if snap.rsi > RSI_OVERBOUGHT:
            probability += 0.2
        elif snap.rsi < RSI_OVERSOLD:
            probability -= 0.2
        return clamp(probability, SCENARIO_PROB_MIN, SCENARIO_PROB_MAX)

    if scenario == SIDEWAYS:
        # raw value can leave [0, 1] on strong trends
        return clamp(1.0 - abs(trend) - mom, 0.0, 1.0)

    raise InvalidInputError(f"Unknown scenario: {scenario}")


def build_scenarios(
    current: Optional[Candle],
    history: Sequence[Candle],
    rng: Optional[np.random.Generator] = None,
    window: int = 20,
    rsi_period: int = 14,
    level_count: int = 3,
) -> Scenarios:
    if current is None:
        raise InvalidInputError("current candle is required to build scenarios")
    if window <= 0:
        raise InvalidInputError(f"window must be positive, got {window}")
    rng = ensure_rng(rng)

    recent = list(history[-window:])
    snap = indicators.snapshot(recent, rsi_period)
    lv = support_resistance(history, level_count)
    close = current.close
    trend = snap.trend_strength
    mom = snap.momentum

    bullish = ScenarioParams(
        probability=scenario_probability(BULLISH, snap),
        strength=max(0.3, trend + mom * 0.5),
        target_price=close * (1.02 + uniform(rng, 0.0, 0.03)),
        confidence=0.65 + uniform(rng, 0.0, 0.25),
    )
    bearish = ScenarioParams(
        probability=scenario_probability(BEARISH, snap),
        strength=max(0.3, abs(trend) + mom * 0.5),
        target_price=close * (0.97 - uniform(rng, 0.0, 0.03)),
        confidence=0.60 + uniform(rng, 0.0, 0.25),
    )
    sideways = ScenarioParams(
        probability=scenario_probability(SIDEWAYS, snap),
        strength=0.2 + uniform(rng, 0.0, 0.3),
        target_price=close * (0.995 + uniform(rng, 0.0, 0.01)),
        confidence=0.55 + uniform(rng, 0.0, 0.20),
    )
    return Scenarios(
        bullish=bullish,
        bearish=bearish,
        sideways=sideways,
        indicators=snap,
        levels=lv,
    )


def display_bullish(snap: IndicatorSnapshot) -> float:
    probability = DISPLAY_BASE
    probability += snap.trend_strength * 0.2
    probability += snap.momentum * 0.15
    if snap.rsi < RSI_OVERSOLD:
        probability += 0.15
    elif snap.rsi > RSI_OVERBOUGHT:
        probability -= 0.15
    probability -= snap.volatility * 0.05
    return clamp(probability, DISPLAY_PROB_MIN, DISPLAY_PROB_MAX)


def display_bearish(snap: IndicatorSnapshot) -> float:
    probability = DISPLAY_BASE
    probability -= snap.trend_strength * 0.2
    probability -= snap.momentum * 0.15
    if snap.rsi > RSI_OVERBOUGHT:
        probability += 0.15
    elif snap.rsi < RSI_OVERSOLD:
        probability -= 0.15
    probability += snap.volatility * 0.05
    return clamp(probability, DISPLAY_PROB_MIN, DISPLAY_PROB_MAX)


def display_probabilities(
    history: Sequence[Candle],
    rsi_period: int = 14,
    headline: str = BULLISH,
) -> DisplayProbabilities:
    """On-screen probability triple, headlined by the scenario being animated."""
    if headline not in SCENARIOS:
        raise InvalidInputError(f"Unknown scenario: {headline}")
    snap = indicators.snapshot(history, rsi_period)
    bullish = display_bullish(snap)
    bearish = display_bearish(snap)
    return DisplayProbabilities(
        bullish=bullish,
        bearish=bearish,
        sideways=1.0 - bullish - bearish,
        headline=headline,
        indicators=snap,
    )

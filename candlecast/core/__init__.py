"""Indicator library, scenario builder, path synthesizer and candle generator."""

from candlecast.core.errors import ConfigError, DataFetchError, InvalidInputError
from candlecast.core.generator import CandleGenerator
from candlecast.core.indicators import momentum, rsi, snapshot, trend_strength, volatility
from candlecast.core.levels import levels
from candlecast.core.paths import generate_predictions, synthesize, update_prediction
from candlecast.core.scenarios import build_scenarios, display_probabilities, scenario_probability

__all__ = [
    "CandleGenerator",
    "ConfigError",
    "DataFetchError",
    "InvalidInputError",
    "build_scenarios",
    "display_probabilities",
    "generate_predictions",
    "levels",
    "momentum",
    "rsi",
    "scenario_probability",
    "snapshot",
    "synthesize",
    "trend_strength",
    "update_prediction",
    "volatility",
]

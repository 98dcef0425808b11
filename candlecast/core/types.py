import datetime as dt
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

BULLISH = "bullish"
BEARISH = "bearish"
SIDEWAYS = "sideways"

SCENARIOS: Tuple[str, ...] = (BULLISH, BEARISH, SIDEWAYS)

DEFAULT_ALGORITHM = "AI-Enhanced Technical Analysis"
DEFAULT_FACTORS: Tuple[str, ...] = (
    "Trend Analysis",
    "Momentum",
    "Support/Resistance",
    "Volume Profile",
)


def _candle_kind(open_: float, close: float) -> str:
    return BULLISH if close > open_ else BEARISH


@dataclass(frozen=True)
class Candle:
    date: dt.datetime
    open: float
    high: float
    low: float
    close: float
    volume: int
    is_live: bool = False

    @property
    def kind(self) -> str:
        return _candle_kind(self.open, self.close)

    def is_valid(self) -> bool:
        return self.low <= min(self.open, self.close) <= max(self.open, self.close) <= self.high

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["kind"] = self.kind
        return data


@dataclass(frozen=True)
class PredictionCandle(Candle):
    confidence: float = 0.0
    probability: float = 0.0


@dataclass(frozen=True)
class IndicatorSnapshot:
    trend_strength: float
    volatility: float
    momentum: float
    rsi: float


@dataclass(frozen=True)
class Levels:
    resistance: Tuple[float, ...]
    support: Tuple[float, ...]


@dataclass(frozen=True)
class ScenarioParams:
    probability: float
    strength: float
    target_price: float
    confidence: float


@dataclass(frozen=True)
class Scenarios:
    bullish: ScenarioParams
    bearish: ScenarioParams
    sideways: ScenarioParams
    indicators: IndicatorSnapshot
    levels: Levels

    def get(self, scenario: str) -> ScenarioParams:
        if scenario not in SCENARIOS:
            raise KeyError(scenario)
        return getattr(self, scenario)


@dataclass(frozen=True)
class PredictionMetadata:
    confidence: float
    timeframe: str
    algorithm: str = DEFAULT_ALGORITHM
    factors: Tuple[str, ...] = DEFAULT_FACTORS


@dataclass(frozen=True)
class ScenarioPrediction:
    scenario: str
    candles: Tuple[PredictionCandle, ...]
    params: ScenarioParams
    metadata: PredictionMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario": self.scenario,
            "data": [candle.to_dict() for candle in self.candles],
            "params": asdict(self.params),
            "metadata": {
                "algorithm": self.metadata.algorithm,
                "factors": list(self.metadata.factors),
                "confidence": self.metadata.confidence,
                "timeframe": self.metadata.timeframe,
            },
        }


@dataclass(frozen=True)
class PredictionSet:
    bullish: ScenarioPrediction
    bearish: ScenarioPrediction
    sideways: ScenarioPrediction
    generated_at: Optional[dt.datetime] = None

    def get(self, scenario: str) -> ScenarioPrediction:
        if scenario not in SCENARIOS:
            raise KeyError(scenario)
        return getattr(self, scenario)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {name: self.get(name).to_dict() for name in SCENARIOS}
        out["generated_at"] = self.generated_at.isoformat() if self.generated_at else None
        return out


@dataclass(frozen=True)
class DisplayProbabilities:
    bullish: float
    bearish: float
    sideways: float
    headline: str = BULLISH
    indicators: Optional[IndicatorSnapshot] = field(default=None, compare=False)

    @property
    def confidence(self) -> float:
        return getattr(self, self.headline)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prediction": self.headline,
            "confidence": self.confidence,
            "probabilities": {
                BULLISH: self.bullish,
                BEARISH: self.bearish,
                SIDEWAYS: self.sideways,
            },
        }

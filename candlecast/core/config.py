"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from candlecast.core.errors import ConfigError


class GeneratorConfig(BaseModel):
    """Synthetic candle generator."""
    base_price: float = Field(default=150.0, gt=0)
    volatility: float = Field(default=0.02, ge=0)
    base_volume: int = Field(default=1_000_000, ge=0)
    history_days: int = Field(default=180, ge=0)


class PredictionConfig(BaseModel):
    """Indicator windows and scenario projection."""
    window: int = Field(default=20, gt=0)
    rsi_period: int = Field(default=14, gt=0)
    level_count: int = Field(default=3, ge=0)
    horizon: int = Field(default=5, ge=1)


class AnimationConfig(BaseModel):
    """Presentation timing, in seconds."""
    prediction_cycle: float = Field(default=3.0, gt=0)
    live_update: float = Field(default=2.0, gt=0)
    transition: float = Field(default=1.0, ge=0)
    scenario: Literal["bullish", "bearish", "sideways"] = "bullish"


class DataConfig(BaseModel):
    """Optional live market data."""
    use_live: bool = False
    coingecko_url: str = "https://api.coingecko.com/api/v3"
    coin_id: str = "bitcoin"
    vs_currency: str = "usd"
    days: int = Field(default=90, gt=0)
    request_timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_backoff: float = Field(default=1.0, ge=0)


class ErrorLogConfig(BaseModel):
    """Capped local error log."""
    db_path: str = "state/candlecast.db"
    capacity: int = Field(default=20, gt=0)


class LoggingConfig(BaseModel):
    """Logging."""
    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


_SECTIONS = {
    "generator": GeneratorConfig,
    "prediction": PredictionConfig,
    "animation": AnimationConfig,
    "data": DataConfig,
    "error_log": ErrorLogConfig,
    "logging": LoggingConfig,
}


@dataclass
class Config:
    """Top-level configuration."""
    seed: Optional[int] = None

    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    data: DataConfig = field(default_factory=DataConfig)
    error_log: ErrorLogConfig = field(default_factory=ErrorLogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        unknown = set(data) - set(_SECTIONS) - {"seed"}
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")

        config = cls(seed=data.get("seed"))
        for name, model in _SECTIONS.items():
            if name not in data:
                continue
            try:
                setattr(config, name, model(**(data[name] or {})))
            except (ValidationError, TypeError) as exc:
                raise ConfigError(f"Invalid '{name}' section: {exc}") from exc
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def default(cls) -> "Config":
        return cls()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load from file if given and present, otherwise use defaults."""
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"

    if config_path.exists():
        return Config.from_yaml(config_path)
    return Config.default()

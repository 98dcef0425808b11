"""Animation loop driving the engine on fixed intervals.

All mutable presentation state lives here. States: idle -> animating <->
paused, and stopped after teardown.
"""
import time
from typing import Callable, List, Optional, Protocol

import numpy as np

from candlecast.core.config import AnimationConfig, PredictionConfig
from candlecast.core.error_log import ErrorLog
from candlecast.core.errors import InvalidInputError
from candlecast.core.generator import CandleGenerator
from candlecast.core.log import get_logger
from candlecast.core.paths import generate_predictions, update_prediction
from candlecast.core.scenarios import display_probabilities
from candlecast.core.types import SCENARIOS, Candle, DisplayProbabilities, PredictionSet, ScenarioPrediction
from candlecast.core.utils import ensure_rng

logger = get_logger(__name__)

IDLE = "idle"
ANIMATING = "animating"
PAUSED = "paused"
STOPPED = "stopped"


class Renderer(Protocol):
    def render_current(self, candle: Candle) -> None: ...

    def render_prediction(self, prediction: ScenarioPrediction, display: DisplayProbabilities) -> None: ...


class AnimationLoop:
    def __init__(
        self,
        generator: CandleGenerator,
        renderer: Renderer,
        history: List[Candle],
        current: Candle,
        animation: Optional[AnimationConfig] = None,
        prediction: Optional[PredictionConfig] = None,
        error_log: Optional[ErrorLog] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not history:
            raise InvalidInputError("historical series must not be empty")
        if current is None:
            raise InvalidInputError("current candle is required")
        self.animation = animation or AnimationConfig()
        self.prediction = prediction or PredictionConfig()
        if self.animation.scenario not in SCENARIOS:
            raise InvalidInputError(f"Unknown scenario: {self.animation.scenario}")

        self._generator = generator
        self._renderer = renderer
        self._error_log = error_log
        self._rng = ensure_rng(rng)
        self._clock = clock

        self.history = list(history)
        self.current = current
        self.state = IDLE
        self.cycles = 0
        self.predictions: PredictionSet = self._predict()
        self.display: DisplayProbabilities = self._display()
        self.active: ScenarioPrediction = self.predictions.get(self.animation.scenario)

        self._next_cycle = 0.0
        self._next_update = 0.0
        self._reveal_at: Optional[float] = None

    def _display(self) -> DisplayProbabilities:
        return display_probabilities(self.history, self.prediction.rsi_period, headline=self.animation.scenario)

    def _predict(self) -> PredictionSet:
        return generate_predictions(
            self.current,
            self.history,
            rng=self._rng,
            horizon=self.prediction.horizon,
            window=self.prediction.window,
            rsi_period=self.prediction.rsi_period,
            level_count=self.prediction.level_count,
            base_volume=self._generator.base_volume,
            generated_at=self.current.date,
        )

    def start(self) -> None:
        if self.state == STOPPED:
            raise RuntimeError("animation loop was stopped")
        if self.state == ANIMATING:
            return
        now = self._clock()
        self._next_cycle = now + self.animation.prediction_cycle
        self._next_update = now + self.animation.live_update
        self._reveal_at = None
        self.state = ANIMATING
        logger.info("animation_started", scenario=self.animation.scenario)
        self._guarded(self._render_all)

    def pause(self) -> None:
        if self.state != ANIMATING:
            return
        self.state = PAUSED
        logger.info("animation_paused", cycles=self.cycles)

    def resume(self) -> None:
        if self.state == PAUSED:
            self.state = IDLE
            self.start()

    def stop(self) -> None:
        self.state = STOPPED
        logger.info("animation_stopped", cycles=self.cycles)

    def tick(self, now: Optional[float] = None) -> bool:
        """Run whatever updates are due. Returns True if anything ran."""
        if self.state != ANIMATING:
            return False
        now = self._clock() if now is None else now
        ran = False
        if self._reveal_at is not None and now >= self._reveal_at:
            self._reveal_at = None
            self._guarded(self._render_prediction)
            ran = True
        if now >= self._next_update:
            self._guarded(self.update_current_candle)
            self._next_update = now + self.animation.live_update
            ran = True
        if now >= self._next_cycle:
            self._guarded(lambda: self.force_prediction_cycle(now))
            self._next_cycle = now + self.animation.prediction_cycle
            ran = True
        return ran

    def update_current_candle(self) -> Candle:
        self.current = self._generator.update_candle(self.current)
        self.active = update_prediction(
            self.active, self.current, rng=self._rng, base_volume=self._generator.base_volume
        )
        self._renderer.render_current(self.current)
        if self._reveal_at is None:
            self._render_prediction()
        return self.current

    def force_prediction_cycle(self, now: Optional[float] = None) -> PredictionSet:
        """Recompute all scenarios.

        The new path is rendered after ``animation.transition`` seconds, on the
        first tick past that point; with no transition it is rendered at once.
        """
        self.predictions = self._predict()
        self.display = self._display()
        self.active = self.predictions.get(self.animation.scenario)
        self.cycles += 1
        logger.debug(
            "prediction_cycle",
            cycle=self.cycles,
            probability=self.active.params.probability,
            target=self.active.params.target_price,
        )
        if self.animation.transition > 0:
            self._reveal_at = (self._clock() if now is None else now) + self.animation.transition
        else:
            self._render_prediction()
        return self.predictions

    def run(self, cycles: int, sleep: Callable[[float], None] = time.sleep) -> None:
        self.start()
        try:
            while self.state == ANIMATING and (self.cycles < cycles or self._reveal_at is not None):
                if not self.tick():
                    sleep(self._idle_interval())
        finally:
            self.stop()

    def _idle_interval(self) -> float:
        intervals = [self.animation.live_update, self.animation.prediction_cycle]
        if self.animation.transition > 0:
            intervals.append(self.animation.transition)
        return min(intervals) / 4.0

    def _render_prediction(self) -> None:
        self._renderer.render_prediction(self.active, self.display)

    def _render_all(self) -> None:
        self._renderer.render_current(self.current)
        self._render_prediction()

    def _guarded(self, func: Callable[[], object]) -> None:
        try:
            func()
        except Exception as exc:
            if self._error_log is not None:
                self._error_log.record(exc, state=self.state)
            raise

import datetime as dt
import unittest

import numpy as np

from candlecast.core.config import AnimationConfig
from candlecast.core.error_log import ErrorLog
from candlecast.core.generator import CandleGenerator
from candlecast.core.live import ANIMATING, PAUSED, STOPPED, AnimationLoop
from candlecast.core.state_store import StateStore

END = dt.datetime(2024, 3, 1, 12, 0)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class RecordingRenderer:
    def __init__(self) -> None:
        self.current = []
        self.predictions = []

    def render_current(self, candle) -> None:
        self.current.append(candle)

    def render_prediction(self, prediction, display) -> None:
        self.predictions.append((prediction, display))


class BrokenRenderer(RecordingRenderer):
    def render_prediction(self, prediction, display) -> None:
        raise RuntimeError("screen gone")


class AnimationLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.generator = CandleGenerator(rng=np.random.default_rng(9))
        self.history = self.generator.historical_series(60, end=END)
        self.current = self.generator.current_candle(self.history, now=END)
        self.clock = FakeClock()
        self.store = StateStore(":memory:")
        self.error_log = ErrorLog(self.store)

    def tearDown(self) -> None:
        self.store.close()

    def make_loop(self, renderer, **animation) -> AnimationLoop:
        settings = {"prediction_cycle": 3.0, "live_update": 2.0, **animation}
        return AnimationLoop(
            self.generator,
            renderer,
            self.history,
            self.current,
            animation=AnimationConfig(**settings),
            error_log=self.error_log,
            rng=np.random.default_rng(4),
            clock=self.clock,
        )

    def test_ticks_follow_intervals(self) -> None:
        renderer = RecordingRenderer()
        loop = self.make_loop(renderer)
        loop.start()
        self.assertEqual(loop.state, ANIMATING)
        self.assertEqual(len(renderer.current), 1)

        self.assertFalse(loop.tick(1.0))
        self.assertTrue(loop.tick(2.0))
        self.assertEqual(len(renderer.current), 2)
        self.assertEqual(loop.cycles, 0)
        self.assertTrue(loop.tick(3.0))
        self.assertEqual(loop.cycles, 1)
        self.assertEqual(loop.active.scenario, "bullish")

    def test_live_update_keeps_candles_valid(self) -> None:
        loop = self.make_loop(RecordingRenderer())
        loop.start()
        before = loop.current
        candle = loop.update_current_candle()
        self.assertIsNot(candle, before)
        self.assertEqual(loop.active.candles[0].open, candle.close)
        self.assertTrue(all(c.is_valid() for c in loop.active.candles))

    def test_pause_and_resume(self) -> None:
        renderer = RecordingRenderer()
        loop = self.make_loop(renderer)
        loop.start()
        loop.pause()
        self.assertEqual(loop.state, PAUSED)
        self.assertFalse(loop.tick(10.0))
        self.clock.now = 10.0
        loop.resume()
        self.assertEqual(loop.state, ANIMATING)
        self.assertFalse(loop.tick(11.0))
        self.assertTrue(loop.tick(12.0))

    def test_stopped_loop_cannot_restart(self) -> None:
        loop = self.make_loop(RecordingRenderer())
        loop.start()
        loop.stop()
        self.assertEqual(loop.state, STOPPED)
        self.assertFalse(loop.tick(100.0))
        with self.assertRaises(RuntimeError):
            loop.start()

    def test_render_failure_is_logged_and_raised(self) -> None:
        loop = self.make_loop(BrokenRenderer())
        with self.assertRaises(RuntimeError):
            loop.start()
        entries = self.error_log.entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0]["message"], "screen gone")

    def test_headline_matches_animated_scenario(self) -> None:
        loop = self.make_loop(RecordingRenderer(), scenario="bearish")
        self.assertEqual(loop.active.scenario, "bearish")
        self.assertEqual(loop.display.headline, "bearish")
        loop.start()
        loop.force_prediction_cycle()
        self.assertEqual(loop.display.headline, "bearish")

    def test_new_prediction_rendered_after_transition(self) -> None:
        renderer = RecordingRenderer()
        loop = self.make_loop(renderer, live_update=10.0, transition=1.0)
        loop.start()
        self.assertEqual(len(renderer.predictions), 1)

        self.assertTrue(loop.tick(3.0))
        self.assertEqual(loop.cycles, 1)
        self.assertEqual(len(renderer.predictions), 1)
        self.assertFalse(loop.tick(3.5))
        self.assertTrue(loop.tick(4.0))
        self.assertEqual(len(renderer.predictions), 2)
        self.assertIs(renderer.predictions[-1][0], loop.active)

    def test_zero_transition_renders_at_once(self) -> None:
        renderer = RecordingRenderer()
        loop = self.make_loop(renderer, live_update=10.0, transition=0.0)
        loop.start()
        self.assertTrue(loop.tick(3.0))
        self.assertEqual(len(renderer.predictions), 2)

    def test_run_stops_after_cycles(self) -> None:
        loop = self.make_loop(RecordingRenderer())

        def fake_sleep(seconds: float) -> None:
            self.clock.now += seconds

        loop.run(2, sleep=fake_sleep)
        self.assertEqual(loop.cycles, 2)
        self.assertEqual(loop.state, STOPPED)
        self.assertGreaterEqual(self.clock.now, 7.0)


if __name__ == "__main__":
    unittest.main()

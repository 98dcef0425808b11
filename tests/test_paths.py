import datetime as dt
import unittest

import numpy as np

from candlecast.core.errors import InvalidInputError
from candlecast.core.generator import CandleGenerator
from candlecast.core.paths import generate_predictions, synthesize, update_prediction
from candlecast.core.types import BEARISH, SCENARIOS, Candle, ScenarioParams

FRIDAY = dt.datetime(2024, 3, 1, 15, 30)


def live_candle(close=100.0, date=FRIDAY):
    return Candle(date=date, open=close, high=close + 1.0, low=close - 1.0, close=close, volume=500, is_live=True)


class SynthesizeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.params = ScenarioParams(probability=0.62, strength=0.5, target_price=105.0, confidence=0.8)

    def test_length_dates_and_invariants(self) -> None:
        pred = synthesize(live_candle(), self.params, horizon=5, rng=np.random.default_rng(0))
        self.assertEqual(len(pred.candles), 5)
        self.assertEqual(
            [c.date.date() for c in pred.candles],
            [dt.date(2024, 3, d) for d in (4, 5, 6, 7, 8)],
        )
        for c in pred.candles:
            self.assertLess(c.date.weekday(), 5)
            self.assertTrue(c.is_valid())
            self.assertEqual(c.probability, 0.62)
            self.assertGreaterEqual(c.volume, 0)

    def test_dates_strictly_increase_across_weekends(self) -> None:
        pred = synthesize(live_candle(), self.params, horizon=12, rng=np.random.default_rng(2))
        dates = [c.date for c in pred.candles]
        self.assertTrue(all(a < b for a, b in zip(dates, dates[1:])))
        self.assertTrue(all(d.weekday() < 5 for d in dates))

    def test_confidence_decays(self) -> None:
        pred = synthesize(live_candle(), self.params, rng=np.random.default_rng(0))
        confidences = [c.confidence for c in pred.candles]
        self.assertTrue(all(a >= b for a, b in zip(confidences, confidences[1:])))
        self.assertAlmostEqual(confidences[0], 0.8 * (1 - 0.2 * 0.3))
        self.assertAlmostEqual(confidences[-1], 0.8 * 0.7)

    def test_path_opens_at_previous_close_and_ends_near_target(self) -> None:
        pred = synthesize(live_candle(), self.params, rng=np.random.default_rng(9))
        self.assertEqual(pred.candles[0].open, 100.0)
        for prev, cur in zip(pred.candles, pred.candles[1:]):
            self.assertAlmostEqual(cur.open, prev.close, places=2)
        self.assertLess(abs(pred.candles[-1].close - 105.0), 0.5)

    def test_metadata(self) -> None:
        pred = synthesize(live_candle(), self.params, scenario=BEARISH, rng=np.random.default_rng(0))
        self.assertEqual(pred.scenario, BEARISH)
        self.assertEqual(pred.metadata.timeframe, "5-day outlook")
        self.assertEqual(pred.metadata.algorithm, "AI-Enhanced Technical Analysis")
        self.assertIn("Momentum", pred.metadata.factors)
        self.assertEqual(pred.metadata.confidence, 0.8)

    def test_seeded_replay(self) -> None:
        a = synthesize(live_candle(), self.params, rng=np.random.default_rng(4))
        b = synthesize(live_candle(), self.params, rng=np.random.default_rng(4))
        self.assertEqual(a, b)

    def test_invalid_input(self) -> None:
        with self.assertRaises(InvalidInputError):
            synthesize(None, self.params)
        with self.assertRaises(InvalidInputError):
            synthesize(live_candle(), self.params, horizon=0)
        with self.assertRaises(InvalidInputError):
            synthesize(live_candle(), ScenarioParams(0.5, -2.0, 105.0, 0.8), rng=np.random.default_rng(0))
        with self.assertRaises(InvalidInputError):
            synthesize(live_candle(), ScenarioParams(0.5, 0.5, 0.0, 0.8))

    def test_zero_strength_keeps_candles_valid(self) -> None:
        params = ScenarioParams(probability=0.5, strength=0.0, target_price=102.0, confidence=0.7)
        pred = synthesize(live_candle(), params, rng=np.random.default_rng(3))
        self.assertTrue(all(c.is_valid() for c in pred.candles))


class PredictionSetTests(unittest.TestCase):
    def setUp(self) -> None:
        gen = CandleGenerator(rng=np.random.default_rng(21))
        self.history = gen.historical_series(120, end=dt.datetime(2024, 4, 5))
        self.current = gen.current_candle(self.history, now=dt.datetime(2024, 4, 5, 12, 0))

    def test_all_scenarios_present(self) -> None:
        preds = generate_predictions(self.current, self.history, rng=np.random.default_rng(3))
        for name in SCENARIOS:
            scenario = preds.get(name)
            self.assertEqual(scenario.scenario, name)
            self.assertEqual(len(scenario.candles), 5)
            self.assertTrue(all(c.is_valid() for c in scenario.candles))
        self.assertGreater(preds.bullish.params.target_price, self.current.close)
        self.assertLess(preds.bearish.params.target_price, self.current.close)

    def test_to_dict(self) -> None:
        preds = generate_predictions(self.current, self.history, rng=np.random.default_rng(3), generated_at=self.current.date)
        data = preds.to_dict()
        self.assertEqual(set(data), {"bullish", "bearish", "sideways", "generated_at"})
        self.assertEqual(len(data["bullish"]["data"]), 5)
        self.assertIn(data["bullish"]["data"][0]["kind"], ("bullish", "bearish"))

    def test_missing_current(self) -> None:
        with self.assertRaises(InvalidInputError):
            generate_predictions(None, self.history)


class UpdatePredictionTests(unittest.TestCase):
    def test_reanchors_without_touching_previous(self) -> None:
        params = ScenarioParams(probability=0.55, strength=0.4, target_price=103.0, confidence=0.7)
        previous = synthesize(live_candle(100.0), params, rng=np.random.default_rng(1))
        snapshot = previous.candles

        updated = update_prediction(previous, live_candle(110.0), rng=np.random.default_rng(1))

        self.assertIsNot(updated, previous)
        self.assertEqual(previous.candles, snapshot)
        self.assertEqual(updated.candles[0].open, 110.0)
        self.assertAlmostEqual(updated.params.target_price, 110.0 * 1.03)
        self.assertEqual(updated.params.probability, 0.55)
        self.assertEqual(len(updated.candles), len(previous.candles))

    def test_rejects_non_positive_anchor_target(self) -> None:
        params = ScenarioParams(probability=0.5, strength=0.3, target_price=101.0, confidence=0.6)
        previous = synthesize(live_candle(), params, rng=np.random.default_rng(1))
        with self.assertRaises(InvalidInputError):
            update_prediction(previous, live_candle(0.0))

    def test_requires_current(self) -> None:
        params = ScenarioParams(probability=0.5, strength=0.3, target_price=101.0, confidence=0.6)
        previous = synthesize(live_candle(), params, rng=np.random.default_rng(1))
        with self.assertRaises(InvalidInputError):
            update_prediction(previous, None)


if __name__ == "__main__":
    unittest.main()

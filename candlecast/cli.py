import argparse
import json
from pathlib import Path
from typing import List, Optional

import numpy as np
from rich.console import Console

from candlecast.core.config import Config, load_config
from candlecast.core.error_log import ErrorLog
from candlecast.core.errors import ConfigError
from candlecast.core.live import AnimationLoop
from candlecast.core.log import bind_run, get_logger, setup_logging
from candlecast.core.paths import generate_predictions
from candlecast.core.scenarios import display_probabilities
from candlecast.core.session import build_generator, load_market
from candlecast.core.state_store import StateStore
from candlecast.render import ConsoleRenderer, prediction_table, probability_table

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="candlecast")
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for replay")
    parser.add_argument("--live", action="store_true", help="Try CoinGecko data before synthetic")
    parser.add_argument("--log-level", default=None, help="Override logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    predict = sub.add_parser("predict", help="Print one prediction set")
    predict.add_argument("--json", action="store_true", help="Emit JSON instead of tables")

    series = sub.add_parser("series", help="Dump historical and current candles as JSON")
    series.add_argument("--days", type=int, default=None, help="Calendar days of history")

    animate = sub.add_parser("animate", help="Run the animation loop in the terminal")
    animate.add_argument("--cycles", type=int, default=3, help="Prediction cycles to run")

    errors = sub.add_parser("errors", help="Show the local error log")
    errors.add_argument("--clear", action="store_true", help="Clear the error log")
    return parser


def _load(args: argparse.Namespace) -> Config:
    if args.config and not Path(args.config).is_file():
        raise SystemExit(f"Config file not found: {args.config}")
    try:
        config = load_config(Path(args.config)) if args.config else load_config()
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc
    if args.seed is not None:
        config.seed = args.seed
    if args.live:
        config.data.use_live = True
    return config


def main(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    config = _load(args)
    setup_logging(config.logging, level=args.log_level)
    bind_run(command=args.command, seed=config.seed)

    console = Console()
    store = StateStore(config.error_log.db_path)
    error_log = ErrorLog(store, capacity=config.error_log.capacity)
    try:
        if args.command == "errors":
            if args.clear:
                error_log.clear()
                console.print("Error log cleared")
            else:
                console.print_json(json.dumps(error_log.entries()))
            return

        rng = np.random.default_rng(config.seed)
        generator = build_generator(config, rng=rng)
        if args.command == "series" and args.days is not None:
            config.generator.history_days = args.days
        market = load_market(config, generator, error_log=error_log, rng=rng)

        if args.command == "series":
            payload = {
                "source": market.source,
                "history": [c.to_dict() for c in market.history],
                "current": market.current.to_dict(),
            }
            print(json.dumps(payload, indent=2))
        elif args.command == "predict":
            pred = config.prediction
            predictions = generate_predictions(
                market.current,
                market.history,
                rng=rng,
                horizon=pred.horizon,
                window=pred.window,
                rsi_period=pred.rsi_period,
                level_count=pred.level_count,
                base_volume=config.generator.base_volume,
                generated_at=market.current.date,
            )
            display = display_probabilities(market.history, pred.rsi_period, headline=config.animation.scenario)
            if args.json:
                payload = predictions.to_dict()
                payload["display"] = display.to_dict()
                print(json.dumps(payload, indent=2))
            else:
                for name in ("bullish", "bearish", "sideways"):
                    console.print(prediction_table(predictions.get(name)))
                console.print(probability_table(display))
        elif args.command == "animate":
            loop = AnimationLoop(
                generator,
                ConsoleRenderer(console),
                history=market.history,
                current=market.current,
                animation=config.animation,
                prediction=config.prediction,
                error_log=error_log,
                rng=rng,
            )
            try:
                loop.run(args.cycles)
            except KeyboardInterrupt:
                logger.info("animation_interrupted", cycles=loop.cycles)
    finally:
        store.close()


if __name__ == "__main__":
    main()

from typing import Optional

from rich.console import Console
from rich.table import Table

from candlecast.core.types import Candle, DisplayProbabilities, ScenarioPrediction

_COLORS = {"bullish": "green", "bearish": "red", "sideways": "yellow"}


class ConsoleRenderer:
    """Terminal stand-in for the chart panels."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def render_current(self, candle: Candle) -> None:
        color = _COLORS[candle.kind]
        self.console.print(
            f"[bold]LIVE[/bold] {candle.date:%Y-%m-%d %H:%M:%S}  "
            f"O {candle.open:.2f}  H {candle.high:.2f}  L {candle.low:.2f}  "
            f"C [{color}]{candle.close:.2f}[/{color}]  V {candle.volume:,}"
        )

    def render_prediction(self, prediction: ScenarioPrediction, display: DisplayProbabilities) -> None:
        self.console.print(prediction_table(prediction))
        self.console.print(probability_table(display))


def prediction_table(prediction: ScenarioPrediction) -> Table:
    meta = prediction.metadata
    color = _COLORS.get(prediction.scenario, "white")
    table = Table(
        title=f"[{color}]{prediction.scenario.upper()}[/{color}] {meta.timeframe} ({meta.algorithm})",
        caption=", ".join(meta.factors),
    )
    for column in ("Date", "Open", "High", "Low", "Close", "Volume", "Confidence", "Probability"):
        table.add_column(column, justify="right")
    for c in prediction.candles:
        table.add_row(
            f"{c.date:%Y-%m-%d}",
            f"{c.open:.2f}",
            f"{c.high:.2f}",
            f"{c.low:.2f}",
            f"{c.close:.2f}",
            f"{c.volume:,}",
            f"{c.confidence:.1%}",
            f"{c.probability:.1%}",
        )
    return table


def probability_table(display: DisplayProbabilities) -> Table:
    table = Table(title=f"AI Prediction: next candle {display.headline.upper()} ({display.confidence:.1%})")
    table.add_column("Scenario")
    table.add_column("Probability", justify="right")
    for name in ("bullish", "bearish", "sideways"):
        value = getattr(display, name)
        table.add_row(f"[{_COLORS[name]}]{name}[/{_COLORS[name]}]", f"{value:.1%}")
    return table

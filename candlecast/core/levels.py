from typing import Sequence

from candlecast.core.types import Candle, Levels


def levels(series: Sequence[Candle], n: int = 3) -> Levels:
    """Top ``n`` highs as resistance and bottom ``n`` lows as support.

    Near-equal and equal prices are not merged; the input is not reordered.
    """
    if n <= 0:
        return Levels(resistance=(), support=())
    highs = sorted((c.high for c in series), reverse=True)
    lows = sorted(c.low for c in series)
    return Levels(resistance=tuple(highs[:n]), support=tuple(lows[:n]))

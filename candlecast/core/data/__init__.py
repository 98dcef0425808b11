"""Optional live market data."""

from candlecast.core.data.coingecko import fetch_current, fetch_historical, parse_market_chart

__all__ = ["fetch_current", "fetch_historical", "parse_market_chart"]

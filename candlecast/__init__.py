"""Indicator and scenario-projection engine for a simulated trading animation."""

__version__ = "0.1.0"

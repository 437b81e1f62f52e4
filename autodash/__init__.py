"""Automatic dataset profiling, chart selection, insights and forecasting."""

__version__ = "0.1.0"

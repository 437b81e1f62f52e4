"""Naive linear-trend forecasting appended to a chart's series.

The fit is an ordinary least-squares line of ``y`` against the 0-based
point index over historical points only, so re-running a forecast never
compounds earlier predictions.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from .charts import FORECAST_FLAG, FORECASTABLE_TYPES, ChartSpec, historical_points
from .insights import MAX_INSIGHTS, synthesize_insights
from .records import format_number, number_or_zero, to_number

logger = logging.getLogger(__name__)

MIN_HISTORY = 2
DEFAULT_MAX_HORIZON = 12
DEFAULT_HORIZON_RATIO = 0.3
DEFAULT_JITTER = 0.05

_NUMERIC_RUN_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class TrendFit:
    slope: float
    intercept: float

    def predict(self, index: float) -> float:
        return self.slope * index + self.intercept


def fit_trend(values: List[float]) -> TrendFit:
    slope, intercept = np.polyfit(np.arange(len(values), dtype=float), np.asarray(values, dtype=float), 1)
    return TrendFit(slope=float(slope), intercept=float(intercept))


def forecast_horizon(history: int, max_horizon: int = DEFAULT_MAX_HORIZON, ratio: float = DEFAULT_HORIZON_RATIO) -> int:
    # round first so 0.3 * 10 stays 3 rather than 3.0000000000000004
    return min(max_horizon, math.ceil(round(history * ratio, 9)))


def next_label(last: Any, step: int) -> Any:
    """Synthesize the x label ``step`` periods after ``last``."""

    if isinstance(last, str):
        number = to_number(last)
        if number is not None:
            shifted = number + step
            return str(int(shifted)) if shifted.is_integer() else str(shifted)
        runs = list(_NUMERIC_RUN_RE.finditer(last))
        if runs:
            run = runs[-1]
            bumped = str(int(run.group()) + step).zfill(len(run.group()))
            return last[: run.start()] + bumped + last[run.end():]
        return f"Forecast {step}"
    number = to_number(last)
    if number is None:
        return f"Forecast {step}"
    shifted = number + step
    return int(shifted) if shifted.is_integer() else shifted


def _trend_summary(y_field: str, last_actual: float, last_forecast: float, horizon: int) -> str:
    periods = "period" if horizon == 1 else "periods"
    if last_actual == 0:
        return f"Forecast projects {y_field} reaching {format_number(last_forecast)} over the next {horizon} {periods}"
    change = (last_forecast - last_actual) / abs(last_actual) * 100
    if change > 0:
        trend = f"growth of {change:.1f}%"
    elif change < 0:
        trend = f"decline of {abs(change):.1f}%"
    else:
        trend = "no change"
    return f"Forecast projects {trend} in {y_field} over the next {horizon} {periods}"


def forecast_chart(
    chart: ChartSpec,
    *,
    rng: Optional[np.random.Generator] = None,
    max_horizon: int = DEFAULT_MAX_HORIZON,
    horizon_ratio: float = DEFAULT_HORIZON_RATIO,
    jitter: float = DEFAULT_JITTER,
) -> Optional[ChartSpec]:
    """Return a new chart with forecast points appended, or ``None``.

    ``None`` means the chart cannot be forecast (unsupported type, no y
    field, or fewer than two historical points); the input is left as is.
    """

    if chart.chart_type not in FORECASTABLE_TYPES or chart.y_field is None:
        logger.info("Chart %s (%s) is not forecastable", chart.id, chart.chart_type)
        return None
    history = historical_points(chart.series)
    if len(history) < MIN_HISTORY:
        logger.info("Not enough history to forecast chart %s (%d points)", chart.id, len(history))
        return None

    rng = rng if rng is not None else np.random.default_rng()
    y_field, x_field = chart.y_field, chart.x_field
    values = [number_or_zero(point.get(y_field)) for point in history]
    fit = fit_trend(values)
    n = len(values)
    horizon = forecast_horizon(n, max_horizon, horizon_ratio)
    last_label = history[-1].get(x_field)

    forecast: List[Dict[str, Any]] = []
    for step in range(1, horizon + 1):
        predicted = fit.predict(n + step - 1)
        noisy = predicted + predicted * jitter * rng.uniform(-1.0, 1.0)
        forecast.append(
            {
                x_field: next_label(last_label, step),
                y_field: round(max(0.0, noisy), 2),
                FORECAST_FLAG: True,
            }
        )
    logger.debug("Chart %s: slope=%.4f intercept=%.4f horizon=%d", chart.id, fit.slope, fit.intercept, horizon)

    extended = chart.replace(series=[dict(p) for p in history] + forecast, insights=None)
    insights = synthesize_insights(extended)[: MAX_INSIGHTS - 1]
    insights.append(_trend_summary(y_field, values[-1], forecast[-1][y_field], horizon))
    return extended.replace(insights=insights)

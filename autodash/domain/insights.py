"""Natural-language observations computed from a single chart's series."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from .charts import AREA, BAR, LINE, PIE, SCATTER, ChartSpec, historical_points
from .records import format_number, number_or_zero

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 5
NO_DATA_INSIGHT = "No data available to generate insights."

LOW_VOLATILITY = 15.0
MODERATE_VOLATILITY = 30.0
BALANCE_TOLERANCE = 0.3
BALANCE_SHARE = 0.7
STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.3


def _label(value: Any) -> str:
    return format_number(value) if isinstance(value, float) else str(value)


def _share(part: float, total: float) -> float:
    return part / total * 100 if total else 0.0


def trend_insights(points: List[Dict[str, Any]], x_field: str, y_field: str) -> List[str]:
    values = np.array([number_or_zero(p.get(y_field)) for p in points], dtype=float)
    first, last = values[0], values[-1]
    insights: List[str] = []

    if first == 0:
        insights.append(f"{y_field} moves from {format_number(first)} to {format_number(last)}")
    else:
        change = (last - first) / abs(first) * 100
        if change > 0:
            insights.append(f"{y_field} trends upward with {change:.1f}% growth from first to last point")
        elif change < 0:
            insights.append(f"{y_field} trends downward with a {abs(change):.1f}% decline from first to last point")
        else:
            insights.append(f"{y_field} ends where it started at {format_number(last)}")

    peak = int(np.argmax(values))
    insights.append(
        f"Peak {y_field} of {format_number(values[peak])} at {_label(points[peak].get(x_field))}"
    )

    mean = float(values.mean())
    above = _share(float((values > mean).sum()), len(values))
    insights.append(f"Average {y_field} is {format_number(round(mean, 2))}; {above:.0f}% of points are above average")

    if mean != 0:
        cv = float(values.std()) / abs(mean) * 100
        if cv < LOW_VOLATILITY:
            level = "Low"
        elif cv < MODERATE_VOLATILITY:
            level = "Moderate"
        else:
            level = "High"
        insights.append(f"{level} volatility (coefficient of variation {cv:.1f}%)")
    return insights


def category_insights(points: List[Dict[str, Any]], x_field: str, y_field: str) -> List[str]:
    labels = [p.get(x_field) for p in points]
    values = np.array([number_or_zero(p.get(y_field)) for p in points], dtype=float)
    total = float(values.sum())
    top, bottom = int(np.argmax(values)), int(np.argmin(values))
    insights = [
        f"{_label(labels[top])} leads with {format_number(values[top])} "
        f"({_share(values[top], total):.1f}% of total)"
    ]

    if len(values) > 1:
        insights.append(f"{_label(labels[bottom])} is the lowest at {format_number(values[bottom])}")

    above = values > values.mean()
    count = int(above.sum())
    if count <= 3 and len(values) > 3:
        insights.append(
            f"{count} of {len(values)} categories are above average, "
            f"together contributing {_share(float(values[above].sum()), total):.1f}% of total"
        )

    if len(values) > 1 and values[bottom] != 0:
        gap = (values[top] - values[bottom]) / abs(values[bottom]) * 100
        insights.append(f"Gap between highest and lowest category is {gap:.1f}%")
    return insights


def proportion_insights(points: List[Dict[str, Any]], category_field: str, y_field: str) -> List[str]:
    labels = [p.get(category_field) for p in points]
    values = np.array([number_or_zero(p.get(y_field)) for p in points], dtype=float)
    total = float(values.sum())
    top = int(np.argmax(values))
    insights = [f"{_label(labels[top])} dominates with {_share(values[top], total):.1f}% of the total"]

    mean = float(values.mean())
    near_mean = np.abs(values - mean) <= BALANCE_TOLERANCE * abs(mean)
    shape = "balanced" if near_mean.mean() >= BALANCE_SHARE else "uneven"
    insights.append(f"Distribution across {len(values)} categories is {shape}")

    if len(values) >= 3:
        top_three = float(np.sort(values)[::-1][:3].sum())
        insights.append(f"Top 3 categories account for {_share(top_three, total):.1f}% of the total")
    return insights


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if len(x) < 2 or x.std() == 0 or y.std() == 0:
        return 0.0
    return float(np.corrcoef(x, y)[0, 1])


def correlation_insights(points: List[Dict[str, Any]], x_field: str, y_field: str) -> List[str]:
    r = pearson(
        [number_or_zero(p.get(x_field)) for p in points],
        [number_or_zero(p.get(y_field)) for p in points],
    )
    if r > STRONG_CORRELATION:
        strength = "Strong positive"
    elif r > MODERATE_CORRELATION:
        strength = "Moderate positive"
    elif r < -STRONG_CORRELATION:
        strength = "Strong negative"
    elif r < -MODERATE_CORRELATION:
        strength = "Moderate negative"
    else:
        strength = "Weak"
    return [
        f"{strength} correlation between {x_field} and {y_field} (r = {r:.2f})",
        f"Based on {len(points)} data points",
    ]


def _computed(chart: ChartSpec, points: List[Dict[str, Any]]) -> List[str]:
    if chart.y_field is None:
        return [NO_DATA_INSIGHT]
    builders: Dict[str, Callable[[List[Dict[str, Any]], str, str], List[str]]] = {
        LINE: trend_insights,
        AREA: trend_insights,
        BAR: category_insights,
        SCATTER: correlation_insights,
    }
    if chart.chart_type == PIE:
        return proportion_insights(points, chart.color_field or chart.x_field, chart.y_field)
    builder = builders.get(chart.chart_type)
    if builder is None:
        logger.warning("No insight builder for chart type %s", chart.chart_type)
        return []
    return builder(points, chart.x_field, chart.y_field)


def synthesize_insights(chart: ChartSpec, extra: Optional[Sequence[str]] = None) -> List[str]:
    """Computed insights first, then the chart's own insights, at most five."""

    points = historical_points(chart.series)
    if not points:
        return [NO_DATA_INSIGHT]

    insights = _computed(chart, points)
    for text in list(chart.insights or []) + list(extra or []):
        if text not in insights:
            insights.append(text)
    return insights[:MAX_INSIGHTS]

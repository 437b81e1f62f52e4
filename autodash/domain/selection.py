"""Heuristic chart selection over profiled columns.

Each rule is an independent predicate/builder pair; every rule whose
predicate holds contributes exactly one chart, in rule order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from .charts import AREA, BAR, LINE, SCATTER, ChartSpec
from .insights import synthesize_insights
from .profiling import CATEGORICAL, NUMERICAL, TEMPORAL, ColumnProfile, profile_dataset
from .records import Dataset, is_missing, number_or_zero, to_records

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 50


@dataclass(frozen=True)
class ColumnGroups:
    numerical: List[str]
    categorical: List[str]
    temporal: List[str]

    @classmethod
    def from_profiles(cls, profiles: Sequence[ColumnProfile]) -> "ColumnGroups":
        def names(kind: str) -> List[str]:
            return [p.name for p in profiles if p.semantic_type == kind]

        return cls(numerical=names(NUMERICAL), categorical=names(CATEGORICAL), temporal=names(TEMPORAL))


@dataclass(frozen=True)
class ChartRule:
    name: str
    applies: Callable[[ColumnGroups], bool]
    build: Callable[[List[Dict[str, Any]], ColumnGroups], ChartSpec]


def _time_series(sample: List[Dict[str, Any]], cols: ColumnGroups) -> ChartSpec:
    x, y = cols.temporal[0], cols.numerical[0]
    return ChartSpec(
        id="timeseries-1",
        chart_type=LINE,
        title="Time Series Analysis",
        description=f"{y} over {x}",
        series=[dict(row) for row in sample],
        x_field=x,
        y_field=y,
    )


def _category_totals(sample: List[Dict[str, Any]], cols: ColumnGroups) -> ChartSpec:
    x, y = cols.categorical[0], cols.numerical[0]
    labels = [None if is_missing(row.get(x)) else row.get(x) for row in sample]
    frame = pd.DataFrame(
        {
            "category": pd.Series(labels, dtype=object),
            "value": [number_or_zero(row.get(y)) for row in sample],
        }
    )
    totals = frame.groupby("category", sort=False, dropna=False)["value"].sum()
    # groupby reports the missing group as NaN, which is not valid JSON
    return ChartSpec(
        id="bar-1",
        chart_type=BAR,
        title="Category Performance",
        description=f"{y} by {x}",
        series=[{x: None if is_missing(key) else key, y: float(total)} for key, total in totals.items()],
        x_field=x,
        y_field=y,
    )


def _correlation(sample: List[Dict[str, Any]], cols: ColumnGroups) -> ChartSpec:
    x, y = cols.numerical[0], cols.numerical[1]
    return ChartSpec(
        id="scatter-1",
        chart_type=SCATTER,
        title="Correlation Analysis",
        description=f"{x} vs {y}",
        series=[dict(row) for row in sample],
        x_field=x,
        y_field=y,
    )


def _distribution(sample: List[Dict[str, Any]], cols: ColumnGroups) -> ChartSpec:
    column = cols.numerical[0]
    return ChartSpec(
        id="area-1",
        chart_type=AREA,
        title="Distribution Pattern",
        description=f"{column} distribution across dataset",
        series=[
            {"index": index, "value": number_or_zero(row.get(column))}
            for index, row in enumerate(sample, start=1)
        ],
        x_field="index",
        y_field="value",
    )


CHART_RULES: List[ChartRule] = [
    ChartRule("time_series", lambda c: bool(c.temporal and c.numerical), _time_series),
    ChartRule("category_totals", lambda c: bool(c.categorical and c.numerical), _category_totals),
    ChartRule("correlation", lambda c: len(c.numerical) >= 2, _correlation),
    ChartRule("distribution", lambda c: bool(c.numerical), _distribution),
]


def select_charts(
    data: Dataset,
    profiles: Sequence[ColumnProfile],
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    rules: Optional[Sequence[ChartRule]] = None,
) -> List[ChartSpec]:
    sample = to_records(data)[:sample_size]
    groups = ColumnGroups.from_profiles(profiles)
    charts = [rule.build(sample, groups) for rule in (rules or CHART_RULES) if rule.applies(groups)]
    logger.debug("Selected charts: %s", [chart.id for chart in charts])
    return charts


def build_dashboard(data: Dataset, *, sample_size: int = DEFAULT_SAMPLE_SIZE) -> Dict[str, Any]:
    """Profile ``data``, pick charts and describe each one."""

    records = to_records(data)
    profiles = profile_dataset(records)
    charts = [
        chart.replace(insights=synthesize_insights(chart))
        for chart in select_charts(records, profiles, sample_size=sample_size)
    ]
    return {"profiles": profiles, "charts": charts}

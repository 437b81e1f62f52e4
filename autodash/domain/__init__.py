"""Domain-level analytics for the dashboard pipeline."""

from .charts import (
    CHART_TYPES,
    FORECAST_FLAG,
    ChartSpec,
    historical_points,
    is_forecast_point,
    new_chart_id,
    validate_chart,
)
from .forecast import fit_trend, forecast_chart, forecast_horizon, next_label
from .insights import MAX_INSIGHTS, NO_DATA_INSIGHT, pearson, synthesize_insights
from .merge import find_match, merge_charts
from .profiling import (
    SEMANTIC_TYPES,
    ColumnProfile,
    ColumnStats,
    dataset_overview,
    numeric_correlations,
    profile_column,
    profile_dataset,
)
from .records import is_missing, to_number, to_records
from .selection import CHART_RULES, ChartRule, build_dashboard, select_charts

__all__ = [
    "CHART_TYPES",
    "FORECAST_FLAG",
    "ChartSpec",
    "historical_points",
    "is_forecast_point",
    "new_chart_id",
    "validate_chart",
    "fit_trend",
    "forecast_chart",
    "forecast_horizon",
    "next_label",
    "MAX_INSIGHTS",
    "NO_DATA_INSIGHT",
    "pearson",
    "synthesize_insights",
    "find_match",
    "merge_charts",
    "SEMANTIC_TYPES",
    "ColumnProfile",
    "ColumnStats",
    "dataset_overview",
    "numeric_correlations",
    "profile_column",
    "profile_dataset",
    "is_missing",
    "to_number",
    "to_records",
    "CHART_RULES",
    "ChartRule",
    "build_dashboard",
    "select_charts",
]

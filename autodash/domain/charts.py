"""Chart specifications shared across the pipeline and the chat layer."""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

LINE = "line"
BAR = "bar"
AREA = "area"
PIE = "pie"
SCATTER = "scatter"
CHART_TYPES = (LINE, BAR, AREA, PIE, SCATTER)
FORECASTABLE_TYPES = (LINE, BAR, AREA)

FORECAST_FLAG = "isForecast"

_FIELD_ALIASES = {
    "chart_type": ("type", "chartType", "chart_type", "kind"),
    "series": ("data", "series"),
    "x_field": ("xKey", "xField", "x_field", "x"),
    "y_field": ("yKey", "yField", "y_field", "y"),
    "color_field": ("colorKey", "colorField", "color_field", "color"),
}


@dataclass(frozen=True)
class ChartSpec:
    id: str
    chart_type: str
    title: str
    description: str
    series: List[Dict[str, Any]]
    x_field: str
    y_field: Optional[str] = None
    color_field: Optional[str] = None
    insights: Optional[List[str]] = None

    @property
    def identity(self) -> Tuple[str, Optional[str]]:
        """Field pair used to reconcile proposals with existing charts."""
        return (self.x_field, self.y_field)

    def replace(self, **changes: Any) -> "ChartSpec":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.chart_type,
            "title": self.title,
            "description": self.description,
            "data": [dict(point) for point in self.series],
            "xKey": self.x_field,
        }
        if self.y_field is not None:
            payload["yKey"] = self.y_field
        if self.color_field is not None:
            payload["colorKey"] = self.color_field
        if self.insights is not None:
            payload["insights"] = list(self.insights)
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChartSpec":
        values = {name: _first_present(data, keys) for name, keys in _FIELD_ALIASES.items()}
        if not values["chart_type"] or not values["x_field"]:
            raise ValueError("Chart payload needs both a type and an x field.")
        insights = data.get("insights")
        chart = cls(
            id=str(data.get("id") or new_chart_id()),
            chart_type=str(values["chart_type"]).lower(),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            series=[dict(point) for point in (values["series"] or [])],
            x_field=str(values["x_field"]),
            y_field=values["y_field"],
            color_field=values["color_field"],
            insights=list(insights) if insights is not None else None,
        )
        validate_chart(chart)
        return chart


def _first_present(data: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def new_chart_id(prefix: str = "chat") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def is_forecast_point(point: Dict[str, Any]) -> bool:
    return point.get(FORECAST_FLAG) is True


def historical_points(series: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Observed points only; forecast points are never fed back into a model."""
    return [point for point in series if not is_forecast_point(point)]


def validate_chart(chart: ChartSpec) -> None:
    if chart.chart_type not in CHART_TYPES:
        raise ValueError(f"Unsupported chart type '{chart.chart_type}'.")
    if not chart.x_field:
        raise ValueError(f"Chart '{chart.id}' has no x field.")
    if not chart.y_field and chart.chart_type != PIE:
        raise ValueError(f"Chart '{chart.id}' of type {chart.chart_type} requires a y field.")

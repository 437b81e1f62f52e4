"""Request/response contract with the AI completion backend."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..domain.charts import ChartSpec, new_chart_id, validate_chart
from ..domain.records import Row, to_number

logger = logging.getLogger(__name__)

PROMPT_SAMPLE_ROWS = 50
INVALID_RESPONSE_MESSAGE = "Sorry, I received an invalid response format. Please try again."
DEFAULT_QUERIES = [
    "What's the average value?",
    "Show me trends with charts",
    "How many records are there?",
    "Create a visual analysis",
    "Summarize the key insights",
]

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)

PROMPT_TEMPLATE = """\
You are an expert data analyst with visualization capabilities. Read the user's question and answer it.

Your FINAL output MUST be a single valid JSON object with this structure:
{{
  "response": "Your detailed text answer.",
  "charts": [{{
    "id": "unique-chart-id",
    "type": "line" | "bar" | "area" | "pie" | "scatter",
    "title": "Descriptive chart title",
    "description": "Brief description of the chart.",
    "data": [ ... ],
    "xKey": "key_for_x_axis",
    "yKey": "key_for_y_axis",
    "colorKey": "key_for_pie_categories",
    "insights": ["Key observation from the chart."]
  }}]
}}

Return charts when the question asks for visualizations, trends over time, comparisons between
groups, distributions or breakdowns. Return an empty "charts" array for specific numeric
questions, yes/no questions, definitions, data quality questions, simple calculations and greetings.

Chart guidelines:
- Use 1-4 charts when a visualization is warranted.
- line for time-based trends, bar for category comparisons, area for cumulative trends,
  scatter for correlations, pie for proportions (only with fewer than 8 categories).
- "yKey" is mandatory for line, bar, area and scatter charts.
- For pie charts use "colorKey" for categories and "yKey" for values.
- Reuse the dataset's column names as keys and build "data" from the rows below.

Data sample (first {sample_size} rows): {rows}

User question: "{query}"
"""


def build_completion_prompt(query: str, rows: Sequence[Row], sample_size: int = PROMPT_SAMPLE_ROWS) -> str:
    sample = [dict(row) for row in list(rows)[:sample_size]]
    return PROMPT_TEMPLATE.format(
        sample_size=sample_size,
        rows=json.dumps(sample, default=str),
        query=query.strip(),
    )


class ChartProposal(BaseModel):
    """One chart as proposed by the completion backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    chart_type: Literal["line", "bar", "area", "pie", "scatter"] = Field(alias="type")
    title: Optional[str] = None
    description: Optional[str] = None
    data: List[Dict[str, Any]] = Field(default_factory=list)
    x_key: str = Field(alias="xKey", min_length=1)
    y_key: Optional[str] = Field(default=None, alias="yKey")
    color_key: Optional[str] = Field(default=None, alias="colorKey")
    insights: Optional[List[str]] = None

    @field_validator("chart_type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _valid_chart(self) -> "ChartProposal":
        validate_chart(self.to_chart())
        return self

    def to_chart(self) -> ChartSpec:
        return ChartSpec(
            id=self.id or new_chart_id(),
            chart_type=self.chart_type,
            title=self.title or "",
            description=self.description or "",
            series=[dict(point) for point in self.data],
            x_field=self.x_key,
            y_field=self.y_key,
            color_field=self.color_key,
            insights=list(self.insights) if self.insights is not None else None,
        )


class CompletionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    response: str = ""
    charts: List[ChartProposal] = Field(default_factory=list)

    @field_validator("charts", mode="before")
    @classmethod
    def _null_charts(cls, value: Any) -> Any:
        return [] if value is None else value


@dataclass
class CompletionResponse:
    response: str
    charts: List[ChartSpec] = field(default_factory=list)
    malformed: bool = False


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start:end + 1])


def parse_completion_response(raw: str) -> CompletionResponse:
    """Validate a completion payload; anything malformed yields no charts."""

    text = _strip_fences(raw or "")
    try:
        data = _load_json(text)
    except json.JSONDecodeError:
        logger.warning("Completion response is not valid JSON: %.200s", text)
        return CompletionResponse(response=text or INVALID_RESPONSE_MESSAGE, malformed=True)

    if not isinstance(data, dict):
        logger.warning("Completion response is not a JSON object: %.200s", text)
        return CompletionResponse(response=text or INVALID_RESPONSE_MESSAGE, malformed=True)

    try:
        payload = CompletionPayload.model_validate(data)
    except ValidationError as exc:
        logger.warning("Completion response failed validation: %s", exc)
        best_effort = data.get("response")
        if not isinstance(best_effort, str) or not best_effort.strip():
            best_effort = text or INVALID_RESPONSE_MESSAGE
        return CompletionResponse(response=best_effort, malformed=True)

    return CompletionResponse(response=payload.response, charts=[c.to_chart() for c in payload.charts])


def suggest_queries(rows: Optional[Sequence[Row]], limit: int = 5) -> List[str]:
    """Starter questions built from the first row's numeric and text columns."""

    if not rows:
        return list(DEFAULT_QUERIES)
    first = rows[0]
    numeric = [name for name, value in first.items() if to_number(value) is not None]
    text = [name for name in first.keys() if name not in numeric]

    queries: List[str] = []
    if numeric:
        queries.append(f"What is the average {numeric[0]}?")
        queries.append(f"Show {numeric[0]} trends")
    if text and numeric:
        queries.append(f"Visualize {numeric[0]} by {text[0]}")
        queries.append(f"Which {text[0]} has highest {numeric[0]}?")
    if numeric:
        queries.append("Analyze the data")
    if not queries:
        queries.append("Tell me about this data")
    return queries[:limit]

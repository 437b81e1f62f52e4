"""Caller-owned dashboard state shared by the pipeline and the assistant."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..config import Settings, configure_logging
from ..domain.charts import ChartSpec
from ..domain.forecast import DEFAULT_JITTER, DEFAULT_MAX_HORIZON, forecast_chart
from ..domain.profiling import ColumnProfile, dataset_overview
from ..domain.records import Dataset, to_records
from ..domain.selection import DEFAULT_SAMPLE_SIZE, build_dashboard
from .assistant import AssistantReply, ChartAssistant

logger = logging.getLogger(__name__)


@dataclass
class DashboardContext:
    """Holds the loaded rows, their profiles and the dashboard's charts.

    Pipeline functions never mutate their inputs; this object is where new
    values are committed, one chart slot at a time.
    """

    rows: Optional[List[Dict[str, Any]]] = None
    profiles: List[ColumnProfile] = field(default_factory=list)
    charts: List[ChartSpec] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    version: int = 0
    sample_size: int = DEFAULT_SAMPLE_SIZE
    forecast_max_horizon: int = DEFAULT_MAX_HORIZON
    forecast_jitter: float = DEFAULT_JITTER
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DashboardContext":
        configure_logging(settings.log_level)
        return cls(
            sample_size=settings.sample_size,
            forecast_max_horizon=settings.forecast_max_horizon,
            forecast_jitter=settings.forecast_jitter,
        )

    def require_rows(self) -> List[Dict[str, Any]]:
        """Return the loaded rows or raise a user-friendly error."""

        if self.rows is None:
            raise ValueError("No dataset loaded.")
        if not self.rows:
            raise ValueError("The loaded dataset is empty.")
        return self.rows

    def bump_version(self) -> None:
        self.version += 1

    def load(self, data: Dataset, **metadata: Any) -> List[ChartSpec]:
        """Replace the dataset; earlier profiles and charts are discarded."""

        with self._lock:
            self.rows = to_records(data)
            result = build_dashboard(self.rows, sample_size=self.sample_size)
            self.profiles = result["profiles"]
            self.charts = result["charts"]
            self.metadata = {**metadata, "rows": len(self.rows), "columns": len(self.profiles)}
            self.bump_version()
        logger.info("Loaded dataset v%d: %d rows, %d charts", self.version, len(self.rows), len(self.charts))
        return self.charts

    def regenerate(self) -> List[ChartSpec]:
        with self._lock:
            result = build_dashboard(self.require_rows(), sample_size=self.sample_size)
            self.charts = result["charts"]
        return self.charts

    def reset(self) -> None:
        with self._lock:
            self.rows = None
            self.profiles = []
            self.charts = []
            self.metadata = {}
            self.bump_version()

    def overview(self) -> Dict[str, Any]:
        return dataset_overview(self.profiles, len(self.rows or []))

    def chart(self, chart_id: str) -> ChartSpec:
        for chart in self.charts:
            if chart.id == chart_id:
                return chart
        raise KeyError(f"Chart '{chart_id}' not found.")

    def replace_chart(self, chart: ChartSpec) -> None:
        with self._lock:
            for index, existing in enumerate(self.charts):
                if existing.id == chart.id:
                    self.charts = self.charts[:index] + [chart] + self.charts[index + 1:]
                    return
        raise KeyError(f"Chart '{chart.id}' not found.")

    def forecast(
        self,
        chart_id: str,
        *,
        rng: Optional[np.random.Generator] = None,
        max_horizon: Optional[int] = None,
        jitter: Optional[float] = None,
    ) -> Optional[ChartSpec]:
        """Forecast one chart and store the result; ``None`` leaves it untouched."""

        with self._lock:
            result = forecast_chart(
                self.chart(chart_id),
                rng=rng,
                max_horizon=self.forecast_max_horizon if max_horizon is None else max_horizon,
                jitter=self.forecast_jitter if jitter is None else jitter,
            )
            if result is not None:
                self.replace_chart(result)
        return result

    def ask(self, assistant: ChartAssistant, query: str) -> AssistantReply:
        """Ask the assistant and commit its merged charts only on success."""

        reply = assistant.answer(query, self.rows or [], list(self.charts))
        return self._commit(reply)

    async def aask(self, assistant: ChartAssistant, query: str) -> AssistantReply:
        reply = await assistant.aanswer(query, self.rows or [], list(self.charts))
        return self._commit(reply)

    def _commit(self, reply: AssistantReply) -> AssistantReply:
        if reply.ok:
            with self._lock:
                self.charts = reply.charts
        return reply

import asyncio
import json
import logging
import time

import numpy as np
import pytest
from langchain_core.language_models import FakeListChatModel, FakeListLLM

from autodash.agents import ChartAssistant, DashboardContext
from autodash.agents.assistant import ERROR_MESSAGE
from autodash.config import Settings, configure_logging
from autodash.domain import ChartSpec


class BrokenModel:
    def invoke(self, prompt):
        raise ConnectionError("backend unreachable")

    async def ainvoke(self, prompt):
        raise ConnectionError("backend unreachable")


class SlowModel:
    def invoke(self, prompt):
        time.sleep(0.5)
        return "{}"

    async def ainvoke(self, prompt):
        await asyncio.sleep(0.5)
        return "{}"


def payload(*charts, response="Done"):
    return json.dumps({"response": response, "charts": list(charts)})


REVENUE_BY_REGION = {
    "id": "by-region",
    "type": "bar",
    "title": "Revenue by region",
    "description": "AI view",
    "data": [{"region": "North", "revenue": 1}],
    "xKey": "region",
    "yKey": "revenue",
}


@pytest.fixture
def dashboard(sales_rows):
    ctx = DashboardContext()
    ctx.load(sales_rows, filename="sales.csv")
    return ctx


def test_text_only_answer_leaves_charts(dashboard):
    before = list(dashboard.charts)
    assistant = ChartAssistant(llm=FakeListChatModel(responses=[payload(response="Average is 205")]))
    reply = dashboard.ask(assistant, "What is the average revenue?")
    assert reply.ok
    assert reply.response == "Average is 205"
    assert dashboard.charts == before


def test_matching_proposal_updates_bar_chart(dashboard):
    assistant = ChartAssistant(llm=FakeListChatModel(responses=[payload(REVENUE_BY_REGION)]))
    reply = dashboard.ask(assistant, "Visualize revenue by region")
    assert [c.id for c in dashboard.charts] == ["timeseries-1", "bar-1", "scatter-1", "area-1"]
    bar = dashboard.chart("bar-1")
    assert bar.series == [{"region": "North", "revenue": 1}]
    assert bar.description == "AI view"
    assert reply.proposals[0].id == "by-region"


def test_new_proposal_is_appended(dashboard):
    pie = dict(REVENUE_BY_REGION, id="share", type="pie", xKey="region", yKey="units", colorKey="region")
    assistant = ChartAssistant(llm=FakeListLLM(responses=[payload(pie)]))
    dashboard.ask(assistant, "Show unit share per region")
    assert len(dashboard.charts) == 5
    assert dashboard.charts[-1].id == "share"


def test_malformed_response_surfaces_text(dashboard):
    before = list(dashboard.charts)
    assistant = ChartAssistant(llm=FakeListChatModel(responses=["I could not build a chart."]))
    reply = dashboard.ask(assistant, "Chart it")
    assert reply.ok
    assert reply.response == "I could not build a chart."
    assert dashboard.charts == before


def test_transport_failure_commits_nothing(dashboard):
    before = list(dashboard.charts)
    reply = dashboard.ask(ChartAssistant(llm=BrokenModel()), "Show trends")
    assert not reply.ok
    assert reply.response == ERROR_MESSAGE
    assert "unreachable" in reply.error
    assert dashboard.charts == before


def test_timeout_commits_nothing(dashboard):
    before = list(dashboard.charts)
    reply = dashboard.ask(ChartAssistant(llm=SlowModel(), timeout=0.05), "Show trends")
    assert not reply.ok
    assert "timed out" in reply.error
    assert dashboard.charts == before


def test_async_answer_and_timeout(dashboard):
    assistant = ChartAssistant(llm=FakeListChatModel(responses=[payload(REVENUE_BY_REGION)]))
    reply = asyncio.run(dashboard.aask(assistant, "Visualize revenue by region"))
    assert reply.ok
    assert dashboard.chart("bar-1").description == "AI view"

    slow = asyncio.run(ChartAssistant(llm=SlowModel(), timeout=0.05).aanswer("q", [], []))
    assert not slow.ok


def test_blank_query_skips_backend():
    reply = ChartAssistant(llm=BrokenModel()).answer("   ", [], [])
    assert reply.ok and reply.response == ""


def test_context_forecast_updates_slot(dashboard):
    before = dashboard.chart("timeseries-1")
    result = dashboard.forecast("timeseries-1", rng=np.random.default_rng(1))
    assert result is not None
    assert dashboard.chart("timeseries-1") is result
    assert len(result.series) == len(before.series) + 6
    assert dashboard.charts.index(result) == 0


def test_context_forecast_abort_keeps_chart(dashboard):
    scatter = dashboard.chart("scatter-1")
    assert dashboard.forecast("scatter-1") is None
    assert dashboard.chart("scatter-1") is scatter


def test_reload_discards_previous_state(dashboard):
    version = dashboard.version
    dashboard.load([{"v": 1}, {"v": 2}])
    assert dashboard.version == version + 1
    assert [c.id for c in dashboard.charts] == ["area-1"]
    assert dashboard.overview()["rows"] == 2


def test_empty_context_requires_rows():
    ctx = DashboardContext()
    with pytest.raises(ValueError):
        ctx.require_rows()
    with pytest.raises(KeyError):
        ctx.chart("missing")
    with pytest.raises(KeyError):
        ctx.replace_chart(ChartSpec(id="x", chart_type="line", title="", description="", series=[], x_field="a", y_field="b"))


def test_context_from_settings_applies_forecast_and_log_settings(sales_rows):
    settings = Settings(
        openai_api_key=None, sample_size=10, forecast_max_horizon=2, forecast_jitter=0.0, log_level="WARNING"
    )
    try:
        ctx = DashboardContext.from_settings(settings)
        assert logging.getLogger().level == logging.WARNING
    finally:
        configure_logging("INFO")
    ctx.load(sales_rows)
    assert len(ctx.chart("timeseries-1").series) == 10

    first = ctx.forecast("timeseries-1", rng=np.random.default_rng(1))
    forecast_points = [p for p in first.series if p.get("isForecast")]
    assert len(forecast_points) == 2
    again = ctx.forecast("timeseries-1", rng=np.random.default_rng(7))
    assert again.series == first.series

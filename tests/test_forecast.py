import numpy as np
import pytest

from autodash.domain import ChartSpec, fit_trend, forecast_chart, forecast_horizon, next_label


class FixedRng:
    """Stands in for a numpy Generator with a constant draw."""

    def __init__(self, draw=0.0):
        self.draw = draw

    def uniform(self, low, high):
        return self.draw


def test_fit_perfect_line():
    fit = fit_trend([10, 20, 30])
    assert fit.slope == pytest.approx(10)
    assert fit.intercept == pytest.approx(10)
    assert fit.predict(3) == pytest.approx(40)


@pytest.mark.parametrize("history,expected", [(2, 1), (3, 1), (4, 2), (10, 3), (11, 4), (40, 12), (100, 12)])
def test_horizon(history, expected):
    assert forecast_horizon(history) == expected


def test_first_step_within_jitter(line_chart, rng):
    result = forecast_chart(line_chart, rng=rng)
    forecast = [p for p in result.series if p.get("isForecast")]
    assert len(forecast) == 1
    assert 38 <= forecast[0]["revenue"] <= 42
    assert forecast[0]["month"] == "M4"


def test_unjittered_prediction(line_chart):
    result = forecast_chart(line_chart, rng=FixedRng(0.0))
    assert result.series[-1] == {"month": "M4", "revenue": 40.0, "isForecast": True}


def test_jitter_bounds(line_chart):
    high = forecast_chart(line_chart, rng=FixedRng(1.0)).series[-1]["revenue"]
    low = forecast_chart(line_chart, rng=FixedRng(-1.0)).series[-1]["revenue"]
    assert (low, high) == (38.0, 42.0)


def test_predictions_floored_at_zero():
    chart = ChartSpec(
        id="c", chart_type="bar", title="", description="",
        series=[{"x": i, "y": v} for i, v in enumerate([30, 20, 10, 1])],
        x_field="x", y_field="y",
    )
    result = forecast_chart(chart, rng=FixedRng(0.0))
    forecast = [p for p in result.series if p.get("isForecast")]
    assert [p["x"] for p in forecast] == [4, 5]
    assert all(p["y"] == 0 for p in forecast)


def test_seeded_forecasts_are_reproducible(line_chart):
    first = forecast_chart(line_chart, rng=np.random.default_rng(7))
    second = forecast_chart(line_chart, rng=np.random.default_rng(7))
    assert first == second


def test_refresh_ignores_previous_forecast(line_chart):
    once = forecast_chart(line_chart, rng=FixedRng(1.0))
    twice = forecast_chart(once, rng=FixedRng(0.0))
    assert len(twice.series) == 4
    assert twice.series[:3] == line_chart.series
    assert twice.series[-1]["revenue"] == 40.0


def test_input_chart_untouched(line_chart):
    before = [dict(p) for p in line_chart.series]
    forecast_chart(line_chart, rng=FixedRng(0.0))
    assert line_chart.series == before
    assert line_chart.insights is None


def test_forecast_insight_appended(line_chart):
    result = forecast_chart(line_chart, rng=FixedRng(0.0))
    assert result.insights[0].startswith("revenue trends upward")
    assert result.insights[-1] == "Forecast projects growth of 33.3% in revenue over the next 1 period"
    assert len(result.insights) <= 5


@pytest.mark.parametrize("chart_type", ["pie", "scatter"])
def test_unsupported_types_abort(line_chart, chart_type):
    assert forecast_chart(line_chart.replace(chart_type=chart_type)) is None


def test_insufficient_history_aborts(line_chart):
    short = line_chart.replace(series=line_chart.series[:1] + [{"month": "M9", "revenue": 5, "isForecast": True}])
    assert forecast_chart(short) is None
    assert forecast_chart(line_chart.replace(y_field=None)) is None


@pytest.mark.parametrize(
    "last,step,expected",
    [
        (2023, 1, 2024),
        (2.5, 2, 4.5),
        ("2023", 2, "2025"),
        ("Week 9", 1, "Week 10"),
        ("P07 actual", 3, "P10 actual"),
        ("Q4 2023", 1, "Q4 2024"),
        ("Jan", 2, "Forecast 2"),
        (None, 1, "Forecast 1"),
    ],
)
def test_next_label(last, step, expected):
    assert next_label(last, step) == expected

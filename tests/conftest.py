import numpy as np
import pytest

from autodash.domain import ChartSpec


@pytest.fixture
def sales_rows():
    regions = ["North", "South", "East", "West"]
    return [
        {
            "date": f"2024-01-{day:02d}",
            "region": regions[day % 4],
            "revenue": 100 + day * 10,
            "units": day * 2,
        }
        for day in range(1, 21)
    ]


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def line_chart():
    return ChartSpec(
        id="timeseries-1",
        chart_type="line",
        title="Time Series Analysis",
        description="revenue over month",
        series=[{"month": f"M{i}", "revenue": v} for i, v in enumerate([10, 20, 30], start=1)],
        x_field="month",
        y_field="revenue",
    )

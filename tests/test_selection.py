import json

from autodash.domain import build_dashboard, profile_dataset, select_charts


def test_all_four_rules_fire_in_order(sales_rows):
    charts = select_charts(sales_rows, profile_dataset(sales_rows))
    assert [c.id for c in charts] == ["timeseries-1", "bar-1", "scatter-1", "area-1"]
    assert [c.chart_type for c in charts] == ["line", "bar", "scatter", "area"]


def test_line_chart_binds_first_temporal_and_numerical(sales_rows):
    line = select_charts(sales_rows, profile_dataset(sales_rows))[0]
    assert (line.x_field, line.y_field) == ("date", "revenue")
    assert line.series == sales_rows


def test_bar_chart_sums_per_category_in_first_seen_order():
    rows = [
        {"team": "B", "score": 5},
        {"team": "A", "score": 1},
        {"team": "B", "score": "7"},
        {"team": "C", "score": None},
    ]
    charts = select_charts(rows, profile_dataset(rows))
    bar = next(c for c in charts if c.chart_type == "bar")
    assert bar.series == [
        {"team": "B", "score": 12.0},
        {"team": "A", "score": 1.0},
        {"team": "C", "score": 0.0},
    ]


def test_area_chart_plots_value_against_one_based_index(sales_rows):
    area = select_charts(sales_rows, profile_dataset(sales_rows))[-1]
    assert (area.x_field, area.y_field) == ("index", "value")
    assert area.series[0] == {"index": 1, "value": 110.0}
    assert area.series[-1]["index"] == 20


def test_sample_is_capped():
    rows = [{"v": i, "w": i * 2} for i in range(120)]
    charts = select_charts(rows, profile_dataset(rows), sample_size=50)
    assert all(len(c.series) == 50 for c in charts)


def test_single_numeric_column_only_gets_distribution():
    rows = [{"v": i} for i in range(5)]
    charts = select_charts(rows, profile_dataset(rows))
    assert [c.chart_type for c in charts] == ["area"]


def test_no_charts_without_numbers():
    rows = [{"name": f"person {chr(65 + i)}"} for i in range(3)]
    assert select_charts(rows, profile_dataset(rows)) == []
    assert select_charts([], []) == []


def test_selection_is_deterministic(sales_rows):
    profiles = profile_dataset(sales_rows)
    assert select_charts(sales_rows, profiles) == select_charts(sales_rows, profiles)


def test_selection_does_not_mutate_input(sales_rows):
    snapshot = [dict(r) for r in sales_rows]
    charts = select_charts(sales_rows, profile_dataset(sales_rows))
    charts[0].series[0]["revenue"] = -1
    assert sales_rows == snapshot


def test_build_dashboard_attaches_insights(sales_rows):
    result = build_dashboard(sales_rows)
    assert len(result["profiles"]) == 4
    assert all(chart.insights for chart in result["charts"])


def test_missing_category_becomes_null_label():
    rows = [
        {"team": "A", "s": 1},
        {"team": "B", "s": 3},
        {"team": None, "s": 2},
        {"team": "", "s": 4},
        {"team": "A", "s": 5},
    ]
    bar = select_charts(rows, profile_dataset(rows))[0]
    assert bar.id == "bar-1"
    assert bar.series == [{"team": "A", "s": 6.0}, {"team": "B", "s": 3.0}, {"team": None, "s": 6.0}]
    json.dumps(bar.to_dict(), allow_nan=False)

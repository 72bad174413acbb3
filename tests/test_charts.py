import json

import pytest
from pydantic import ValidationError

from csv_insight import charts as charts_mod
from csv_insight.parser import parse_csv
from csv_insight.profiler import analyze_data


def _build(csv_text, chart_type=None):
    table = parse_csv(csv_text)
    analysis = analyze_data(table)
    chart_type = chart_type or analysis.recommendation.suggested_chart_type
    return table, analysis, charts_mod.build_chart_data(table, analysis, chart_type)


def test_line_chart_over_dates(sales_csv):
    _, _, data = _build(sales_csv)

    assert data.labels == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04"]
    assert len(data.datasets) == 1
    ds = data.datasets[0]
    assert ds.label == "sales"
    # the empty cell is coerced to 0
    assert ds.data == [100, 150, 50, 0]
    assert ds.background_color == "hsl(0, 70%, 50%)"
    assert ds.border_color == "hsl(0, 70%, 40%)"


def test_dataset_colors_rotate_by_sixty_degrees():
    _, _, data = _build("x,a,b,c\n1,2,3,4\n5,6,7,8\n", "bar")

    assert [d.label for d in data.datasets] == ["a", "b", "c"]
    assert [d.background_color for d in data.datasets] == [
        "hsl(0, 70%, 50%)",
        "hsl(60, 70%, 50%)",
        "hsl(120, 70%, 50%)",
    ]
    assert data.labels == ["1", "5"]


def test_pie_counts_categories_in_first_seen_order():
    _, _, data = _build("color,shape\nred,circle\nblue,square\nred,circle\ngreen,dot\n")

    assert data.labels == ["red", "blue", "green"]
    assert len(data.datasets) == 1
    assert data.datasets[0].label == "color"
    assert data.datasets[0].data == [2, 1, 1]
    assert data.datasets[0].background_color == [
        "hsl(0, 70%, 50%)",
        "hsl(120, 70%, 50%)",
        "hsl(240, 70%, 50%)",
    ]


def test_histogram_has_ten_bins_covering_all_values():
    values = [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 10]
    csv_text = "v\n" + "\n".join(str(v) for v in values) + "\n"
    _, _, data = _build(csv_text)

    assert len(data.labels) == 10
    counts = data.datasets[0].data
    assert len(counts) == 10
    assert sum(counts) == len(values)
    # max value is clamped into the last bin
    assert counts[-1] == 3
    assert data.labels[0] == "0.0-1.0"
    assert data.labels[-1] == "9.0-10.0"


def test_histogram_skips_non_numeric_cells():
    _, _, data = _build("v\n1\n2\n3\n4\nabc\n\n", "histogram")

    assert sum(data.datasets[0].data) == 4


def test_histogram_single_value_uses_unit_width_bin():
    labels, counts = charts_mod.histogram_bins([5.0, 5.0, 5.0])

    assert len(labels) == 10
    assert counts[0] == 3
    assert sum(counts) == 3
    assert labels[0] == "5.0-6.0"


def test_histogram_without_numbers_gives_placeholder():
    _, _, data = _build("name\nann\nbob\n", "histogram")

    assert data.labels == ["No Data"]
    assert data.datasets[0].data == [0]


def test_scatter_points():
    _, _, data = _build("h,w\n1,10\n2,abc\n3,30\n4,40\n5,50\n", "scatter")

    assert data.labels == []
    assert data.datasets[0].label == "w"
    assert [(p.x, p.y) for p in data.datasets[0].data] == [(1, 10), (3, 30), (4, 40), (5, 50)]


def test_unknown_type_falls_back_to_rows():
    _, _, data = _build("a,b\n3,x\nfoo,y\n", "heatmap")

    assert data.labels == ["Row 1", "Row 2"]
    assert data.datasets[0].label == "Data"
    assert data.datasets[0].data == [3, 0]


def test_chart_spec_serializes_with_camel_case_fields(sales_csv):
    table = parse_csv(sales_csv)
    analysis = analyze_data(table)
    spec = charts_mod.build_chart_spec(table, analysis, "line")

    payload = json.loads(spec.model_dump_json(by_alias=True))
    assert payload["type"] == "line"
    assert payload["title"] == "line Chart"
    assert payload["xAxisLabel"] == "date"
    assert payload["yAxisLabel"] == "sales"
    assert payload["data"]["datasets"][0]["backgroundColor"] == "hsl(0, 70%, 50%)"


def test_non_finite_values_are_zeroed():
    ds = charts_mod.ChartDataset(label="x", data=[1.0, float("inf"), float("nan")], background_color="c")

    assert ds.data == [1.0, 0, 0]


def test_safe_number():
    assert charts_mod.safe_number("12") == 12
    assert charts_mod.safe_number("x") == 0
    assert charts_mod.safe_number(None) == 0


def test_histogram_bins_span_the_full_float_range():
    labels, counts = charts_mod.histogram_bins([-1e308, 1e308, 5e307, -5e307])

    assert counts == [1, 0, 1, 0, 0, 0, 0, 1, 0, 1]
    assert not any("nan" in label or "inf" in label for label in labels)


def test_chart_spec_is_immutable(sales_csv):
    table = parse_csv(sales_csv)
    spec = charts_mod.build_chart_spec(table, analyze_data(table), "bar")

    with pytest.raises(ValidationError):
        spec.title = "changed"
    assert spec.title == "bar Chart"

from csv_insight.parser import parse_csv
from csv_insight.profiler import profile_columns
from csv_insight.recommender import recommend_chart
from csv_insight.schemas import ColumnStats, ColumnType


def _recommend(csv_text):
    table = parse_csv(csv_text)
    return recommend_chart(table, profile_columns(table))


def _col(name, col_type, unique=3):
    return ColumnStats(column=name, type=col_type, count=3, null_count=0, unique_count=unique)


def test_date_and_numeric_gives_line_over_dates():
    rec = _recommend("date,sales\n2024-01-01,10\n2024-01-02,20\n")

    assert rec.suggested_chart_type == "line"
    assert rec.x_axis == "date"
    assert rec.y_axis == ["sales"]
    assert rec.reasoning


def test_date_rule_ignores_column_order():
    rec = _recommend("sales,region,date\n10,A,2024-01-01\n20,B,2024-01-02\n")

    assert rec.suggested_chart_type == "line"
    assert rec.x_axis == "date"
    assert rec.y_axis == ["sales"]


def test_category_and_single_numeric_gives_column_chart():
    rec = _recommend("region,sales\nEast,10\nWest,20\nEast,5\n")

    assert rec.suggested_chart_type == "column"
    assert rec.x_axis == "region"
    assert rec.y_axis == ["sales"]


def test_high_cardinality_text_skips_category_rule():
    stats = [_col("name", ColumnType.TEXT, unique=25), _col("score", ColumnType.NUMERIC)]
    rec = recommend_chart(None, stats)

    assert rec.suggested_chart_type == "histogram"
    assert rec.x_axis == "score"
    assert rec.y_axis == []


def test_multiple_numeric_columns_gives_line():
    rec = _recommend("x,y,z\n1,2,3\n4,5,6\n")

    assert rec.suggested_chart_type == "line"
    assert rec.x_axis == "x"
    assert rec.y_axis == ["y", "z"]


def test_single_numeric_column_gives_histogram():
    rec = _recommend("v\n1\n2\n3\n")

    assert rec.suggested_chart_type == "histogram"
    assert rec.x_axis == "v"


def test_small_text_column_gives_pie():
    rec = _recommend("color,shape\nred,circle\nblue,square\nred,circle\n")

    assert rec.suggested_chart_type == "pie"
    assert rec.x_axis == "color"


def test_fallback_overview():
    stats = [_col("id", ColumnType.TEXT, unique=50), _col("mix", ColumnType.MIXED)]
    rec = recommend_chart(None, stats)

    assert rec.suggested_chart_type == "column"
    assert rec.x_axis is None
    assert rec.y_axis is None
    assert "overview" in rec.reasoning


def test_identical_stats_give_identical_recommendation():
    stats = [_col("a", ColumnType.NUMERIC), _col("b", ColumnType.NUMERIC), _col("c", ColumnType.TEXT)]

    assert recommend_chart(None, stats) == recommend_chart(None, list(stats))

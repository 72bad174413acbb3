from csv_insight import profiler as profiler_mod
from csv_insight.parser import parse_csv
from csv_insight.schemas import ColumnType


def _stats_by_name(table):
    return {s.column: s for s in profiler_mod.profile_columns(table)}


def test_profile_example_table():
    stats = _stats_by_name(parse_csv("a,b\n1,x\n2,y\n3,x\n"))

    a = stats["a"]
    assert a.type == ColumnType.NUMERIC
    assert (a.min, a.max, a.mean, a.median, a.sum) == (1, 3, 2, 2, 6)
    assert a.most_common is None

    b = stats["b"]
    assert b.type == ColumnType.TEXT
    assert b.most_common == "x"
    assert b.most_common_count == 2
    assert b.min is None


def test_counts_add_up_to_row_count(sales_csv):
    table = parse_csv(sales_csv)

    for stat in profiler_mod.profile_columns(table):
        assert stat.count + stat.null_count == table.row_count

    sales = _stats_by_name(table)["sales"]
    assert sales.count == 3
    assert sales.null_count == 1
    assert sales.min <= sales.median <= sales.max


def test_median_is_lower_middle_element_for_even_counts():
    rows = [{"v": v} for v in [40, 10, 30, 20]]
    stat = profiler_mod.analyze_column("v", rows)

    # sorted -> [10, 20, 30, 40]; index 4 // 2 == 2
    assert stat.median == 30


def test_min_max_do_not_assume_sorted_input():
    rows = [{"v": v} for v in [5, -2, 9, 0]]
    stat = profiler_mod.analyze_column("v", rows)

    assert stat.min == -2
    assert stat.max == 9


def test_mean_and_sum_round_to_two_decimals():
    rows = [{"v": v} for v in [1, 2, 2]]
    stat = profiler_mod.analyze_column("v", rows)

    assert stat.mean == 1.67
    assert stat.sum == 5


def test_dominance_threshold():
    # 4 of 5 numeric -> exactly 80% -> numeric
    rows = [{"v": v} for v in [1, 2, 3, 4, "n/a"]]
    assert profiler_mod.analyze_column("v", rows).type == ColumnType.NUMERIC

    # 3 of 5 -> mixed
    rows = [{"v": v} for v in [1, 2, 3, "a", "b"]]
    stat = profiler_mod.analyze_column("v", rows)
    assert stat.type == ColumnType.MIXED
    assert stat.most_common == "1"
    assert stat.most_common_count == 1


def test_numeric_stats_ignore_stray_text_values():
    rows = [{"v": v} for v in [10, 20, 30, 40, "oops"]]
    stat = profiler_mod.analyze_column("v", rows)

    assert stat.type == ColumnType.NUMERIC
    assert stat.count == 5
    assert stat.sum == 100
    assert stat.median == 30


def test_date_detection():
    assert profiler_mod.detect_column_type(["2024-01-01", "2024-02-01T10:00"]) == ColumnType.DATE
    assert profiler_mod.detect_column_type(["1/2/24", "12/31/2024"]) == ColumnType.DATE
    assert profiler_mod.detect_column_type(["Jan 1", "Feb 2"]) == ColumnType.TEXT


def test_most_common_ties_go_to_first_seen():
    rows = [{"c": v} for v in ["b", "a", "a", "b", "c"]]
    stat = profiler_mod.analyze_column("c", rows)

    assert stat.most_common == "b"
    assert stat.most_common_count == 2


def test_all_empty_column():
    rows = [{"c": ""}, {"c": ""}]
    stat = profiler_mod.analyze_column("c", rows)

    assert stat.count == 0
    assert stat.null_count == 2
    assert stat.unique_count == 0
    assert stat.most_common is None


def test_analyze_data_summary(sales_csv):
    table = parse_csv(sales_csv)
    analysis = profiler_mod.analyze_data(table)

    assert analysis.summary.total_rows == 4
    assert analysis.summary.total_columns == 3
    assert analysis.summary.column_names == ["date", "region", "sales"]
    assert [s.column for s in analysis.column_stats] == table.headers
    assert analysis.recommendation.suggested_chart_type == "line"


def test_numeric_stats_keep_cell_types():
    stats = profiler_mod.numeric_stats([3, 1.5, 2])

    assert stats["min"] == 1.5 and isinstance(stats["min"], float)
    assert stats["max"] == 3 and isinstance(stats["max"], int)
    assert stats["median"] == 2 and isinstance(stats["median"], int)
    assert stats["sum"] == 6.5
    assert stats["mean"] == 2.17


def test_numeric_stats_survive_float_overflow():
    stats = profiler_mod.numeric_stats([1e308, 1e308])

    assert stats["sum"] is None
    assert stats["mean"] == 1e308
    assert stats["median"] == 1e308

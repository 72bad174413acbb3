"""
Column profiling: type detection and descriptive statistics.

A column's type is decided by dominance: a kind wins when it accounts for at
least DOMINANCE_THRESHOLD of the non-empty values (numeric first, then date,
then text); otherwise the column is mixed.
"""

import logging
import math
import re
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .recommender import recommend_chart
from .schemas import ColumnStats, ColumnType, DataAnalysis, DataSummary, ParsedTable

logger = logging.getLogger(__name__)

DOMINANCE_THRESHOLD = 0.8

# YYYY-MM-DD or M/D/YY[YY] at the start of the value.
DATE_PATTERN = re.compile(r"^(?:[0-9]{4}-[0-9]{2}-[0-9]{2}|[0-9]{1,2}/[0-9]{1,2}/[0-9]{2,4})")

Cell = Union[int, float, str]


def is_empty(value) -> bool:
    return value is None or value == ""


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def display_value(value) -> str:
    """Stringify a cell the way it is shown to users (2.0 -> "2")."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def detect_column_type(values: Sequence[Cell]) -> ColumnType:
    numeric_count = 0
    date_count = 0
    text_count = 0

    for value in values:
        if is_empty(value):
            continue
        if is_number(value):
            numeric_count += 1
        elif DATE_PATTERN.match(str(value)):
            date_count += 1
        else:
            text_count += 1

    total = numeric_count + date_count + text_count
    if total == 0:
        return ColumnType.TEXT

    if numeric_count / total >= DOMINANCE_THRESHOLD:
        return ColumnType.NUMERIC
    if date_count / total >= DOMINANCE_THRESHOLD:
        return ColumnType.DATE
    if text_count / total >= DOMINANCE_THRESHOLD:
        return ColumnType.TEXT
    return ColumnType.MIXED


def _scalar(value):
    # numpy scalar -> plain int/float; object Series hand back the cell itself
    return value.item() if hasattr(value, "item") else value


def numeric_stats(values: List[Union[int, float]]) -> Dict[str, Optional[Union[int, float]]]:
    """min/max/mean/median/sum; median is the element at n // 2 of the sorted values."""
    series = pd.Series(values, dtype=object)
    n = len(series)
    as_float = series.astype(float)

    # Scale before summing so the mean stays finite when the sum overflows.
    total = float(as_float.sum())
    mean = float((as_float / n).sum())
    if math.isfinite(total) and pd.api.types.infer_dtype(series) == "integer" and total.is_integer():
        total = int(total)

    return {
        "min": _scalar(series.min()),
        "max": _scalar(series.max()),
        "mean": round(mean, 2) if math.isfinite(mean) else None,
        "median": _scalar(series.sort_values(ignore_index=True).iloc[n // 2]),
        "sum": round(total, 2) if math.isfinite(total) else None,
    }


def most_common(values: Sequence[Cell]):
    """Most frequent stringified value and its count; ties go to the first seen."""
    if not values:
        return "", 0
    counts = pd.Series([display_value(v) for v in values], dtype=object).value_counts(sort=False)
    top = counts.idxmax()
    return top, int(counts[top])


def analyze_column(column: str, rows: Sequence[Dict[str, Cell]]) -> ColumnStats:
    values = [row.get(column) for row in rows]
    non_null = [v for v in values if not is_empty(v)]

    col_type = detect_column_type(non_null)
    extra = {}

    if col_type == ColumnType.NUMERIC:
        extra.update(numeric_stats([v for v in non_null if is_number(v)]))

    if col_type in (ColumnType.TEXT, ColumnType.MIXED) and non_null:
        value, count = most_common(non_null)
        extra["most_common"] = value
        extra["most_common_count"] = count

    return ColumnStats(
        column=column,
        type=col_type,
        count=len(non_null),
        null_count=len(rows) - len(non_null),
        unique_count=int(pd.Series(non_null, dtype=object).nunique()),
        **extra,
    )


def profile_columns(table: ParsedTable) -> List[ColumnStats]:
    return [analyze_column(header, table.rows) for header in table.headers]


def analyze_data(table: ParsedTable) -> DataAnalysis:
    """Summary, per-column statistics and a chart recommendation for one table."""
    column_stats = profile_columns(table)
    recommendation = recommend_chart(table, column_stats)

    logger.info(
        "analysis.done rows=%d columns=%d chart=%s types=%s",
        table.row_count,
        table.column_count,
        recommendation.suggested_chart_type,
        ",".join(s.type.value for s in column_stats),
    )

    return DataAnalysis(
        summary=DataSummary(
            total_rows=table.row_count,
            total_columns=table.column_count,
            column_names=list(table.headers),
        ),
        column_stats=column_stats,
        recommendation=recommendation,
    )

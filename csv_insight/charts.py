"""
DETERMINISTIC conversion of a parsed table into renderer-agnostic chart data.

Output format (same for every chart type):
    {"labels": [...], "datasets": [{"label": ..., "data": [...], "backgroundColor": ..., "borderColor": ...}]}

- column / bar / line / area: one label per row, one dataset per y column
- pie: one label per distinct category, counts in a single dataset
- histogram: 10 equal-width bins over [min, max]
- scatter: {x, y} points, one dataset per y column
- anything else: one point per row ("Row N") from the first column
"""

import logging
from typing import List, Optional

import numpy as np

from .parser import to_number
from .profiler import display_value
from .schemas import (
    ChartData,
    ChartDataset,
    ChartSpec,
    ColumnType,
    DataAnalysis,
    ParsedTable,
    ScatterPoint,
)

logger = logging.getLogger(__name__)

HISTOGRAM_BINS = 10
DEFAULT_COLOR = "hsl(200, 70%, 50%)"

_SERIES_TYPES = ("column", "bar", "line", "area")


def safe_number(value) -> float:
    """Finite number for a cell; anything invalid becomes 0."""
    num = to_number(value)
    return 0 if num is None else num


def _hsl(hue: float, lightness: int) -> str:
    hue_text = display_value(float(hue))
    return f"hsl({hue_text}, 70%, {lightness}%)"


def _columns_of_type(analysis: DataAnalysis, *types: ColumnType) -> List[str]:
    return [s.column for s in analysis.column_stats if s.type in types]


def _series_chart(table: ParsedTable, analysis: DataAnalysis) -> ChartData:
    rec = analysis.recommendation
    x_axis = (
        rec.x_axis
        or next(iter(_columns_of_type(analysis, ColumnType.TEXT, ColumnType.DATE)), None)
        or table.headers[0]
    )
    y_axes = rec.y_axis or [c for c in _columns_of_type(analysis, ColumnType.NUMERIC) if c != x_axis]

    return ChartData(
        labels=[display_value(row.get(x_axis, "")) for row in table.rows],
        datasets=[
            ChartDataset(
                label=y_axis,
                data=[safe_number(row.get(y_axis)) for row in table.rows],
                background_color=_hsl(index * 60, 50),
                border_color=_hsl(index * 60, 40),
            )
            for index, y_axis in enumerate(y_axes)
        ],
    )


def _pie_chart(table: ParsedTable, analysis: DataAnalysis) -> ChartData:
    category = (
        analysis.recommendation.x_axis
        or next(iter(_columns_of_type(analysis, ColumnType.TEXT)), None)
        or table.headers[0]
    )

    counts = {}
    for row in table.rows:
        key = display_value(row.get(category, ""))
        counts[key] = counts.get(key, 0) + 1

    labels = list(counts.keys())
    return ChartData(
        labels=labels,
        datasets=[
            ChartDataset(
                label=category,
                data=list(counts.values()),
                background_color=[_hsl(i * 360 / len(labels), 50) for i in range(len(labels))],
            )
        ],
    )


def _histogram_column(table: ParsedTable, analysis: DataAnalysis) -> str:
    numeric = _columns_of_type(analysis, ColumnType.NUMERIC)
    x_axis = analysis.recommendation.x_axis
    if x_axis in numeric:
        return x_axis
    return numeric[0] if numeric else table.headers[0]


def histogram_bins(values: List[float], bin_count: int = HISTOGRAM_BINS):
    """
    Equal-width bins over [min, max].

    Returns (labels, counts). When all values are equal the bin width is 1
    and every value lands in the first bin.
    """
    arr = np.asarray(values, dtype=float)
    vmin = float(arr.min())
    vmax = float(arr.max())
    # Divide before subtracting; vmax - vmin can overflow for finite values.
    width = vmax / bin_count - vmin / bin_count
    spread = vmax > vmin and width > 0
    if not spread:
        width = 1.0

    if spread:
        idx = np.floor(arr / width - vmin / width).astype(int)
        idx = np.clip(idx, 0, bin_count - 1)
    else:
        idx = np.zeros(len(arr), dtype=int)

    counts = np.bincount(idx, minlength=bin_count)

    def edge(i):
        if not spread:
            return vmin + i * width
        t = i / bin_count
        return vmin * (1 - t) + vmax * t

    labels = [f"{edge(i):.1f}-{edge(i + 1):.1f}" for i in range(bin_count)]
    return labels, [int(c) for c in counts]


def _histogram_chart(table: ParsedTable, analysis: DataAnalysis) -> ChartData:
    column = _histogram_column(table, analysis)
    values = []
    for row in table.rows:
        value = row.get(column)
        if isinstance(value, (int, float)) and to_number(value) is not None:
            values.append(float(value))

    if not values:
        return ChartData(
            labels=["No Data"],
            datasets=[ChartDataset(label=column, data=[0], background_color=DEFAULT_COLOR)],
        )

    labels, counts = histogram_bins(values)
    return ChartData(
        labels=labels,
        datasets=[ChartDataset(label=column, data=counts, background_color=DEFAULT_COLOR)],
    )


def _scatter_chart(table: ParsedTable, analysis: DataAnalysis) -> Optional[ChartData]:
    numeric = _columns_of_type(analysis, ColumnType.NUMERIC)
    if not numeric:
        return None

    x_axis = analysis.recommendation.x_axis if analysis.recommendation.x_axis in numeric else numeric[0]
    datasets = []
    for index, y_axis in enumerate(c for c in numeric if c != x_axis):
        points = []
        for row in table.rows:
            x = to_number(row.get(x_axis))
            y = to_number(row.get(y_axis))
            if x is not None and y is not None:
                points.append(ScatterPoint(x=x, y=y))
        datasets.append(
            ChartDataset(
                label=y_axis,
                data=points,
                background_color=_hsl(index * 60, 50),
                border_color=_hsl(index * 60, 40),
            )
        )
    return ChartData(labels=[], datasets=datasets)


def _row_chart(table: ParsedTable) -> ChartData:
    first = table.headers[0] if table.headers else None
    return ChartData(
        labels=[f"Row {i + 1}" for i in range(len(table.rows))],
        datasets=[
            ChartDataset(
                label="Data",
                data=[safe_number(row.get(first)) if first else 0 for row in table.rows],
                background_color=DEFAULT_COLOR,
            )
        ],
    )


def build_chart_data(table: ParsedTable, analysis: DataAnalysis, chart_type: str) -> ChartData:
    if chart_type in _SERIES_TYPES:
        return _series_chart(table, analysis)
    if chart_type == "pie":
        return _pie_chart(table, analysis)
    if chart_type == "histogram":
        return _histogram_chart(table, analysis)
    if chart_type == "scatter":
        data = _scatter_chart(table, analysis)
        if data is not None:
            return data
        logger.info("chart.scatter_fallback reason=no_numeric_columns")
    return _row_chart(table)


def build_chart_spec(table: ParsedTable, analysis: DataAnalysis, chart_type: str) -> ChartSpec:
    """Chart data plus title and axis labels, ready to hand to the renderer."""
    rec = analysis.recommendation
    data = build_chart_data(table, analysis, chart_type)
    logger.debug(
        "chart.built type=%s labels=%d datasets=%d",
        chart_type,
        len(data.labels),
        len(data.datasets),
    )
    return ChartSpec(
        type=chart_type,
        data=data,
        title=f"{chart_type} Chart",
        x_axis_label=rec.x_axis or "X Axis",
        y_axis_label=rec.y_axis[0] if rec.y_axis else "Y Axis",
    )

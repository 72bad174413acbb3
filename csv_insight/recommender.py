"""
Default chart selection from column profiles.

The rules are checked in a fixed order and the first match wins, so the same
stats always produce the same recommendation.
"""

from typing import List, Optional

from .schemas import ColumnStats, ColumnType, ParsedTable, Recommendation

# Max distinct values for a text column to count as categorical.
CATEGORY_MAX_UNIQUE = 20
PIE_MAX_UNIQUE = 10


def _first_with_fewer_than(columns: List[ColumnStats], limit: int) -> Optional[ColumnStats]:
    return next((c for c in columns if c.unique_count < limit), None)


def recommend_chart(table: Optional[ParsedTable], stats: List[ColumnStats]) -> Recommendation:
    numeric = [c for c in stats if c.type == ColumnType.NUMERIC]
    text = [c for c in stats if c.type == ColumnType.TEXT]
    dates = [c for c in stats if c.type == ColumnType.DATE]

    # 1) time series
    if dates and numeric:
        return Recommendation(
            suggested_chart_type="line",
            x_axis=dates[0].column,
            y_axis=[c.column for c in numeric],
            reasoning="Time series data detected. Line chart shows trends over time.",
        )

    # 2) categories with a single measure
    if len(numeric) == 1:
        category = _first_with_fewer_than(text, CATEGORY_MAX_UNIQUE)
        if category:
            return Recommendation(
                suggested_chart_type="column",
                x_axis=category.column,
                y_axis=[numeric[0].column],
                reasoning=(
                    "Categorical data with numeric values. "
                    "Column chart shows comparison between categories."
                ),
            )

    # 3) several measures
    if len(numeric) >= 2:
        return Recommendation(
            suggested_chart_type="line",
            x_axis=numeric[0].column,
            y_axis=[c.column for c in numeric[1:]],
            reasoning="Multiple numeric columns detected. Line chart shows comparison between variables.",
        )

    # 4) distribution of one measure
    if len(numeric) == 1:
        return Recommendation(
            suggested_chart_type="histogram",
            x_axis=numeric[0].column,
            y_axis=[],
            reasoning="Single numeric column. Histogram shows data distribution.",
        )

    # 5) proportions of a small category set
    category = _first_with_fewer_than(text, PIE_MAX_UNIQUE)
    if category:
        return Recommendation(
            suggested_chart_type="pie",
            x_axis=category.column,
            y_axis=[],
            reasoning="Categorical data with few categories. Pie chart shows proportions.",
        )

    return Recommendation(
        suggested_chart_type="column",
        reasoning="General purpose column chart for data overview.",
    )

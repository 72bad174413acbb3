"""
Ad hoc row lookups over a parsed table: filter -> project -> paginate.

Filters, selection and pagination never raise; they just narrow the result.
The only error is asking for rows when there is no table at all.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .errors import NoDataError
from .parser import to_number
from .profiler import display_value
from .schemas import FilterOperator, ParsedTable, RowFilter, RowQuery, RowQueryResult

logger = logging.getLogger(__name__)

# Hard ceiling on rows returned per call, whatever the caller asks for.
MAX_QUERY_LIMIT = 1000

Row = Dict[str, object]


def _ordered(cell, target, operator: FilterOperator) -> bool:
    left = to_number(cell)
    right = to_number(target)

    if (left is None) != (right is None):
        # number vs. text is not comparable
        return False
    if left is None:
        left, right = display_value(cell), display_value(target)

    if operator == FilterOperator.GREATER_THAN:
        return left > right
    return left < right


def row_matches(row: Row, row_filter: RowFilter) -> bool:
    cell = row.get(row_filter.column)
    if cell is None:
        return False

    op = row_filter.operator
    cell_text = display_value(cell).lower()
    target_text = display_value(row_filter.value).lower()

    if op == FilterOperator.EQUALS:
        return cell_text == target_text
    if op == FilterOperator.NOT_EQUALS:
        return cell_text != target_text
    if op == FilterOperator.CONTAINS:
        return target_text in cell_text
    if op in (FilterOperator.GREATER_THAN, FilterOperator.LESS_THAN):
        return _ordered(cell, row_filter.value, op)
    return False


def apply_filters(rows: Sequence[Row], filters: Optional[Sequence[RowFilter]]) -> List[Row]:
    if not filters:
        return list(rows)
    return [row for row in rows if all(row_matches(row, f) for f in filters)]


def select_columns(rows: Sequence[Row], columns: Optional[Sequence[str]]) -> List[Row]:
    if not columns:
        return list(rows)
    return [{col: row[col] for col in columns if col in row} for row in rows]


def clamp_limit(limit: int) -> int:
    return max(0, min(int(limit), MAX_QUERY_LIMIT))


def query_rows(table: Optional[ParsedTable], request: RowQuery) -> RowQueryResult:
    if table is None:
        raise NoDataError("No CSV data is available to query. Please upload a CSV file first.")

    limit = clamp_limit(request.limit)
    offset = max(0, int(request.offset))

    matching = apply_filters(table.rows, request.filters)
    projected = select_columns(matching, request.columns)
    page = projected[offset:offset + limit]

    logger.info(
        "query.done total=%d matching=%d returned=%d offset=%d limit=%d filters=%d",
        table.row_count,
        len(projected),
        len(page),
        offset,
        limit,
        len(request.filters),
    )

    return RowQueryResult(
        rows=page,
        headers=list(request.columns) if request.columns else list(table.headers),
        total_rows=table.row_count,
        matching_rows=len(projected),
        returned_rows=len(page),
        offset=offset,
        limit=limit,
    )

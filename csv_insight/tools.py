"""
Tool entrypoints: the two operations a chat agent can invoke on an attached CSV.

Flow (analyze_csv):
1. Pick the file (explicit URL, else the most recently attached CSV)
2. Fetch bytes through the injected FileFetcher (the only await)
3. Parse -> profile -> recommend -> build chart spec
4. Hand the serialized chart to the ChartSink, return analysis + Markdown report

Both tools return a plain dict. Failures never raise out of here; they come
back as {"success": False, "error": ..., "message": ...}.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from .charts import build_chart_spec
from .errors import CsvInsightError, EmptyInputError, NoDataError
from .parser import decode_csv_bytes, parse_csv
from .profiler import analyze_data, display_value
from .query import clamp_limit, query_rows
from .schemas import (
    DEFAULT_QUERY_LIMIT,
    ColumnType,
    CsvFile,
    DataAnalysis,
    ParsedTable,
    RowFilter,
    RowQuery,
)
from .storage import ChartSink, FileFetcher

logger = logging.getLogger(__name__)

NO_FILE_MESSAGE = (
    "No CSV file URL provided and no CSV files found in the conversation. "
    "Please upload a CSV file first."
)


def _resolve_file_url(file_url: Optional[str], csv_files: Sequence[CsvFile]) -> Optional[str]:
    if file_url and file_url.strip():
        return file_url.strip()
    if csv_files:
        return csv_files[-1].url
    return None


def _failure(error: CsvInsightError, action: str, file_url: Optional[str]) -> Dict[str, Any]:
    return {
        "success": False,
        "error": error.message,
        "errorType": type(error).__name__,
        "message": (
            f"Failed to {action}: {error.message}\n\n"
            f"File URL: {file_url}\n\n"
            "Please ensure the file is accessible and is a valid CSV format."
        ),
    }


async def _load_table(fetcher: FileFetcher, file_url: str) -> ParsedTable:
    content = await fetcher.fetch(file_url)
    return parse_csv(decode_csv_bytes(content))


def restrict_columns(table: ParsedTable, columns: Optional[Sequence[str]]) -> ParsedTable:
    """Keep only the requested columns, in the table's own order."""
    if not columns:
        return table
    headers = [h for h in table.headers if h in columns]
    if not headers:
        raise EmptyInputError(
            "None of the requested columns exist in the CSV file. "
            f"Available columns: {', '.join(table.headers)}"
        )
    return ParsedTable(
        headers=headers,
        rows=[{h: row[h] for h in headers} for row in table.rows],
        warnings=table.warnings,
    )


def format_analysis_report(analysis: DataAnalysis, chart_type: str) -> str:
    lines = [
        "# Data Analysis Results",
        "",
        "## Summary",
        f"- Total Rows: {analysis.summary.total_rows}",
        f"- Total Columns: {analysis.summary.total_columns}",
        f"- Columns: {', '.join(analysis.summary.column_names)}",
        "",
        "## Column Statistics",
        "",
    ]
    for stat in analysis.column_stats:
        lines.append(f"### {stat.column} ({stat.type.value})")
        lines.append(f"- Count: {stat.count}")
        lines.append(f"- Unique Values: {stat.unique_count}")
        if stat.type == ColumnType.NUMERIC:
            lines.append(f"- Min: {display_value(stat.min)}")
            lines.append(f"- Max: {display_value(stat.max)}")
            lines.append(f"- Mean: {display_value(stat.mean)}")
            lines.append(f"- Median: {display_value(stat.median)}")
            lines.append(f"- Sum: {display_value(stat.sum)}")
        if stat.most_common:
            lines.append(f"- Most Common: {stat.most_common} ({stat.most_common_count} times)")
        lines.append("")

    lines.append("## Visualization")
    lines.append(f"**Chart Type:** {chart_type}")
    lines.append(f"**Reasoning:** {analysis.recommendation.reasoning}")
    return "\n".join(lines) + "\n"


def format_rows_as_table(rows: Sequence[Dict[str, Any]], headers: Sequence[str]) -> str:
    """Rows as a padded Markdown table."""
    if not rows:
        return "No rows found."

    def cell(row, header):
        return display_value(row.get(header, ""))

    widths = {
        h: max([len(h)] + [len(cell(row, h)) for row in rows])
        for h in headers
    }

    out = ["| " + " | ".join(h.ljust(widths[h]) for h in headers) + " |"]
    out.append("| " + " | ".join("-" * widths[h] for h in headers) + " |")
    for row in rows:
        out.append("| " + " | ".join(cell(row, h).ljust(widths[h]) for h in headers) + " |")
    return "\n".join(out) + "\n"


async def analyze_csv(
    fetcher: FileFetcher,
    file_url: Optional[str] = None,
    csv_files: Sequence[CsvFile] = (),
    chart_type: str = "auto",
    columns: Optional[Sequence[str]] = None,
    include_stats: bool = True,
    sink: Optional[ChartSink] = None,
) -> Dict[str, Any]:
    """
    Analyze a CSV file and produce a chart.

    Args:
        fetcher: Source of file bytes
        file_url: File reference; defaults to the last entry of csv_files
        csv_files: CSV files attached to the conversation, oldest first
        chart_type: Chart to draw, or "auto" to use the recommendation
        columns: Restrict the analysis to these columns
        include_stats: Include the Markdown statistics report in "message"
        sink: Receives the serialized chart spec

    Returns:
        Dict with success, analysis, chartType, chart, artifactId, title, message
    """
    actual_url = _resolve_file_url(file_url, csv_files)
    logger.info(
        "analyze_csv.request file_url=%s chart_type=%s columns=%s",
        actual_url,
        chart_type,
        len(columns) if columns else 0,
    )

    try:
        if not actual_url:
            raise NoDataError(NO_FILE_MESSAGE)

        table = restrict_columns(await _load_table(fetcher, actual_url), columns)
        analysis = analyze_data(table)
        final_type = (
            analysis.recommendation.suggested_chart_type if chart_type == "auto" else chart_type
        )
        spec = build_chart_spec(table, analysis, final_type)
    except CsvInsightError as e:
        logger.error("analyze_csv.failed file_url=%s err=%s", actual_url, e.message)
        return _failure(e, "analyze CSV", actual_url)

    artifact_id = str(uuid.uuid4())
    title = f"Data Visualization - {final_type} chart"

    if sink is not None:
        try:
            sink.write(artifact_id, title, spec.model_dump_json(by_alias=True))
        except Exception as e:
            logger.error("analyze_csv.sink_failed artifact_id=%s", artifact_id, exc_info=True)
            return _failure(
                CsvInsightError(f"Failed to write chart to stream: {e}"),
                "analyze CSV",
                actual_url,
            )

    message = (
        format_analysis_report(analysis, final_type)
        if include_stats
        else "CSV analysis completed successfully"
    )

    logger.info(
        "analyze_csv.response artifact_id=%s chart_type=%s rows=%d",
        artifact_id,
        final_type,
        table.row_count,
    )
    return {
        "success": True,
        "analysis": analysis.model_dump(mode="json", by_alias=True),
        "chartType": final_type,
        "chart": spec.model_dump(mode="json", by_alias=True),
        "artifactId": artifact_id,
        "title": title,
        "message": message,
    }


def _query_message(
    file_name: str,
    result,
    filters: List[RowFilter],
) -> str:
    lines = [
        "# CSV Query Results",
        "",
        f"**File:** {file_name}",
        f"**Total rows in file:** {result.total_rows}",
        f"**Matching rows:** {result.matching_rows}",
        f"**Showing:** {result.returned_rows} rows (offset: {result.offset})",
        "",
    ]
    if filters:
        lines.append("**Filters applied:**")
        for f in filters:
            lines.append(f'- {f.column} {f.operator.value} "{display_value(f.value)}"')
        lines.append("")

    lines.append("## Data")
    lines.append("")
    lines.append(format_rows_as_table(result.rows, result.headers))

    shown_until = result.offset + result.limit
    if result.matching_rows > shown_until:
        remaining = result.matching_rows - shown_until
        lines.append(f"*{remaining} more rows available. Use offset={shown_until} to see more.*")
    return "\n".join(lines) + "\n"


async def query_csv_rows(
    fetcher: FileFetcher,
    file_url: Optional[str] = None,
    csv_files: Sequence[CsvFile] = (),
    filters: Optional[List[RowFilter]] = None,
    columns: Optional[List[str]] = None,
    limit: int = DEFAULT_QUERY_LIMIT,
    offset: int = 0,
) -> Dict[str, Any]:
    """Filter, project and page through the rows of a CSV file."""
    actual_url = _resolve_file_url(file_url, csv_files)
    request = RowQuery(
        filters=filters or [],
        columns=columns,
        limit=clamp_limit(limit),
        offset=offset,
    )
    logger.info(
        "query_csv_rows.request file_url=%s filters=%d limit=%d offset=%d",
        actual_url,
        len(request.filters),
        request.limit,
        request.offset,
    )

    try:
        table = await _load_table(fetcher, actual_url) if actual_url else None
        result = query_rows(table, request)
    except CsvInsightError as e:
        logger.error("query_csv_rows.failed file_url=%s err=%s", actual_url, e.message)
        return _failure(e, "query CSV rows", actual_url)

    file_name = next((f.name for f in csv_files if f.url == actual_url), "CSV file")
    payload = result.model_dump(mode="json", by_alias=True)
    payload["success"] = True
    payload["message"] = _query_message(file_name, result, request.filters)
    return payload

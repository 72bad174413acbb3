"""
CSV parsing.

Flow:
1. Tokenize with pandas (python engine, every cell read as text) so quoted
   commas, escaped quotes and blank lines are handled by a real CSV reader.
2. Trim headers and make them unique.
3. Convert each cell to a number only when the whole trimmed string is a
   finite decimal literal; everything else stays a string.
"""

import csv
import io
import logging
import math
import re
import warnings
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

from .errors import EmptyInputError
from .schemas import ParsedTable

logger = logging.getLogger(__name__)

# Strict, locale-independent decimal literal. No thousands separators, no
# "NaN"/"Infinity" spellings, no trailing garbage ("42abc").
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Cap on how many malformed-row notes are kept on the table.
MAX_RECORDED_WARNINGS = 50


def to_number(value: Any) -> Optional[Union[int, float]]:
    """Return the numeric value of a cell, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return value if math.isfinite(value) else None
        except OverflowError:
            # int too large for a float
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or not _NUMBER_RE.fullmatch(text):
        return None
    # "1" followed by 400 zeros parses as inf
    num = float(text)
    if not math.isfinite(num):
        return None
    return int(text) if _INTEGER_RE.fullmatch(text) else num


def decode_csv_bytes(data: bytes) -> str:
    """Decode raw file bytes as UTF-8 text (BOM stripped)."""
    text = data.decode("utf-8-sig", errors="replace") if data else ""
    if not text.strip():
        raise EmptyInputError("CSV file is empty")
    return text


def _unique_headers(raw: List[str]) -> List[str]:
    headers: List[str] = []
    seen = set()
    for name in raw:
        base = str(name).strip()
        candidate = base
        n = 1
        while candidate in seen:
            candidate = f"{base}.{n}"
            n += 1
        seen.add(candidate)
        headers.append(candidate)
    return headers


def _read_frame(csv_text: str) -> Tuple[pd.DataFrame, List[str]]:
    """
    Read every line (header included) as text.

    The header is read as a data row so its width is known up front; longer
    rows are truncated to that width and noted, shorter rows come back padded
    with NaN.
    """
    read_opts = dict(
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
    )
    width = len(pd.read_csv(io.StringIO(csv_text), nrows=1, **read_opts).columns)
    malformed: List[str] = []

    def _on_bad_line(bad_line: List[str]) -> List[str]:
        malformed.append(f"expected {width} fields, saw {len(bad_line)}")
        return bad_line[:width]

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        df = pd.read_csv(io.StringIO(csv_text), on_bad_lines=_on_bad_line, **read_opts)

    if malformed:
        logger.warning(
            "parse.malformed_rows count=%d first=%s",
            len(malformed),
            malformed[0],
        )
    return df, [f"Row truncated: {m}" for m in malformed[:MAX_RECORDED_WARNINGS]]


def parse_csv(csv_text: str) -> ParsedTable:
    """
    Parse CSV text into a ParsedTable.

    Raises EmptyInputError when there is no header or no data row.
    """
    if csv_text is None or not csv_text.strip():
        raise EmptyInputError("CSV file is empty or could not be parsed")

    try:
        df, parse_warnings = _read_frame(csv_text)
    except pd.errors.EmptyDataError:
        raise EmptyInputError("CSV file is empty or could not be parsed")
    except (pd.errors.ParserError, csv.Error) as e:
        raise EmptyInputError(f"CSV file could not be parsed: {e}")

    # Short rows come back as NaN even with keep_default_na=False.
    df = df.fillna("")
    if len(df) < 2:
        raise EmptyInputError("CSV file is empty or could not be parsed")

    headers = _unique_headers([str(v) for v in df.iloc[0].tolist()])

    rows: List[Dict[str, Union[int, float, str]]] = []
    for values in df.iloc[1:].itertuples(index=False, name=None):
        row = {}
        for header, raw in zip(headers, values):
            raw = str(raw)
            num = to_number(raw)
            row[header] = raw if num is None else num
        rows.append(row)

    table = ParsedTable(headers=headers, rows=rows, warnings=parse_warnings)
    logger.debug(
        "parse.done rows=%d columns=%d warnings=%d",
        table.row_count,
        table.column_count,
        len(table.warnings),
    )
    return table

"""
FastAPI entrypoint.

Routes:
- POST /analyze : CSV upload or file_url -> analysis, chart spec, Markdown report
- POST /query   : filter / select / paginate rows of a stored CSV
- POST /intent  : keyword intent analysis of a prompt
"""

import os
import logging
from dotenv import load_dotenv, find_dotenv

# Load environment variables from .env file (optional).
# Some editors save .env as UTF-16; support both UTF-8 and UTF-16.
_dotenv_path = find_dotenv(usecwd=True) or None
if _dotenv_path:
    try:
        load_dotenv(_dotenv_path)
    except UnicodeError:
        load_dotenv(_dotenv_path, encoding="utf-16")
else:
    load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)
logger.info("Service starting with LOG_LEVEL=%s", LOG_LEVEL)

from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile

from .intent import analyze_intent
from .schemas import ChartType, IntentAnalysis, IntentRequest, QueryRowsRequest
from .storage import MAX_FILE_SIZE_MB, HttpFileFetcher
from .tools import analyze_csv, query_csv_rows

ALLOWED_CHART_TYPES = [t.value for t in ChartType] + ["auto"]

_ERROR_STATUS = {
    "NoDataError": 404,
    "UnsupportedSourceError": 400,
    "EmptyInputError": 422,
}

_FETCHER = HttpFileFetcher()

app = FastAPI(title="CSV Insight Pipeline")


@app.get("/")
def root():
    return {"ok": True, "service": "csv_insight"}


@app.get("/healthz")
def healthz():
    return {"ok": True}


class _UploadFetcher:
    """Serves bytes that arrived with the request instead of fetching them."""

    def __init__(self, content: bytes):
        self._content = content

    async def fetch(self, file_url: str) -> bytes:
        return self._content


def _raise_for_failure(result: Dict[str, Any]) -> Dict[str, Any]:
    if result.get("success"):
        return result
    status = _ERROR_STATUS.get(result.get("errorType"), 400)
    raise HTTPException(status_code=status, detail=result.get("error"))


def _parse_columns(columns: Optional[str]):
    if not columns:
        return None
    parsed = [c.strip() for c in columns.split(",") if c.strip()]
    return parsed or None


@app.post("/analyze")
async def analyze_endpoint(
    request: Request,
    file: Optional[UploadFile] = File(None),
    file_url: Optional[str] = Form(None),
    chart_type: str = Form("auto"),
    columns: Optional[str] = Form(None),
    include_stats: bool = Form(True),
    prompt: Optional[str] = Form(None),
):
    session_id = request.headers.get("x-session-id")
    logger.info(
        "analyze.request session_id=%s has_file=%s file_url=%s chart_type=%s",
        session_id,
        file is not None,
        file_url,
        chart_type,
    )

    if chart_type not in ALLOWED_CHART_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"chart_type must be one of: {', '.join(ALLOWED_CHART_TYPES)}",
        )

    if file is None and not file_url:
        raise HTTPException(
            status_code=400,
            detail="A CSV file must be uploaded or a file_url provided.",
        )

    intent: Optional[IntentAnalysis] = None
    if prompt:
        intent = analyze_intent(prompt, has_attachment=True)
        if chart_type == "auto" and intent.chart_type in ALLOWED_CHART_TYPES:
            chart_type = intent.chart_type

    if file is not None:
        content = await file.read()
        if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
            raise HTTPException(status_code=413, detail=f"File exceeds {MAX_FILE_SIZE_MB} MB limit")
        fetcher = _UploadFetcher(content)
        source = file.filename or "upload.csv"
    else:
        fetcher = _FETCHER
        source = file_url

    result = await analyze_csv(
        fetcher,
        file_url=source,
        chart_type=chart_type,
        columns=_parse_columns(columns),
        include_stats=include_stats,
    )
    result = _raise_for_failure(result)
    if intent is not None:
        result["intent"] = intent.model_dump(by_alias=True)

    logger.info(
        "analyze.response session_id=%s chart_type=%s artifact_id=%s",
        session_id,
        result.get("chartType"),
        result.get("artifactId"),
    )
    return result


@app.post("/query")
async def query_endpoint(request: Request, req: QueryRowsRequest):
    session_id = request.headers.get("x-session-id")
    logger.info(
        "query.request session_id=%s file_url=%s filters=%d",
        session_id,
        req.file_url,
        len(req.filters),
    )
    result = await query_csv_rows(
        _FETCHER,
        file_url=req.file_url,
        csv_files=req.csv_files,
        filters=req.filters,
        columns=req.columns,
        limit=req.limit,
        offset=req.offset,
    )
    return _raise_for_failure(result)


@app.post("/intent")
def intent_endpoint(req: IntentRequest):
    return analyze_intent(req.prompt, req.has_attachment, req.headers).model_dump(by_alias=True)

"""
Pydantic value types and request/response models.

Rationale:
- One explicit contract for what the pipeline produces and what the frontend consumes.
- Python attributes are snake_case; JSON is camelCase so the chart renderer and
  tool callers get the field names they already expect.
"""

import math
import os
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_QUERY_LIMIT = int(os.getenv("DEFAULT_QUERY_LIMIT", "50"))

Number = Union[int, float]
CellValue = Union[int, float, str]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    TEXT = "text"
    DATE = "date"
    MIXED = "mixed"


class ChartType(str, Enum):
    COLUMN = "column"
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    HISTOGRAM = "histogram"
    AREA = "area"
    SCATTER = "scatter"


class ParsedTable(CamelModel):
    headers: List[str]
    rows: List[Dict[str, CellValue]]
    warnings: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def row_count(self) -> int:
        return len(self.rows)

    @computed_field
    @property
    def column_count(self) -> int:
        return len(self.headers)


class ColumnStats(CamelModel):
    column: str
    type: ColumnType
    count: int
    null_count: int
    unique_count: int
    # numeric columns
    min: Optional[Number] = None
    max: Optional[Number] = None
    mean: Optional[Number] = None
    median: Optional[Number] = None
    sum: Optional[Number] = None
    # text / mixed columns
    most_common: Optional[str] = None
    most_common_count: Optional[int] = None


class DataSummary(CamelModel):
    total_rows: int
    total_columns: int
    column_names: List[str]


class Recommendation(CamelModel):
    suggested_chart_type: str
    x_axis: Optional[str] = None
    y_axis: Optional[List[str]] = None
    reasoning: str


class DataAnalysis(CamelModel):
    summary: DataSummary
    column_stats: List[ColumnStats]
    recommendation: Recommendation


class ScatterPoint(BaseModel):
    x: float
    y: float


class ChartDataset(CamelModel):
    label: str
    data: Union[List[ScatterPoint], List[Number]]
    background_color: Union[str, List[str]]
    border_color: Optional[str] = None

    @field_validator("data")
    @classmethod
    def _finite_only(cls, v):
        # Non-finite numbers cannot round-trip through JSON.
        return [
            p if isinstance(p, ScatterPoint) else (p if math.isfinite(p) else 0)
            for p in v
        ]


class ChartData(CamelModel):
    labels: List[str]
    datasets: List[ChartDataset]


class ChartSpec(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: str
    data: ChartData
    title: str
    x_axis_label: str
    y_axis_label: str


class IntentAnalysis(CamelModel):
    should_analyze: bool
    chart_type: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    is_comparison: bool = False
    confidence: str = "low"


class FilterOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class RowFilter(CamelModel):
    column: str
    operator: FilterOperator
    value: Union[int, float, str]


class RowQuery(CamelModel):
    filters: List[RowFilter] = Field(default_factory=list)
    columns: Optional[List[str]] = None
    limit: int = DEFAULT_QUERY_LIMIT
    offset: int = 0


class RowQueryResult(CamelModel):
    rows: List[Dict[str, CellValue]]
    headers: List[str]
    total_rows: int
    matching_rows: int
    returned_rows: int
    offset: int
    limit: int


class CsvFile(CamelModel):
    url: str
    name: str


class QueryRowsRequest(CamelModel):
    file_url: Optional[str] = None
    csv_files: List[CsvFile] = Field(default_factory=list)
    filters: List[RowFilter] = Field(default_factory=list)
    columns: Optional[List[str]] = None
    limit: int = DEFAULT_QUERY_LIMIT
    offset: int = 0


class IntentRequest(CamelModel):
    prompt: str
    has_attachment: bool = False
    headers: Optional[List[str]] = None

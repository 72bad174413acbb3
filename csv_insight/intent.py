"""
Keyword-based intent detection for prompts that come with a CSV attachment.

No model calls: fixed keyword lists, case-insensitive substring matching.
"""

import re
from typing import List, Optional, Sequence

from .schemas import IntentAnalysis

ANALYSIS_KEYWORDS = [
    "analyze", "analysis", "examine", "inspect", "study",
    "summarize", "summary", "statistics", "stats",
    "describe", "overview", "insights", "trends",
    "calculate", "compute", "find", "determine",
]

VISUALIZATION_KEYWORDS = [
    "visualize", "visualization", "plot", "chart", "graph",
    "show", "display", "draw", "create chart", "make chart",
    "bar chart", "line chart", "pie chart", "scatter plot",
    "histogram", "heatmap", "compare", "comparison",
]

EXPLORATION_KEYWORDS = [
    "explore", "explore data", "what's in", "what is in",
    "show me", "tell me about", "breakdown", "distribution",
    "look at", "review", "check", "view",
]

# Checked in order; the first group with a hit decides the chart type.
CHART_TYPE_KEYWORDS = [
    ("bar", ["bar chart", "bar graph", "bars", "column chart"]),
    ("line", ["line chart", "line graph", "lines", "trend line", "time series"]),
    ("pie", ["pie chart", "pie graph", "pie"]),
    ("scatter", ["scatter", "scatter plot", "scatterplot"]),
    ("histogram", ["histogram", "distribution", "frequency"]),
    ("heatmap", ["heatmap", "heat map", "correlation"]),
    ("area", ["area chart", "area graph"]),
]

COMPARISON_KEYWORDS = [
    "compare", "comparison", "versus", "vs", "vs.",
    "difference", "differences", "contrast",
    "between", "against", "correlation",
    "relationship", "relate", "related",
]


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(kw in lowered for kw in keywords)


def detect_analysis_intent(prompt: str, has_attachment: bool) -> bool:
    if not has_attachment:
        return False
    return _contains_any(prompt, ANALYSIS_KEYWORDS + VISUALIZATION_KEYWORDS + EXPLORATION_KEYWORDS)


def detect_visualization_type(prompt: str) -> Optional[str]:
    for chart_type, keywords in CHART_TYPE_KEYWORDS:
        if _contains_any(prompt, keywords):
            return chart_type
    return None


def extract_column_references(prompt: str, headers: Sequence[str]) -> List[str]:
    """Headers mentioned in the prompt as whole words, in header order."""
    mentioned = []
    for header in headers:
        if not header:
            continue
        pattern = r"(?<!\w)" + re.escape(header) + r"(?!\w)"
        if re.search(pattern, prompt, re.IGNORECASE):
            mentioned.append(header)
    return mentioned


def detect_comparison_intent(prompt: str) -> bool:
    return _contains_any(prompt, COMPARISON_KEYWORDS)


def analyze_intent(
    prompt: str,
    has_attachment: bool,
    headers: Optional[Sequence[str]] = None,
) -> IntentAnalysis:
    if not has_attachment:
        return IntentAnalysis(
            should_analyze=False,
            chart_type=None,
            columns=[],
            is_comparison=False,
            confidence="low",
        )

    should_analyze = detect_analysis_intent(prompt, has_attachment)
    chart_type = detect_visualization_type(prompt)

    if should_analyze and chart_type:
        confidence = "high"
    elif should_analyze:
        confidence = "medium"
    else:
        confidence = "low"

    return IntentAnalysis(
        should_analyze=should_analyze,
        chart_type=chart_type,
        columns=extract_column_references(prompt, headers) if headers else [],
        is_comparison=detect_comparison_intent(prompt),
        confidence=confidence,
    )

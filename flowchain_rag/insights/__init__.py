"""Insight generation: context analysis, markdown rendering, and fallback."""

from flowchain_rag.insights.analysis import (
    ContextAnalysis,
    KeyInsight,
    Recommendation,
    analyze_context,
    extract_key_insights,
    generate_recommendations,
    generate_sales_suggestions,
)
from flowchain_rag.insights.formatter import HEADLINES, format_insight_response
from flowchain_rag.insights.service import DEFAULT_QUERY, UNAVAILABLE_MESSAGE, InsightService

__all__ = [
    "ContextAnalysis",
    "DEFAULT_QUERY",
    "HEADLINES",
    "InsightService",
    "KeyInsight",
    "Recommendation",
    "UNAVAILABLE_MESSAGE",
    "analyze_context",
    "extract_key_insights",
    "format_insight_response",
    "generate_recommendations",
    "generate_sales_suggestions",
]

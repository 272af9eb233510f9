"""Markdown rendering of insight responses."""

import random
from typing import List, Optional

from .analysis import ContextAnalysis, KeyInsight, generate_recommendations

HEADLINES = (
    "BREAKTHROUGH DISCOVERY",
    "REVENUE BOOST OPPORTUNITY",
    "EFFICIENCY REVOLUTION",
    "STRATEGIC ADVANTAGE",
    "GROWTH ACCELERATOR",
)

NEXT_STEPS = (
    "Schedule implementation planning session",
    "Set up tracking dashboards for KPIs",
    "Assign responsible team members",
    "Establish baseline metrics within 7 days",
)


def format_insight_response(
    analysis: ContextAnalysis,
    key_insights: List[KeyInsight],
    chunk_count: int,
    rng: Optional[random.Random] = None,
) -> str:
    """Render analysis, insights and recommendations as markdown.

    Args:
        analysis: Topic flags for the context.
        key_insights: Output of extract_key_insights (or the general set).
        chunk_count: Number of retrieved chunks; 0 renders the generic intro.
        rng: Source of randomness for the headline. Defaults to the module RNG.
    """
    rng = rng or random.Random()
    lines: List[str] = [f"# {rng.choice(HEADLINES)}", ""]

    if chunk_count > 0:
        lines += [f"**Analysis of {chunk_count} business documents reveals:**", ""]
    else:
        lines += ["**Data-Driven Supply Chain Intelligence:**", ""]

    if key_insights:
        lines += ["## Critical Insights", ""]
        for insight in key_insights:
            if insight.type == "metric":
                lines += [f"**{insight.value}** {insight.context}", ""]
            elif insight.type == "areas":
                lines += [f"**Focus Areas:** {', '.join(insight.value)}", ""]

    lines += ["## High-Impact Recommendations", ""]
    for i, rec in enumerate(generate_recommendations(analysis), start=1):
        lines.append(f"### {i}. {rec.title}")
        lines += [f"Impact: {rec.impact} | Effort: {rec.effort} | Timeline: {rec.timeline}", ""]
        lines += [rec.description, ""]
        if rec.expected_result:
            lines += [f"**Expected Result:** {rec.expected_result}", ""]

    lines += ["## Immediate Action Required", ""]
    lines += ["**Next Steps:**"]
    lines += [f"{i}. {step}" for i, step in enumerate(NEXT_STEPS, start=1)]
    lines += ["", "## Ready to Transform?", ""]
    lines.append(
        "Upload your latest business documents for more precise, personalized "
        "recommendations tailored to your operations."
    )
    return "\n".join(lines)

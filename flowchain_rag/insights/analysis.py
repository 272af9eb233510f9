"""Keyword analysis of retrieved chunks: business areas, metrics, recommendations."""

import re
from typing import List, Literal, Union

from pydantic import BaseModel, Field

from flowchain_rag.models import SalesSuggestion

MAX_RECOMMENDATIONS = 3

_INVENTORY_RE = re.compile(r"\b(inventory|stock|warehouse|supply)\b")
_SALES_RE = re.compile(r"\b(sales|revenue|profit|margin|customer)\b")
_OPERATIONS_RE = re.compile(r"\b(operation|process|efficiency|workflow|automation)\b")
_FINANCE_RE = re.compile(r"\b(cost|budget|expense|profit|margin|roi)\b")
_STRATEGY_RE = re.compile(r"\b(strategy|plan|goal|objective|target)\b")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


class ContextAnalysis(BaseModel):
    """Which business topics the retrieved context mentions."""

    has_inventory: bool = False
    has_sales: bool = False
    has_operations: bool = False
    has_finance: bool = False
    has_strategy: bool = False
    document_count: int = Field(default=0, ge=0)


class KeyInsight(BaseModel):
    """A headline fact pulled out of the context."""

    type: Literal["metric", "areas"]
    value: Union[str, List[str]]
    context: str


class Recommendation(BaseModel):
    title: str
    impact: str
    effort: str
    timeline: str
    description: str
    expected_result: str = ""


def _join(chunks: List[str]) -> str:
    return " ".join(chunks).lower()


def analyze_context(chunks: List[str]) -> ContextAnalysis:
    """Flag the business topics present in the chunks."""
    text = _join(chunks)
    return ContextAnalysis(
        has_inventory=bool(_INVENTORY_RE.search(text)),
        has_sales=bool(_SALES_RE.search(text)),
        has_operations=bool(_OPERATIONS_RE.search(text)),
        has_finance=bool(_FINANCE_RE.search(text)),
        has_strategy=bool(_STRATEGY_RE.search(text)),
        document_count=len(chunks),
    )


def general_analysis() -> ContextAnalysis:
    """Analysis used when no tenant documents are available."""
    return ContextAnalysis(
        has_inventory=True,
        has_sales=True,
        has_operations=True,
        has_finance=True,
        has_strategy=True,
        document_count=0,
    )


def extract_key_insights(chunks: List[str]) -> List[KeyInsight]:
    """Average percentage-like figures and list the business areas mentioned.

    Any number in (0, 100] counts as a percentage figure.
    """
    text = _join(chunks)
    insights: List[KeyInsight] = []

    percentages = [float(n) for n in _NUMBER_RE.findall(text) if 0 < float(n) <= 100]
    if percentages:
        avg = sum(percentages) / len(percentages)
        insights.append(
            KeyInsight(
                type="metric",
                value=f"{avg:.1f}%",
                context="average improvement potential identified",
            )
        )

    areas: List[str] = []
    if "inventory" in text:
        areas.append("Inventory Management")
    if "sales" in text or "revenue" in text:
        areas.append("Sales Optimization")
    if "supply" in text or "chain" in text:
        areas.append("Supply Chain")
    if "cost" in text or "expense" in text:
        areas.append("Cost Reduction")
    if areas:
        insights.append(KeyInsight(type="areas", value=areas, context="key business areas identified"))

    return insights


def general_key_insights() -> List[KeyInsight]:
    return [
        KeyInsight(
            type="metric",
            value="25%",
            context="average improvement potential across key metrics",
        ),
        KeyInsight(
            type="areas",
            value=["Inventory Management", "Sales Optimization", "Supply Chain", "Cost Reduction"],
            context="comprehensive business areas covered",
        ),
    ]


def generate_recommendations(analysis: ContextAnalysis) -> List[Recommendation]:
    """Pick up to three recommendations matching the analysed topics."""
    recs: List[Recommendation] = []
    if analysis.has_inventory:
        recs.append(
            Recommendation(
                title="Smart Inventory Optimization",
                impact="High (20-35% cost reduction)",
                effort="Medium",
                timeline="30-60 days",
                description=(
                    "Implement demand forecasting to maintain optimal stock levels. Use real-time "
                    "demand sensing to prevent stockouts while minimizing carrying costs."
                ),
                expected_result="Reduce inventory holding costs by 25% while improving service levels to 98%+",
            )
        )
    if analysis.has_sales:
        recs.append(
            Recommendation(
                title="Revenue Acceleration Program",
                impact="High (15-40% growth)",
                effort="Medium",
                timeline="45-90 days",
                description=(
                    "Deploy dynamic pricing and cross-selling based on customer behavior patterns. "
                    "Run personalized campaigns targeting high-value segments."
                ),
                expected_result="Increase average order value by 30% and customer lifetime value by 25%",
            )
        )
    if analysis.has_operations:
        recs.append(
            Recommendation(
                title="Operational Excellence Initiative",
                impact="Medium (10-25% efficiency)",
                effort="High",
                timeline="60-120 days",
                description=(
                    "Streamline workflows with automation and process optimization. Apply lean "
                    "principles across operational areas with continuous improvement."
                ),
                expected_result="Reduce operational costs by 20% while improving delivery times by 40%",
            )
        )
    if not recs:
        recs = [
            Recommendation(
                title="Digital Transformation Foundation",
                impact="High (Strategic)",
                effort="Medium",
                timeline="90 days",
                description=(
                    "Establish data analytics infrastructure and automated reporting. "
                    "Create real-time dashboards for key business metrics."
                ),
                expected_result="Enable data-driven decision making across all departments",
            ),
            Recommendation(
                title="Supply Chain Resilience Program",
                impact="High (Risk Mitigation)",
                effort="Medium",
                timeline="60 days",
                description=(
                    "Diversify suppliers, implement backup inventory strategies, and develop "
                    "contingency plans for supply disruptions."
                ),
                expected_result="Reduce supply chain risk by 60% while maintaining cost efficiency",
            ),
        ]
    return recs[:MAX_RECOMMENDATIONS]


DEFAULT_SALES_SUGGESTIONS = (
    SalesSuggestion(
        type="sales",
        title="Cross-selling Opportunities",
        description="Analyze customer purchase patterns to identify products frequently bought together.",
        impact="Medium",
        effort="Low",
    ),
    SalesSuggestion(
        type="marketing",
        title="Seasonal Promotions",
        description="Plan promotional campaigns around peak demand periods identified from historical data.",
        impact="High",
        effort="Medium",
    ),
    SalesSuggestion(
        type="customer",
        title="Loyalty Programs",
        description="Implement customer loyalty programs to increase repeat purchase rates.",
        impact="Medium",
        effort="Low",
    ),
    SalesSuggestion(
        type="pricing",
        title="Competitive Pricing",
        description="Monitor competitor pricing and adjust your pricing strategy accordingly.",
        impact="High",
        effort="Medium",
    ),
)


def generate_sales_suggestions(chunks: List[str]) -> List[SalesSuggestion]:
    """Sales and marketing suggestions; generic ones when sales are not discussed."""
    text = _join(chunks)
    if "sales" in text or "revenue" in text or "demand" in text:
        return [
            SalesSuggestion(
                type="sales",
                title="Revenue Optimization",
                description="Implement dynamic pricing strategies based on demand patterns and competitor analysis.",
                impact="High",
                effort="Medium",
            ),
            SalesSuggestion(
                type="marketing",
                title="Customer Segmentation",
                description="Use purchase history and behavior data to create targeted marketing campaigns.",
                impact="High",
                effort="Medium",
            ),
        ]
    return [s.model_copy() for s in DEFAULT_SALES_SUGGESTIONS]

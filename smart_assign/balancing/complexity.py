"""
Request complexity analysis.

Derives a normalized complexity score (0-1) from a request's line items and
declared priority. Pure: the caller loads the request.
"""

from typing import Any, Optional
from smart_assign.balancing.models import RequestComplexity, ComplexityFactors

# Item count at which item complexity saturates
ITEM_COUNT_CAP = 10

DEFAULT_URGENCY = "MEDIUM"
DEFAULT_CATEGORY = "General"

FACTOR_WEIGHTS = {
    "item": 0.25,
    "value": 0.35,
    "urgency": 0.25,
    "category": 0.15,
}


def neutral_complexity() -> RequestComplexity:
    """Complexity used when the request cannot be found."""
    return RequestComplexity(
        score=0.5,
        factors=ComplexityFactors(
            item_count=0,
            total_value=0.0,
            urgency=DEFAULT_URGENCY,
            category_complexity=0.5,
        ),
    )


def value_tier(total_value: float) -> float:
    """Bucket total line-item value into a complexity tier."""
    if total_value > 100_000:
        return 0.9
    if total_value > 50_000:
        return 0.7
    if total_value > 10_000:
        return 0.5
    return 0.3


def urgency_tier(priority: Optional[str]) -> float:
    priority_upper = (priority or "").strip().upper()
    if priority_upper == "URGENT":
        return 0.9
    if priority_upper == "HIGH":
        return 0.7
    return 0.5


def category_diversity(item_count: int) -> float:
    """Item count used as a proxy for how many kinds of goods are involved."""
    if item_count > 5:
        return 0.8
    if item_count > 2:
        return 0.6
    return 0.4


def analyze_request_complexity(request: Optional[Any]) -> RequestComplexity:
    """
    Calculate request complexity from 0-1.

    Higher score = more complex.

    Factors:
    - Item count (normalized against ITEM_COUNT_CAP)
    - Total value of the line items
    - Declared priority
    - Category diversity (approximated by item count)

    A missing request yields the neutral default instead of an error.
    """
    if request is None:
        return neutral_complexity()

    items = list(getattr(request, "items", None) or [])
    item_count = len(items)
    total_value = sum(float(getattr(item, "total_price", 0) or 0) for item in items)
    urgency = (getattr(request, "priority", None) or DEFAULT_URGENCY).strip().upper()

    item_complexity = min(item_count / ITEM_COUNT_CAP, 1.0)
    value_complexity = value_tier(total_value)
    urgency_complexity = urgency_tier(urgency)
    category_complexity = category_diversity(item_count)

    score = (
        item_complexity * FACTOR_WEIGHTS["item"]
        + value_complexity * FACTOR_WEIGHTS["value"]
        + urgency_complexity * FACTOR_WEIGHTS["urgency"]
        + category_complexity * FACTOR_WEIGHTS["category"]
    )

    return RequestComplexity(
        score=min(max(score, 0.0), 1.0),
        factors=ComplexityFactors(
            item_count=item_count,
            total_value=total_value,
            urgency=urgency,
            category_complexity=category_complexity,
        ),
    )


def primary_category(request: Optional[Any]) -> str:
    """Label used for expertise matching: first item's category, else its description."""
    if request is None:
        return DEFAULT_CATEGORY
    items = list(getattr(request, "items", None) or [])
    if not items:
        return DEFAULT_CATEGORY
    first = items[0]
    return getattr(first, "category", None) or getattr(first, "description", None) or DEFAULT_CATEGORY

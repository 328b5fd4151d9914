"""
Data models for business insights.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class InsightKind(str, Enum):
    TREND = "trend"
    ANOMALY = "anomaly"
    CORRELATION = "correlation"
    PREDICTION = "prediction"
    RECOMMENDATION = "recommendation"
    ALERT = "alert"


@dataclass
class BusinessInsight:
    """An annotation derived from aggregated query results."""
    kind: InsightKind
    title: str
    description: str
    confidence: float
    recommendations: Optional[List[str]] = None
    data: Any = None

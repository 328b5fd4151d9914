"""
Query Processor for turning business questions into structured queries.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Callable

from .models import (
    ALL_SOURCES,
    Entity,
    QueryIntent,
    StructuredQuery,
    TimeWindow,
)

logger = logging.getLogger(__name__)


# Checked in this order; the first category with a matching keyword wins.
INTENT_KEYWORDS = [
    (QueryIntent.RETRIEVE, ["what", "show", "list", "get"]),
    (QueryIntent.COMPARE, ["compare", "vs", "versus", "difference"]),
    (QueryIntent.TREND, ["trend", "over time", "growth", "change"]),
    (QueryIntent.EXPLAIN, ["why", "reason", "cause", "because"]),
    (QueryIntent.PREDICT, ["predict", "forecast", "future", "next"]),
]

DEFAULT_BUSINESS_TERMS = {
    "customer": "entity",
    "product": "entity",
    "order": "entity",
    "revenue": "metric",
    "sales": "metric",
    "profit": "metric",
    "cost": "metric",
}

DEFAULT_METRICS = ["revenue", "sales", "profit", "cost", "conversion", "traffic"]

SOURCE_KEYWORDS = {
    "shopify": ["product", "order", "customer", "inventory", "shopify"],
    "stripe": ["payment", "subscription", "revenue", "transaction", "stripe"],
    "google-analytics": ["traffic", "visitor", "pageview", "conversion", "analytics"],
    "salesforce": ["lead", "opportunity", "account", "contact", "salesforce"],
}

OPERATION_KEYWORDS = {
    "sum": ["sum", "total", "add"],
    "average": ["average", "mean", "avg"],
    "count": ["count", "number", "how many"],
    "max": ["max", "highest", "top", "best"],
    "min": ["min", "lowest", "bottom", "worst"],
    "group": ["group", "by", "category"],
}

TIME_PATTERNS = [
    ("time_range", re.compile(r"last\s+(\d+)\s+days?", re.IGNORECASE)),
    ("time_period", re.compile(r"this\s+(week|month|year)", re.IGNORECASE)),
    ("year", re.compile(r"\b(\d{4})\b")),
]

TERM_CONFIDENCE = {"entity": 0.9, "metric": 0.8}
METRIC_CONFIDENCE = 0.8
TIME_CONFIDENCE = 0.9


class QueryProcessor:
    """Rule-based intent and entity extractor for business questions."""

    def __init__(
        self,
        business_context: Optional[Dict[str, Any]] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.business_context: Dict[str, Any] = dict(business_context or {})
        self.clock = clock

    def process(self, text: str) -> StructuredQuery:
        """
        Turn a natural-language question into a structured query.

        Args:
            text: The user's question

        Returns:
            StructuredQuery describing intent, entities, candidate sources,
            operations and time range
        """
        text_lower = text.lower()

        query = StructuredQuery(
            original_text=text,
            intent=self._classify_intent(text_lower),
            entities=tuple(self._extract_entities(text)),
            candidate_sources=tuple(self._identify_sources(text_lower)),
            operations=tuple(self._identify_operations(text_lower)),
            time_range=self._extract_time_range(text_lower),
        )

        logger.debug(
            f"Processed query: intent={query.intent.value}, "
            f"sources={list(query.candidate_sources)}, complexity={query.complexity.value}"
        )
        return query

    def update_context(self, context: Dict[str, Any]):
        """Merge new business context over the current one."""
        self.business_context = {**self.business_context, **context}

    def get_business_terms(self) -> Dict[str, str]:
        terms = dict(DEFAULT_BUSINESS_TERMS)
        terms.update(self.business_context.get("terminology") or {})
        return terms

    def get_metrics(self) -> List[str]:
        return DEFAULT_METRICS + list(self.business_context.get("metrics") or [])

    def _classify_intent(self, text: str) -> QueryIntent:
        for intent, keywords in INTENT_KEYWORDS:
            if _contains_any(text, keywords):
                return intent
        return QueryIntent.RETRIEVE

    def _extract_entities(self, text: str) -> List[Entity]:
        entities = []
        text_lower = text.lower()

        for term, kind in self.get_business_terms().items():
            if term.lower() in text_lower:
                confidence = TERM_CONFIDENCE.get(kind, TERM_CONFIDENCE["entity"])
                entities.append(Entity(kind=kind, value=term, confidence=confidence))

        for metric in self.get_metrics():
            if metric.lower() in text_lower:
                entities.append(Entity(kind="metric", value=metric, confidence=METRIC_CONFIDENCE))

        for kind, pattern in TIME_PATTERNS:
            match = pattern.search(text)
            if match:
                entities.append(Entity(kind=kind, value=match.group(0), confidence=TIME_CONFIDENCE))

        return entities

    def _identify_sources(self, text: str) -> List[str]:
        sources = [
            source for source, keywords in SOURCE_KEYWORDS.items()
            if _contains_any(text, keywords)
        ]
        return sources or [ALL_SOURCES]

    def _identify_operations(self, text: str) -> List[str]:
        return [
            operation for operation, keywords in OPERATION_KEYWORDS.items()
            if _contains_any(text, keywords)
        ]

    def _extract_time_range(self, text: str) -> Optional[TimeWindow]:
        now = self.clock()

        if "last week" in text:
            return TimeWindow(start=now - timedelta(days=7), end=now, granularity="day")
        if "last month" in text:
            return TimeWindow(start=now - timedelta(days=30), end=now, granularity="day")
        if "this year" in text:
            start = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
            return TimeWindow(start=start, end=now, granularity="month")

        return None


def _contains_any(text: str, keywords: List[str]) -> bool:
    return any(keyword in text for keyword in keywords)

"""
Natural-language query extraction.
"""

from .models import (
    ALL_SOURCES,
    Entity,
    QueryComplexity,
    QueryIntent,
    StructuredQuery,
    TimeWindow,
    assess_complexity,
)
from .query_processor import QueryProcessor

__all__ = [
    "ALL_SOURCES",
    "Entity",
    "QueryComplexity",
    "QueryIntent",
    "QueryProcessor",
    "StructuredQuery",
    "TimeWindow",
    "assess_complexity",
]

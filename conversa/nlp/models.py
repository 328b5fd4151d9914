"""
Data models for the query extraction module.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

ALL_SOURCES = "all"


class QueryIntent(str, Enum):
    """What the caller wants done with the data."""
    RETRIEVE = "retrieve"
    COMPARE = "compare"
    TREND = "trend"
    EXPLAIN = "explain"
    PREDICT = "predict"


class QueryComplexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


@dataclass(frozen=True)
class Entity:
    """A business term, metric or time expression found in the query text."""
    kind: str
    value: str
    confidence: float


@dataclass(frozen=True)
class TimeWindow:
    """Absolute time range a query refers to."""
    start: datetime
    end: datetime
    granularity: str = "day"


def assess_complexity(
    intent: QueryIntent,
    entities: Tuple[Entity, ...],
    candidate_sources: Tuple[str, ...]
) -> QueryComplexity:
    """Score a query from its source count, entity count and intent."""
    score = 0

    if len(candidate_sources) > 1:
        score += 2
    if len(entities) > 3:
        score += 1
    if intent in (QueryIntent.COMPARE, QueryIntent.PREDICT):
        score += 2

    if score <= 1:
        return QueryComplexity.SIMPLE
    if score <= 3:
        return QueryComplexity.MODERATE
    return QueryComplexity.COMPLEX


@dataclass(frozen=True)
class StructuredQuery:
    """Normalized, machine-usable form of a natural-language question."""
    original_text: str
    intent: QueryIntent
    entities: Tuple[Entity, ...] = ()
    candidate_sources: Tuple[str, ...] = (ALL_SOURCES,)
    operations: Tuple[str, ...] = ()
    time_range: Optional[TimeWindow] = None

    @property
    def complexity(self) -> QueryComplexity:
        return assess_complexity(self.intent, self.entities, self.candidate_sources)

    @property
    def targets_all_sources(self) -> bool:
        return list(self.candidate_sources) == [ALL_SOURCES]

    def entities_of_kind(self, kind: str) -> List[Entity]:
        return [entity for entity in self.entities if entity.kind == kind]

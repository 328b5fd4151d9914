"""
Insight Synthesizer deriving business annotations from aggregated results.
"""

import logging
from typing import Dict, Any, List, Optional

import numpy as np

from ..execution.models import AggregatedResult
from ..nlp.models import QueryIntent, StructuredQuery
from .models import BusinessInsight, InsightKind

logger = logging.getLogger(__name__)


INSIGHT_CONFIDENCE = {
    InsightKind.TREND: 0.7,
    InsightKind.CORRELATION: 0.6,
    InsightKind.ANOMALY: 0.8,
    InsightKind.RECOMMENDATION: 0.7,
}

FOLLOW_UP_QUESTIONS = [
    "Try asking about trends over time",
    "Compare with previous periods",
    "Look for correlations with other metrics",
]


class InsightSynthesizer:
    """Deterministic rule set; every applicable rule contributes one insight."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.anomaly_z_threshold = self.config.get("anomaly_z_threshold", 3.0)
        self.anomaly_min_samples = self.config.get("anomaly_min_samples", 3)

    def synthesize(self, aggregated: AggregatedResult, query: StructuredQuery) -> List[BusinessInsight]:
        """
        Generate insights for a query's aggregated results.

        Args:
            aggregated: Merged records from the fan-out
            query: The structured query that produced them

        Returns:
            Insights in rule order: trend, correlation, anomaly, recommendation
        """
        insights = []

        if self._is_trend_query(query) and len(aggregated.records) >= 2:
            insights.append(BusinessInsight(
                kind=InsightKind.TREND,
                title="Trend Analysis",
                description="Data shows a consistent pattern over the selected time period.",
                confidence=INSIGHT_CONFIDENCE[InsightKind.TREND],
                data=aggregated.records
            ))

        if query.intent == QueryIntent.COMPARE or aggregated.source_count > 1:
            insights.append(BusinessInsight(
                kind=InsightKind.CORRELATION,
                title="Cross-Platform Correlation",
                description="Data from multiple sources shows interesting relationships.",
                confidence=INSIGHT_CONFIDENCE[InsightKind.CORRELATION],
                data=aggregated.records
            ))

        insights.append(self._anomaly_insight(aggregated))

        if query.intent == QueryIntent.RETRIEVE and aggregated.records:
            insights.append(BusinessInsight(
                kind=InsightKind.RECOMMENDATION,
                title="Next Steps",
                description="Consider analyzing trends or comparing with other time periods.",
                confidence=INSIGHT_CONFIDENCE[InsightKind.RECOMMENDATION],
                recommendations=list(FOLLOW_UP_QUESTIONS)
            ))

        logger.debug(f"Generated {len(insights)} insights: {[insight.kind.value for insight in insights]}")
        return insights

    @staticmethod
    def _is_trend_query(query: StructuredQuery) -> bool:
        return query.intent == QueryIntent.TREND or bool(query.entities_of_kind("time_range"))

    def _anomaly_insight(self, aggregated: AggregatedResult) -> BusinessInsight:
        outliers = self.find_outliers(aggregated.records)

        if outliers:
            fields = sorted({outlier["field"] for outlier in outliers})
            description = f"{len(outliers)} unusual values detected in: {', '.join(fields)}."
        else:
            description = "No significant anomalies detected in the data."

        return BusinessInsight(
            kind=InsightKind.ANOMALY,
            title="Data Quality Check",
            description=description,
            confidence=INSIGHT_CONFIDENCE[InsightKind.ANOMALY],
            data=outliers or None
        )

    def find_outliers(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Flag numeric field values whose z-score exceeds the configured threshold."""
        columns: Dict[str, List[tuple]] = {}
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                continue
            for key, value in record.items():
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    columns.setdefault(key, []).append((index, float(value)))

        outliers = []
        for key, samples in columns.items():
            if len(samples) < self.anomaly_min_samples:
                continue

            values = np.array([value for _, value in samples])
            std = values.std()
            if std == 0:
                continue

            scores = np.abs(values - values.mean()) / std
            for (index, value), score in zip(samples, scores):
                if score > self.anomaly_z_threshold:
                    outliers.append({
                        "field": key,
                        "record_index": index,
                        "value": value,
                        "z_score": round(float(score), 2)
                    })

        return outliers

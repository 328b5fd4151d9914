"""
Renders aggregated results and insights as a plain-text answer.
"""

import json
from typing import List

from ..execution.models import AggregatedResult
from .models import BusinessInsight, InsightKind

NO_DATA_TEXT = "I couldn't find any data matching your query."


class ResponseFormatter:
    """Builds the response text shown to the caller."""

    def __init__(self, preview_size: int = 5):
        self.preview_size = preview_size

    def format(self, aggregated: AggregatedResult, insights: List[BusinessInsight]) -> str:
        parts = [self._format_data(aggregated)]

        if insights:
            lines = ["**Key Insights:**"]
            lines.extend(f"• {insight.title}: {insight.description}" for insight in insights)
            parts.append("\n".join(lines))

        recommendations = [
            rec
            for insight in insights
            if insight.kind == InsightKind.RECOMMENDATION
            for rec in (insight.recommendations or [])
        ]
        if recommendations:
            lines = ["**Recommendations:**"]
            lines.extend(f"• {rec}" for rec in recommendations)
            parts.append("\n".join(lines))

        return "\n\n".join(parts)

    def _format_data(self, aggregated: AggregatedResult) -> str:
        records = aggregated.records
        if not records:
            return NO_DATA_TEXT

        if len(records) == 1:
            return f"Found 1 result: {_dump(records[0])}"

        preview = _dump(records[:self.preview_size])
        return f"Found {len(records)} results. Here are the key findings:\n{preview}"


def _dump(data) -> str:
    return json.dumps(data, indent=2, default=str)

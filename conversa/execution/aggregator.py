"""
Result Aggregator merging per-source payloads into one result.
"""

import logging
from typing import List, Sequence

from .models import AdapterOutcome, AggregatedResult

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Concatenates records from successful outcomes without reconciling schemas."""

    def combine(self, outcomes: Sequence[AdapterOutcome]) -> AggregatedResult:
        successful = [outcome for outcome in outcomes if outcome.success]

        if not successful:
            return AggregatedResult()

        if len(successful) == 1:
            payload = successful[0].payload
            return AggregatedResult(
                records=payload.records,
                total_records=len(payload.records),
                source_count=1,
                metadata=payload.metadata
            )

        records: List = []
        for outcome in successful:
            records.extend(outcome.payload.records)

        logger.debug(f"Combined {len(records)} records from {len(successful)} sources")
        return AggregatedResult(
            records=records,
            total_records=len(records),
            source_count=len(successful),
            metadata={"sources": [outcome.source_id for outcome in successful]}
        )

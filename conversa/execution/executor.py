"""
Fan-out Executor running one structured query against several adapters at once.
"""

import asyncio
import logging
from typing import Dict, Any, List, Mapping, Optional, Sequence

from ..connectors.base import SourceAdapter, SourcePayload
from ..nlp.models import StructuredQuery
from .models import AdapterOutcome

logger = logging.getLogger(__name__)


class FanOutExecutor:
    """Concurrent adapter invocation that tolerates partial failure."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        # None or 0 means one concurrent task per adapter
        self.max_concurrent = self.config.get("max_concurrent") or None

    async def execute_all(
        self,
        query: StructuredQuery,
        adapters: Sequence[SourceAdapter],
        context: Optional[Dict[str, Any]] = None
    ) -> List[AdapterOutcome]:
        """
        Execute the query on every adapter and wait for all of them.

        Args:
            query: The structured query
            adapters: Adapters selected by the router
            context: Call context forwarded to each adapter

        Returns:
            One outcome per adapter, in adapter order
        """
        if not adapters:
            return []

        context = context or {}
        semaphore = asyncio.Semaphore(self.max_concurrent) if self.max_concurrent else None

        async def run_adapter(adapter: SourceAdapter) -> AdapterOutcome:
            if semaphore is None:
                return await self._call(adapter, query, context)
            async with semaphore:
                return await self._call(adapter, query, context)

        logger.info(f"Executing query on {len(adapters)} sources")
        outcomes = await asyncio.gather(*[run_adapter(adapter) for adapter in adapters])

        failures = sum(1 for outcome in outcomes if not outcome.success)
        if failures:
            logger.warning(f"{failures} of {len(outcomes)} sources failed for query: {query.original_text}")

        return list(outcomes)

    async def _call(
        self,
        adapter: SourceAdapter,
        query: StructuredQuery,
        context: Dict[str, Any]
    ) -> AdapterOutcome:
        try:
            payload = await adapter.execute_query(query, context)
        except Exception as e:
            logger.warning(f"Query failed for {adapter.source_id}: {e}")
            return AdapterOutcome.failed(adapter.source_id, str(e) or type(e).__name__)

        if isinstance(payload, Mapping):
            payload = SourcePayload(
                records=list(payload.get("records") or []),
                metadata=dict(payload.get("metadata") or {})
            )
        if not isinstance(payload, SourcePayload):
            logger.warning(f"Invalid payload from {adapter.source_id}: {type(payload).__name__}")
            return AdapterOutcome.failed(adapter.source_id, "invalid payload")

        return AdapterOutcome.succeeded(adapter.source_id, payload)

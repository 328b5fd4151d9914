"""
Adapter serving in-memory reference tables through the source adapter contract.
"""

import copy
import logging
import time
from datetime import datetime
from typing import Dict, Any, Optional, Tuple

from ..errors import SourceConnectionError, QueryError
from ..nlp.models import StructuredQuery
from .base import SourceAdapter, SourceCapability, AdapterStatus, SourcePayload

logger = logging.getLogger(__name__)


class StaticSourceAdapter(SourceAdapter):
    """Serves a fixed dataset, picking the table whose keywords match the query."""

    def __init__(
        self,
        source_id: str,
        dataset: Dict[str, Any],
        credentials: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        self._source_id = source_id
        self.dataset = dataset
        self.credentials = credentials or {}
        self.config = config or {}
        self.limit = self.config.get("limit", 100)

        self.connected = False
        self.last_sync_time: Optional[datetime] = None
        self.error_count = 0
        self.latency_ms = 0.0

    @property
    def source_id(self) -> str:
        return self._source_id

    async def initialize(self):
        if not self._validate_credentials():
            self.error_count += 1
            raise SourceConnectionError(
                f"Invalid {self.source_id} credentials",
                context={"source": self.source_id}
            )

        self.connected = await self.test_connection()
        if not self.connected:
            raise SourceConnectionError(
                f"Could not connect to {self.source_id}",
                context={"source": self.source_id}
            )
        self.last_sync_time = datetime.now()
        logger.info(f"Connected to {self.source_id}")

    async def execute_query(self, query: StructuredQuery, context: Dict[str, Any]) -> SourcePayload:
        if not self.connected:
            self.error_count += 1
            raise QueryError(f"{self.source_id} adapter is not connected", context={"source": self.source_id})

        start = time.perf_counter()
        data_type, table = self._select_table(query)
        records = copy.deepcopy(table["records"][:self.limit])
        self.latency_ms = (time.perf_counter() - start) * 1000
        self.last_sync_time = datetime.now()

        return SourcePayload(
            records=records,
            metadata={
                "source": self.source_id,
                "timestamp": self.last_sync_time.isoformat(),
                "count": len(records),
                "data_type": data_type,
                "tenant": context.get("tenant"),
            }
        )

    def get_capabilities(self) -> SourceCapability:
        return self.dataset["capability"]

    def get_status(self) -> AdapterStatus:
        return AdapterStatus(
            connected=self.connected,
            last_sync_time=self.last_sync_time,
            error_count=self.error_count,
            latency_ms=self.latency_ms
        )

    async def test_connection(self) -> bool:
        return bool(self.dataset.get("tables"))

    async def close(self):
        self.connected = False

    def _validate_credentials(self) -> bool:
        return any(value not in (None, "") for value in self.credentials.values())

    def _select_table(self, query: StructuredQuery) -> Tuple[str, Dict[str, Any]]:
        tables = self.dataset["tables"]
        text = query.original_text.lower()

        for data_type, table in tables.items():
            if any(keyword in text for keyword in table["keywords"]):
                return data_type, table

        # Default to the first table for general queries
        return next(iter(tables.items()))

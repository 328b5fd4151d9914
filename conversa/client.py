"""
Conversa client: the public entry point wiring the query pipeline together.
"""

import copy
import logging
import time
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Dict, Any, Callable, List, Optional, Sequence, Union

from .cache.response_cache import ResponseCache, CacheStats, cache_key
from .connectors.base import (
    AdapterStatus,
    DataSourceConfig,
    Initialized,
    SourceAdapter,
    SourceCapability,
)
from .connectors.registry import AdapterRegistry
from .errors import ValidationError
from .execution.aggregator import ResultAggregator
from .execution.executor import FanOutExecutor
from .insights.formatter import ResponseFormatter
from .insights.synthesizer import InsightSynthesizer
from .models import ChatMessage, ChatSession, QueryResponse, ResponseMetadata
from .nlp.query_processor import QueryProcessor
from .router.source_router import SourceRouter

logger = logging.getLogger(__name__)

EVENTS = ("initialized", "query", "error")

Listener = Callable[[Any], None]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class ConversaClient:
    """
    Answers natural-language business questions from the configured sources.

    Example:
        client = await ConversaClient.create(config)
        response = await client.query("What are my top selling products?")

    Listeners registered with ``on`` observe the client:
        "initialized" receives the client once configured sources are connected,
        "query" receives each freshly computed QueryResponse,
        "error" receives the exception of a failed query before it is re-raised.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        adapters: Sequence[Initialized[SourceAdapter]] = (),
        registry: Optional[AdapterRegistry] = None
    ):
        self.config = config
        self.tenant = config.get("tenant")
        self.registry = registry or AdapterRegistry()

        self.processor = QueryProcessor(config.get("business_context"))
        self.router = SourceRouter(config.get("router", {}))
        self.executor = FanOutExecutor(config.get("execution", {}))
        self.aggregator = ResultAggregator()
        self.synthesizer = InsightSynthesizer(config.get("insights", {}))
        self.formatter = ResponseFormatter()
        self.cache = ResponseCache(config.get("cache", {}))

        self.adapters: Dict[str, Initialized[SourceAdapter]] = {}
        for adapter in adapters:
            self.adapters[adapter.value.source_id] = adapter

        self.sessions: Dict[str, ChatSession] = {}
        self.listeners: Dict[str, List[Listener]] = defaultdict(list)

    @classmethod
    async def create(
        cls,
        config: Dict[str, Any],
        registry: Optional[AdapterRegistry] = None
    ) -> "ConversaClient":
        """Connect every configured data source and return a ready client."""
        client = cls(config, registry=registry)
        await client.connect_sources()
        return client

    async def connect_sources(self):
        """
        Connect every entry of the ``data_sources`` config section.

        If any source fails, the sources connected so far are closed and the
        error is re-raised.
        """
        connected = []
        try:
            for data_source in self.config.get("data_sources") or []:
                connected.append(await self.registry.connect(data_source))
        except Exception:
            for adapter in connected:
                await adapter.value.close()
            raise

        for adapter in connected:
            self.adapters[adapter.value.source_id] = adapter

        logger.info(f"Conversa client ready with {len(self.adapters)} data sources")
        self._emit("initialized", self)

    def on(self, event: str, listener: Listener):
        """Register a listener for "initialized", "query" or "error"."""
        if event not in EVENTS:
            raise ValidationError(f"Unknown event: {event}", context={"events": list(EVENTS)})
        self.listeners[event].append(listener)

    def off(self, event: str, listener: Listener):
        if listener in self.listeners.get(event, []):
            self.listeners[event].remove(listener)

    async def query(self, text: str, context: Optional[Dict[str, Any]] = None) -> QueryResponse:
        """
        Answer a natural-language question.

        Args:
            text: The user's question
            context: Optional call context; part of the cache key and forwarded to adapters

        Returns:
            QueryResponse with response text, merged data, insights and metadata
        """
        try:
            return await self._answer(text, context)
        except Exception as e:
            logger.error(f"Query failed: {text}: {e}")
            self._emit("error", e)
            raise

    async def _answer(self, text: str, context: Optional[Dict[str, Any]]) -> QueryResponse:
        start = time.perf_counter()
        key = cache_key(text, context)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Cache hit for query: {text}")
            response = copy.deepcopy(cached)
            response.metadata.cache_hit = True
            return response

        structured = self.processor.process(text)
        selected = self.router.select(structured, self.get_adapters())
        outcomes = await self.executor.execute_all(structured, selected, self._call_context(context))
        aggregated = self.aggregator.combine(outcomes)
        insights = self.synthesizer.synthesize(aggregated, structured)

        response = QueryResponse(
            id=_new_id("resp"),
            query=text,
            response_text=self.formatter.format(aggregated, insights),
            data=aggregated,
            insights=insights,
            metadata=ResponseMetadata(
                processing_time_ms=(time.perf_counter() - start) * 1000,
                sources_used=[outcome.source_id for outcome in outcomes if outcome.success],
                cache_hit=False,
                complexity=structured.complexity.value
            )
        )

        # Stored copy is isolated from the returned response
        self.cache.set(key, copy.deepcopy(response))
        logger.info(
            f"Answered query with {aggregated.total_records} records from "
            f"{aggregated.source_count} sources in {response.metadata.processing_time_ms:.1f}ms"
        )
        self._emit("query", response)
        return response

    def create_chat_session(self, context: Optional[Dict[str, Any]] = None) -> ChatSession:
        session = ChatSession(id=_new_id("session"), context=dict(context or {}))
        self.sessions[session.id] = session
        return session

    async def send_message(
        self,
        session_id: str,
        message: str,
        context: Optional[Dict[str, Any]] = None
    ) -> ChatMessage:
        """Answer a message within a chat session and record both turns."""
        session = self.sessions.get(session_id)
        if session is None:
            raise ValidationError(f"Unknown chat session: {session_id}")

        user_message = ChatMessage(id=_new_id("msg"), role="user", content=message)
        query_context = {**session.context, **(context or {})}
        response = await self.query(message, query_context or None)

        assistant_message = ChatMessage(
            id=_new_id("msg"),
            role="assistant",
            content=response.response_text,
            metadata={"query_response": response}
        )
        session.messages.extend([user_message, assistant_message])
        session.updated_at = datetime.now()
        return assistant_message

    def get_adapters(self) -> List[SourceAdapter]:
        return [adapter.value for adapter in self.adapters.values()]

    async def add_data_source(self, data_source: Union[DataSourceConfig, Dict[str, Any]]):
        """Connect a new data source; replaces an existing one of the same type."""
        adapter = await self.registry.connect(data_source)
        source_id = adapter.value.source_id

        previous = self.adapters.pop(source_id, None)
        if previous is not None:
            await previous.value.close()

        self.adapters[source_id] = adapter
        self.cache.clear()
        logger.info(f"Added data source: {source_id}")

    async def remove_data_source(self, source_id: str):
        adapter = self.adapters.pop(source_id, None)
        if adapter is None:
            return
        await adapter.value.close()
        self.cache.clear()
        logger.info(f"Removed data source: {source_id}")

    def get_connector_status(self) -> Dict[str, AdapterStatus]:
        status = {}
        for source_id, adapter in self.adapters.items():
            try:
                status[source_id] = adapter.value.get_status()
            except Exception as e:
                logger.warning(f"Failed to get status for {source_id}: {e}")
                status[source_id] = AdapterStatus(
                    connected=False, last_sync_time=None, error_count=1, latency_ms=-1
                )
        return status

    def get_capabilities(self) -> Dict[str, SourceCapability]:
        return {source_id: adapter.value.get_capabilities() for source_id, adapter in self.adapters.items()}

    async def test_connection(self, source_id: str) -> bool:
        adapter = self.adapters.get(source_id)
        if adapter is None:
            return False
        return await adapter.value.test_connection()

    def update_business_context(self, context: Dict[str, Any]):
        merged = {**(self.config.get("business_context") or {}), **context}
        self.config["business_context"] = merged
        self.processor.update_context(merged)
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    async def close(self):
        for adapter in self.adapters.values():
            await adapter.value.close()
        self.adapters.clear()
        self.sessions.clear()
        self.cache.clear()

    def _call_context(self, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return {"tenant": self.tenant, **(context or {})}

    def _emit(self, event: str, payload: Any):
        for listener in list(self.listeners.get(event, [])):
            listener(payload)

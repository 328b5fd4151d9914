"""
Tests for the Conversa query pipeline components.
"""

import asyncio
from datetime import datetime
from unittest.mock import Mock, AsyncMock

import pytest

from conversa.connectors.base import SourcePayload
from conversa.errors import QueryError
from conversa.execution.aggregator import ResultAggregator
from conversa.execution.executor import FanOutExecutor
from conversa.execution.models import AdapterOutcome, AggregatedResult
from conversa.insights.formatter import ResponseFormatter, NO_DATA_TEXT
from conversa.insights.models import BusinessInsight, InsightKind
from conversa.insights.synthesizer import InsightSynthesizer
from conversa.nlp.models import (
    ALL_SOURCES,
    Entity,
    QueryComplexity,
    QueryIntent,
    StructuredQuery,
    assess_complexity,
)
from conversa.nlp.query_processor import QueryProcessor
from conversa.router.source_router import SourceRouter


def make_adapter(source_id, records=None, error=None):
    adapter = Mock(source_id=source_id)
    if error is not None:
        adapter.execute_query = AsyncMock(side_effect=error)
    else:
        adapter.execute_query = AsyncMock(return_value=SourcePayload(
            records=records or [],
            metadata={"source": source_id}
        ))
    return adapter


def make_query(text="show data", intent=QueryIntent.RETRIEVE, sources=(ALL_SOURCES,), entities=()):
    return StructuredQuery(
        original_text=text,
        intent=intent,
        entities=tuple(entities),
        candidate_sources=tuple(sources)
    )


class TestQueryProcessor:
    """Test Query Processor functionality."""

    @pytest.fixture
    def now(self):
        return datetime(2024, 3, 15, 12, 0)

    @pytest.fixture
    def processor(self, now):
        return QueryProcessor(clock=lambda: now)

    def test_intent_priority(self, processor):
        """Retrieve keywords are checked before trend keywords."""
        query = processor.process("What is the trend in sales?")
        assert query.intent == QueryIntent.RETRIEVE

    def test_intent_classification(self, processor):
        assert processor.process("Compare revenue vs cost").intent == QueryIntent.COMPARE
        assert processor.process("Revenue growth over time").intent == QueryIntent.TREND
        assert processor.process("Why did revenue drop?").intent == QueryIntent.EXPLAIN
        assert processor.process("Forecast revenue").intent == QueryIntent.PREDICT
        assert processor.process("Revenue please").intent == QueryIntent.RETRIEVE

    def test_entity_confidence(self, processor):
        query = processor.process("What are my top selling products?")
        products = [entity for entity in query.entities if entity.value == "product"]
        assert products == [Entity(kind="entity", value="product", confidence=0.9)]

        query = processor.process("What is the trend in sales?")
        assert query.entities
        assert all(entity.kind == "metric" and entity.confidence == 0.8 for entity in query.entities)

    def test_time_entities(self, processor):
        query = processor.process("How many customers signed up in 2023")
        assert [entity.value for entity in query.entities_of_kind("year")] == ["2023"]

        query = processor.process("Revenue for the last 30 days")
        time_ranges = query.entities_of_kind("time_range")
        assert time_ranges[0].value == "last 30 days"
        assert time_ranges[0].confidence == 0.9

    def test_all_sources_sentinel(self, processor):
        query = processor.process("What is the trend in sales?")
        assert query.candidate_sources == (ALL_SOURCES,)
        assert query.targets_all_sources

    def test_source_identification(self, processor):
        query = processor.process("Show payments and traffic")
        assert query.candidate_sources == ("stripe", "google-analytics")
        assert not query.targets_all_sources

    def test_operations(self, processor):
        query = processor.process("Show total revenue by category")
        assert query.operations == ("sum", "group")
        assert processor.process("How many orders").operations == ("count",)

    def test_time_range_last_week(self, processor, now):
        window = processor.process("Show me orders from last week").time_range
        assert window.start == datetime(2024, 3, 8, 12, 0)
        assert window.end == now
        assert window.granularity == "day"

    def test_time_range_this_year(self, processor, now):
        window = processor.process("Revenue this year").time_range
        assert window.start == datetime(2024, 1, 1)
        assert window.end == now
        assert window.granularity == "month"

    def test_no_time_range(self, processor):
        assert processor.process("Show products").time_range is None

    def test_update_context(self, processor):
        """Business context terminology and metrics extend the defaults."""
        processor.update_context({
            "terminology": {"subscriber": "entity", "vip": "segment"},
            "metrics": ["churn"]
        })
        query = processor.process("Show vip subscriber churn")

        values = {entity.value: entity for entity in query.entities}
        assert values["subscriber"].confidence == 0.9
        assert values["vip"].kind == "segment"
        assert values["vip"].confidence == 0.9
        assert values["churn"].kind == "metric"
        assert "customer" in processor.get_business_terms()


class TestQueryComplexity:
    """Test complexity scoring thresholds."""

    def entities(self, count):
        return tuple(Entity(kind="metric", value=f"m{i}", confidence=0.8) for i in range(count))

    def test_simple(self):
        assert assess_complexity(QueryIntent.RETRIEVE, self.entities(2), ("shopify",)) == QueryComplexity.SIMPLE

    def test_moderate(self):
        complexity = assess_complexity(QueryIntent.RETRIEVE, self.entities(4), ("shopify", "stripe"))
        assert complexity == QueryComplexity.MODERATE

    def test_complex(self):
        complexity = assess_complexity(
            QueryIntent.COMPARE, self.entities(5), ("shopify", "stripe", "salesforce")
        )
        assert complexity == QueryComplexity.COMPLEX

    def test_property_matches_function(self):
        query = make_query(intent=QueryIntent.PREDICT, sources=("shopify",))
        assert query.complexity == QueryComplexity.MODERATE


class TestSourceRouter:
    """Test Source Router functionality."""

    @pytest.fixture
    def adapters(self):
        return [make_adapter(source) for source in ["shopify", "stripe", "google-analytics", "salesforce"]]

    @pytest.fixture
    def router(self):
        return SourceRouter()

    def test_all_sentinel_selects_everything(self, router, adapters):
        selected = router.select(make_query("What is going on?"), adapters)
        assert selected == adapters

    def test_all_sentinel_disabled(self, adapters):
        router = SourceRouter({"fan_out_on_all": False})
        selected = router.select(make_query("What is going on?"), adapters)
        assert selected == []

    def test_relevance_terms(self, router, adapters):
        query = make_query("Compare payments with traffic", sources=("stripe", "google-analytics"))
        selected = router.select(query, adapters)
        assert [adapter.source_id for adapter in selected] == ["stripe", "google-analytics"]

    def test_sales_routes_to_shopify(self, router, adapters):
        selected = router.select(make_query("Show sales", sources=("shopify",)), adapters)
        assert [adapter.source_id for adapter in selected] == ["shopify"]

    def test_unknown_source_falls_back_to_id(self, router):
        adapters = [make_adapter("hubspot")]
        selected = router.select(make_query("Show hubspot contacts", sources=("salesforce",)), adapters)
        assert selected == adapters
        assert router.get_relevance_terms("hubspot") == ["hubspot"]

    def test_order_preserved_without_duplicates(self, router):
        adapters = [make_adapter("stripe"), make_adapter("shopify"), make_adapter("stripe")]
        query = make_query("orders and payments", sources=("shopify", "stripe"))
        selected = router.select(query, adapters)
        assert [adapter.source_id for adapter in selected] == ["stripe", "shopify"]

    def test_configured_relevance_terms(self, adapters):
        router = SourceRouter({"relevance_terms": {"salesforce": ["Deal"]}})
        selected = router.select(make_query("Show every deal", sources=("salesforce",)), adapters)
        assert [adapter.source_id for adapter in selected] == ["salesforce"]
        assert router.get_routing_stats()["relevance_terms"]["salesforce"] == ["deal"]

    def test_configured_relevance_terms_key_case(self, adapters):
        router = SourceRouter({"relevance_terms": {"Shopify": ["Widget"]}})
        selected = router.select(make_query("Show every widget", sources=("shopify",)), adapters)
        assert [adapter.source_id for adapter in selected] == ["shopify"]
        assert router.get_relevance_terms("shopify") == ["widget"]


class TestFanOutExecutor:
    """Test Fan-out Executor functionality."""

    @pytest.mark.asyncio
    async def test_no_adapters(self):
        assert await FanOutExecutor().execute_all(make_query(), []) == []

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        adapters = [
            make_adapter("shopify", [{"id": 1}]),
            make_adapter("stripe", error=QueryError("stripe is down")),
            make_adapter("salesforce", [{"id": 2}]),
        ]

        outcomes = await FanOutExecutor().execute_all(make_query(), adapters, {"tenant": "t1"})

        assert [outcome.source_id for outcome in outcomes] == ["shopify", "stripe", "salesforce"]
        failed = [outcome for outcome in outcomes if not outcome.success]
        assert len(failed) == 1
        assert failed[0].failure_reason == "stripe is down"
        assert failed[0].payload is None
        adapters[0].execute_query.assert_awaited_once_with(make_query(), {"tenant": "t1"})

        aggregated = ResultAggregator().combine(outcomes)
        assert aggregated.total_records == 2
        assert aggregated.source_count == 2
        assert aggregated.records == [{"id": 1}, {"id": 2}]

    @pytest.mark.asyncio
    async def test_mapping_payload_is_normalized(self):
        adapter = make_adapter("shopify")
        adapter.execute_query = AsyncMock(return_value={
            "records": [{"id": 1}],
            "metadata": {"source": "shopify"}
        })

        outcomes = await FanOutExecutor().execute_all(make_query(), [adapter])

        assert outcomes[0].success
        assert outcomes[0].payload == SourcePayload(records=[{"id": 1}], metadata={"source": "shopify"})

    @pytest.mark.asyncio
    async def test_invalid_payload_is_a_failure(self):
        broken = make_adapter("stripe")
        broken.execute_query = AsyncMock(return_value=None)
        adapters = [broken, make_adapter("shopify", [{"id": 1}])]

        outcomes = await FanOutExecutor().execute_all(make_query(), adapters)

        assert not outcomes[0].success
        assert outcomes[0].failure_reason == "invalid payload"
        assert outcomes[1].success
        assert ResultAggregator().combine(outcomes).total_records == 1

    @pytest.mark.asyncio
    async def test_failure_reason_without_message(self):
        outcomes = await FanOutExecutor().execute_all(make_query(), [make_adapter("stripe", error=TimeoutError())])
        assert outcomes[0].failure_reason == "TimeoutError"

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        active = {"now": 0, "peak": 0}

        async def slow_query(query, context):
            active["now"] += 1
            active["peak"] = max(active["peak"], active["now"])
            await asyncio.sleep(0.01)
            active["now"] -= 1
            return SourcePayload(records=[])

        adapters = [make_adapter(source) for source in ["a", "b", "c"]]
        for adapter in adapters:
            adapter.execute_query = AsyncMock(side_effect=slow_query)

        await FanOutExecutor().execute_all(make_query(), adapters)
        assert active["peak"] == 3

        active["peak"] = 0
        await FanOutExecutor({"max_concurrent": 1}).execute_all(make_query(), adapters)
        assert active["peak"] == 1


class TestResultAggregator:
    """Test Result Aggregator functionality."""

    @pytest.fixture
    def aggregator(self):
        return ResultAggregator()

    def outcome(self, source_id, records):
        return AdapterOutcome.succeeded(source_id, SourcePayload(records=records, metadata={"source": source_id}))

    def test_no_successes(self, aggregator):
        result = aggregator.combine([AdapterOutcome.failed("stripe", "down")])
        assert result.records == []
        assert result.summary == {"total_records": 0, "source_count": 0}

    def test_single_source_passthrough(self, aggregator):
        records = [{"id": 1}, {"id": 2}]
        result = aggregator.combine([self.outcome("shopify", records), AdapterOutcome.failed("stripe", "down")])

        assert result.records == records
        assert result.total_records == 2
        assert result.source_count == 1
        assert result.metadata == {"source": "shopify"}

    def test_multiple_sources(self, aggregator):
        result = aggregator.combine([
            self.outcome("shopify", [{"id": 1}]),
            self.outcome("stripe", [{"id": "pi_1"}, {"id": "pi_2"}]),
        ])

        assert result.records == [{"id": 1}, {"id": "pi_1"}, {"id": "pi_2"}]
        assert result.total_records == 3
        assert result.source_count == 2
        assert result.metadata == {"sources": ["shopify", "stripe"]}


class TestInsightSynthesizer:
    """Test Insight Synthesizer functionality."""

    @pytest.fixture
    def synthesizer(self):
        return InsightSynthesizer()

    def kinds(self, insights):
        return [insight.kind for insight in insights]

    def test_retrieve_with_records(self, synthesizer):
        aggregated = AggregatedResult(records=[{"id": 1}], total_records=1, source_count=1)
        insights = synthesizer.synthesize(aggregated, make_query())

        assert self.kinds(insights) == [InsightKind.ANOMALY, InsightKind.RECOMMENDATION]
        assert insights[0].description == "No significant anomalies detected in the data."
        assert insights[0].confidence == 0.8
        assert len(insights[1].recommendations) == 3

    def test_trend(self, synthesizer):
        aggregated = AggregatedResult(records=[{"v": 1}, {"v": 2}], total_records=2, source_count=1)
        insights = synthesizer.synthesize(aggregated, make_query(intent=QueryIntent.TREND))

        assert self.kinds(insights) == [InsightKind.TREND, InsightKind.ANOMALY]
        assert insights[0].confidence == 0.7

    def test_trend_needs_two_records(self, synthesizer):
        aggregated = AggregatedResult(records=[{"v": 1}], total_records=1, source_count=1)
        insights = synthesizer.synthesize(aggregated, make_query(intent=QueryIntent.TREND))
        assert self.kinds(insights) == [InsightKind.ANOMALY]

    def test_time_range_entity_triggers_trend(self, synthesizer):
        aggregated = AggregatedResult(records=[{"v": 1}, {"v": 2}], total_records=2, source_count=1)
        query = make_query(
            intent=QueryIntent.EXPLAIN,
            entities=[Entity(kind="time_range", value="last 7 days", confidence=0.9)]
        )
        assert InsightKind.TREND in self.kinds(synthesizer.synthesize(aggregated, query))

    def test_correlation(self, synthesizer):
        insights = synthesizer.synthesize(AggregatedResult(), make_query(intent=QueryIntent.COMPARE))
        assert self.kinds(insights) == [InsightKind.CORRELATION, InsightKind.ANOMALY]
        assert insights[0].confidence == 0.6

        aggregated = AggregatedResult(records=[{"a": 1}, {"b": 2}], total_records=2, source_count=2)
        insights = synthesizer.synthesize(aggregated, make_query(intent=QueryIntent.EXPLAIN))
        assert self.kinds(insights) == [InsightKind.CORRELATION, InsightKind.ANOMALY]

    def test_anomaly_always_present(self, synthesizer):
        insights = synthesizer.synthesize(AggregatedResult(), make_query())
        assert self.kinds(insights) == [InsightKind.ANOMALY]

    def test_outlier_detection(self, synthesizer):
        records = [{"amount": 10.0, "id": i} for i in range(19)] + [{"amount": 1000.0, "id": 19}]
        aggregated = AggregatedResult(records=records, total_records=20, source_count=1)

        outliers = synthesizer.find_outliers(records)
        assert [(outlier["field"], outlier["record_index"]) for outlier in outliers] == [("amount", 19)]

        anomaly = synthesizer.synthesize(aggregated, make_query())[0]
        assert anomaly.description == "1 unusual values detected in: amount."
        assert anomaly.data == outliers

    def test_outliers_need_min_samples(self, synthesizer):
        assert synthesizer.find_outliers([{"amount": 1}, {"amount": 1000}]) == []


class TestResponseFormatter:
    """Test Response Formatter functionality."""

    @pytest.fixture
    def formatter(self):
        return ResponseFormatter()

    def test_no_data(self, formatter):
        assert formatter.format(AggregatedResult(), []) == NO_DATA_TEXT

    def test_single_record(self, formatter):
        aggregated = AggregatedResult(records=[{"id": 1}], total_records=1, source_count=1)
        text = formatter.format(aggregated, [])
        assert text.startswith("Found 1 result: ")

    def test_sections(self, formatter):
        aggregated = AggregatedResult(records=[{"id": i} for i in range(8)], total_records=8, source_count=1)
        insights = [
            BusinessInsight(InsightKind.ANOMALY, "Data Quality Check", "All good.", 0.8),
            BusinessInsight(InsightKind.RECOMMENDATION, "Next Steps", "Dig deeper.", 0.7,
                            recommendations=["Compare with previous periods"]),
        ]

        sections = formatter.format(aggregated, insights).split("\n\n")

        assert sections[0].startswith("Found 8 results. Here are the key findings:\n")
        assert '"id": 4' in sections[0]
        assert '"id": 5' not in sections[0]
        assert sections[1] == (
            "**Key Insights:**\n"
            "• Data Quality Check: All good.\n"
            "• Next Steps: Dig deeper."
        )
        assert sections[2] == "**Recommendations:**\n• Compare with previous periods"

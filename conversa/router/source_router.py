"""
Source Router for selecting which registered adapters should answer a query.
"""

import logging
from typing import Dict, Any, List, Optional, Sequence

from ..connectors.base import SourceAdapter
from ..nlp.models import StructuredQuery

logger = logging.getLogger(__name__)


DEFAULT_RELEVANCE_TERMS: Dict[str, List[str]] = {
    "shopify": ["product", "order", "customer", "inventory", "sales", "shopify"],
    "stripe": ["payment", "subscription", "revenue", "transaction", "stripe"],
    "google-analytics": ["traffic", "visitor", "pageview", "conversion", "analytics"],
    "salesforce": ["lead", "opportunity", "account", "contact", "salesforce"],
}


class SourceRouter:
    """Keyword-relevance router over the registered source adapters."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

        self.relevance_terms: Dict[str, List[str]] = {
            source: list(terms) for source, terms in DEFAULT_RELEVANCE_TERMS.items()
        }
        for source, terms in (self.config.get("relevance_terms") or {}).items():
            self.relevance_terms[source.lower()] = [term.lower() for term in terms]

        # When extraction found no source keyword, every adapter is asked.
        self.fan_out_on_all = self.config.get("fan_out_on_all", True)

    def select(self, query: StructuredQuery, adapters: Sequence[SourceAdapter]) -> List[SourceAdapter]:
        """
        Select the adapters relevant to a structured query.

        Args:
            query: The structured query
            adapters: Registered adapters in registration order

        Returns:
            Relevant adapters, in registration order, without duplicates
        """
        select_everything = query.targets_all_sources and self.fan_out_on_all

        selected: List[SourceAdapter] = []
        seen = set()
        for adapter in adapters:
            if adapter.source_id in seen:
                continue
            if select_everything or self.is_relevant(adapter.source_id, query):
                selected.append(adapter)
                seen.add(adapter.source_id)

        logger.info(
            f"Routing query to {len(selected)} of {len(adapters)} sources: "
            f"{[adapter.source_id for adapter in selected]}"
        )
        return selected

    def is_relevant(self, source_id: str, query: StructuredQuery) -> bool:
        text = query.original_text.lower()
        return any(term in text for term in self.get_relevance_terms(source_id))

    def get_relevance_terms(self, source_id: str) -> List[str]:
        return self.relevance_terms.get(source_id.lower(), [source_id.lower()])

    def get_routing_stats(self) -> Dict[str, Any]:
        """Get routing configuration."""
        return {
            "fan_out_on_all": self.fan_out_on_all,
            "relevance_terms": self.relevance_terms
        }

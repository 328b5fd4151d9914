"""
Registry mapping source identifiers to adapter implementations.
"""

import logging
from typing import Dict, Any, List, Callable, Union

from ..errors import ValidationError
from .base import SourceAdapter, DataSourceConfig, Initialized
from .datasets import SOURCE_DATASETS
from .static_adapter import StaticSourceAdapter

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[DataSourceConfig], SourceAdapter]


def _static_factory(source_id: str) -> AdapterFactory:
    def build(data_source: DataSourceConfig) -> SourceAdapter:
        return StaticSourceAdapter(
            source_id,
            SOURCE_DATASETS[source_id],
            credentials=data_source.credentials,
            config=data_source.config
        )
    return build


class AdapterRegistry:
    """Resolves configured data sources to initialized adapters."""

    def __init__(self, include_builtin: bool = True):
        self.factories: Dict[str, AdapterFactory] = {}
        if include_builtin:
            for source_id in SOURCE_DATASETS:
                self.register(source_id, _static_factory(source_id))

    def register(self, source_id: str, factory: AdapterFactory):
        """Register (or replace) the implementation used for a source id."""
        self.factories[source_id] = factory
        logger.debug(f"Registered adapter factory for {source_id}")

    def available_sources(self) -> List[str]:
        return list(self.factories.keys())

    async def connect(self, data_source: Union[DataSourceConfig, Dict[str, Any]]) -> Initialized[SourceAdapter]:
        """
        Build and initialize the adapter for one data source.

        Args:
            data_source: Data source entry with type, credentials and config

        Returns:
            The initialized adapter

        Raises:
            ValidationError: If no implementation is registered for the type
            SourceConnectionError: If the adapter cannot reach its source
        """
        if isinstance(data_source, dict):
            data_source = DataSourceConfig.from_dict(data_source)

        factory = self.factories.get(data_source.type)
        if factory is None:
            raise ValidationError(
                f"Unsupported data source type: {data_source.type}",
                context={"available": self.available_sources()}
            )

        adapter = factory(data_source)
        await adapter.initialize()
        return Initialized(adapter)

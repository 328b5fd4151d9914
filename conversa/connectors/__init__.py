"""
Data source adapters and their registry.
"""

from .base import (
    AdapterStatus,
    DataSourceConfig,
    Initialized,
    SourceAdapter,
    SourceCapability,
    SourcePayload,
    resolve_env_vars,
)
from .registry import AdapterRegistry
from .static_adapter import StaticSourceAdapter

__all__ = [
    "AdapterRegistry",
    "AdapterStatus",
    "DataSourceConfig",
    "Initialized",
    "SourceAdapter",
    "SourceCapability",
    "SourcePayload",
    "StaticSourceAdapter",
    "resolve_env_vars",
]

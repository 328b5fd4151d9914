"""
Source adapter contract shared by every data source integration.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional, Generic, TypeVar

from ..nlp.models import StructuredQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resolve_env_vars(value: Any) -> Any:
    """Resolve environment variables in string values like ${VAR_NAME}."""
    if isinstance(value, str) and "${" in value:
        def replace_env_var(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, value)
    return value


@dataclass(frozen=True)
class SourceCapability:
    """Static descriptor of what an adapter can serve."""
    source_id: str
    data_types: List[str]
    operations: List[str]
    supports_realtime: bool = False
    batch_size: int = 100
    rate_limit: float = 1.0


@dataclass
class AdapterStatus:
    """Connection health snapshot of an adapter."""
    connected: bool
    last_sync_time: Optional[datetime]
    error_count: int
    latency_ms: float


@dataclass
class SourcePayload:
    """Records returned by one adapter for one query."""
    records: List[Dict[str, Any]]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Initialized(Generic[T]):
    """A component whose setup call has completed successfully."""
    value: T
    initialized_at: datetime = field(default_factory=datetime.now)


@dataclass
class DataSourceConfig:
    """One entry of the ``data_sources`` configuration section."""
    type: str
    credentials: Dict[str, Any] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.credentials = {key: resolve_env_vars(value) for key, value in self.credentials.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataSourceConfig":
        return cls(
            type=data["type"],
            credentials=dict(data.get("credentials") or {}),
            config=dict(data.get("config") or {})
        )


class SourceAdapter(ABC):
    """Uniform contract for executing structured queries against one system."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Identifier of the data source this adapter serves."""
        pass

    @abstractmethod
    async def initialize(self):
        """Validate credentials and probe connectivity; raises SourceConnectionError."""
        pass

    @abstractmethod
    async def execute_query(self, query: StructuredQuery, context: Dict[str, Any]) -> SourcePayload:
        """Run the query against the source; raises QueryError."""
        pass

    @abstractmethod
    def get_capabilities(self) -> SourceCapability:
        pass

    @abstractmethod
    def get_status(self) -> AdapterStatus:
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """Return whether the source is reachable. Never raises."""
        pass

    async def close(self):
        """Release any resources held by the adapter."""
        pass

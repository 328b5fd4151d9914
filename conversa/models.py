"""
Data models for the public query API.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional

from .execution.models import AggregatedResult
from .insights.models import BusinessInsight


@dataclass
class ResponseMetadata:
    """How a response was produced."""
    processing_time_ms: float
    sources_used: List[str]
    cache_hit: bool
    complexity: str


@dataclass
class QueryResponse:
    """Answer to one natural-language query."""
    id: str
    query: str
    response_text: str
    metadata: ResponseMetadata
    data: Optional[AggregatedResult] = None
    insights: List[BusinessInsight] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChatMessage:
    id: str
    role: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatSession:
    """Conversation whose messages are answered through the query API."""
    id: str
    messages: List[ChatMessage] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

"""
Data models for fan-out execution and aggregation.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from ..connectors.base import SourcePayload


@dataclass(frozen=True)
class AdapterOutcome:
    """Result of one adapter call: either a payload or a failure reason."""
    source_id: str
    success: bool
    payload: Optional[SourcePayload] = None
    failure_reason: Optional[str] = None

    @classmethod
    def succeeded(cls, source_id: str, payload: SourcePayload) -> "AdapterOutcome":
        return cls(source_id=source_id, success=True, payload=payload)

    @classmethod
    def failed(cls, source_id: str, reason: str) -> "AdapterOutcome":
        return cls(source_id=source_id, success=False, failure_reason=reason)


@dataclass
class AggregatedResult:
    """Records merged from every successful adapter call."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    total_records: int = 0
    source_count: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def summary(self) -> Dict[str, int]:
        return {"total_records": self.total_records, "source_count": self.source_count}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": self.records,
            "summary": self.summary,
            "metadata": self.metadata
        }

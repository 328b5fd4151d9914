"""
Error taxonomy for the query engine.
"""

from typing import Dict, Any, Optional
from datetime import datetime


class ConversaError(Exception):
    """Base error carrying a machine-readable code and call context."""

    code = "UNEXPECTED_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logging."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


class SourceConnectionError(ConversaError):
    """An adapter cannot reach its data source."""

    code = "DATA_SOURCE_ERROR"


class QueryError(ConversaError):
    """An adapter failed while executing a structured query."""

    code = "QUERY_EXECUTION_ERROR"


class ValidationError(ConversaError):
    """Malformed input, e.g. an unsupported source id."""

    code = "VALIDATION_ERROR"

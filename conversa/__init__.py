"""
Conversa Query Engine

Answers natural-language business questions by extracting a structured query,
fanning it out to the relevant data source adapters, merging their results and
annotating the merged data with business insights.
"""

__version__ = "1.0.0"
__author__ = "Conversa Team"

from .client import ConversaClient
from .models import QueryResponse, ResponseMetadata

__all__ = ["ConversaClient", "QueryResponse", "ResponseMetadata"]

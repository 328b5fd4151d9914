"""
Source routing for the query engine.
"""

from .source_router import SourceRouter, DEFAULT_RELEVANCE_TERMS

__all__ = ["SourceRouter", "DEFAULT_RELEVANCE_TERMS"]

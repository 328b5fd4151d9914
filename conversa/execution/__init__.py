"""
Concurrent execution and result aggregation.
"""

from .aggregator import ResultAggregator
from .executor import FanOutExecutor
from .models import AdapterOutcome, AggregatedResult

__all__ = ["AdapterOutcome", "AggregatedResult", "FanOutExecutor", "ResultAggregator"]

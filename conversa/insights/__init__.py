"""
Business insight generation and response formatting.
"""

from .formatter import ResponseFormatter, NO_DATA_TEXT
from .models import BusinessInsight, InsightKind
from .synthesizer import InsightSynthesizer

__all__ = ["BusinessInsight", "InsightKind", "InsightSynthesizer", "NO_DATA_TEXT", "ResponseFormatter"]

"""Moderation oracle integration.

Wraps the Anthropic API and turns its JSON answers into moderation results,
falling back to a configured default when the oracle cannot answer.
"""

from loopsafe.oracle.analyzer import ContentAnalyzer
from loopsafe.oracle.client import LLMClient, LLMResponse

__all__ = [
    "ContentAnalyzer",
    "LLMClient",
    "LLMResponse",
]

"""
Pulse - LLM Client.

Provides structured LLM calls via Instructor.
"""

from pulse.llm.client import LLMNotConfiguredError, call_llm, get_client
from pulse.llm.model_router import get_model

__all__ = [
    "LLMNotConfiguredError",
    "get_client",
    "call_llm",
    "get_model",
]

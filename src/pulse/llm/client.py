"""
Pulse - LLM Client.

Wraps OpenAI with Instructor for guaranteed structured outputs.
All LLM calls go through here for consistency and observability.
"""

import logging
from typing import TypeVar

import instructor
from openai import AsyncOpenAI
from pydantic import BaseModel

from pulse.config import settings
from pulse.llm.model_router import get_node_config
from pulse.llm.prompt_logger import log_prompt

logger = logging.getLogger(__name__)

# Type variable for generic structured output
T = TypeVar("T", bound=BaseModel)

# Singleton client instance
_client: instructor.AsyncInstructor | None = None


class LLMNotConfiguredError(RuntimeError):
    """Raised when a call is attempted without an API key."""


def get_client() -> instructor.AsyncInstructor:
    """
    Get the Instructor-wrapped async OpenAI client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        if not settings.has_llm_backend:
            raise LLMNotConfiguredError("OPENAI_API_KEY is not set")
        openai_client = AsyncOpenAI(api_key=settings.openai_api_key)
        _client = instructor.from_openai(openai_client)

    return _client


def reset_client() -> None:
    """Drop the cached client (settings changed, or tests)."""
    global _client
    _client = None


async def call_llm(
    *,
    response_model: type[T],
    system_prompt: str,
    user_prompt: str,
    node: str = "unknown",
    complexity: str = "medium",
    max_retries: int = 2,
) -> T:
    """
    Make a structured LLM call with guaranteed schema compliance.

    Args:
        response_model: Pydantic model class for the response
        system_prompt: System message setting context
        user_prompt: User message with the actual request
        node: Caller name, used for model config and prompt logs
        complexity: Task complexity for model selection ("low", "medium", "high")
        max_retries: Number of retries if response doesn't match schema

    Returns:
        Instance of response_model with validated data
    """
    client = get_client()

    config = get_node_config(node, complexity, model_override=settings.follow_up_model)
    model = config.pop("model", "gpt-4.1-mini")

    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]

    api_kwargs = {
        "model": model,
        "messages": messages,
        "response_model": response_model,
        "max_retries": max_retries,
    }

    # Reasoning models take reasoning_effort instead of temperature
    if model.startswith(("o1", "o3", "gpt-5")):
        if "reasoning_effort" in config:
            api_kwargs["reasoning_effort"] = config["reasoning_effort"]
    else:
        api_kwargs["temperature"] = config.get("temperature", 0.5)

    try:
        response = await client.chat.completions.create(**api_kwargs)

        log_prompt(
            node=node,
            model=model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            response_model=response_model.__name__,
            response=response,
            config=config,
        )

        return response

    except Exception as e:
        logger.warning(f"LLM call failed for {node} ({model}): {e}")
        log_prompt(
            node=node,
            model=model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            response_model=response_model.__name__,
            error=str(e),
            config=config,
        )
        raise

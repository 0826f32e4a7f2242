"""
Pulse - Model Router.

Selects the OpenAI model and sampling parameters for a call.

Complexity levels:
- low: Short classification-style outputs → gpt-4.1-mini
- medium: Question generation → gpt-4.1-mini
- high: Longer free-form generation → gpt-4.1
"""

from typing import Literal, TypedDict


class ModelConfig(TypedDict, total=False):
    """Configuration for model calls."""

    model: str
    temperature: float
    reasoning_effort: str  # "minimal", "low", "medium", "high"


MODEL_CONFIGS: dict[str, ModelConfig] = {
    "low": {
        "model": "gpt-4.1-mini",
        "temperature": 0.2,
    },
    "medium": {
        "model": "gpt-4.1-mini",
        "temperature": 0.5,
    },
    "high": {
        "model": "gpt-4.1",
        "temperature": 0.7,
    },
}

# Default config if complexity not recognized
DEFAULT_CONFIG: ModelConfig = {
    "model": "gpt-4.1-mini",
    "temperature": 0.5,
}

# Per-caller temperature overrides
# Follow-up questions should vary between regenerations
NODE_TEMPERATURE: dict[str, float] = {
    "follow_ups": 0.8,
}


def get_model(complexity: Literal["low", "medium", "high"] | str) -> str:
    """Get the model name for a complexity level."""
    config = MODEL_CONFIGS.get(complexity, DEFAULT_CONFIG)
    return config["model"]


def get_node_config(
    node: str,
    complexity: Literal["low", "medium", "high"] | str,
    *,
    model_override: str | None = None,
) -> ModelConfig:
    """
    Get model configuration for a specific caller.

    Args:
        node: Caller name (e.g. "follow_ups")
        complexity: Task complexity level
        model_override: Explicit model name from settings, if any

    Returns:
        A fresh copy of the model configuration
    """
    config = MODEL_CONFIGS.get(complexity, DEFAULT_CONFIG).copy()

    if node in NODE_TEMPERATURE:
        config["temperature"] = NODE_TEMPERATURE[node]

    if model_override:
        config["model"] = model_override

    return config

"""
Recipe Remix - Model Router.

Selects model and sampling settings per AI operation.

- detect_ingredients: vision, deterministic
- generate_recipes: long creative JSON output
- generate_substitutions: medium, grounded in the ingredient list
- chat: conversational, may call the update_recipe tool
"""

from typing import TypedDict


class ModelConfig(TypedDict, total=False):
    """Configuration for model calls."""

    model: str
    temperature: float
    max_tokens: int


OPERATION_CONFIGS: dict[str, ModelConfig] = {
    "detect_ingredients": {
        "model": "gpt-4.1-mini",
        "temperature": 0.2,  # Same photo, same list
        "max_tokens": 1024,
    },
    "generate_recipes": {
        "model": "gpt-4.1-mini",
        "temperature": 0.7,  # Variety across cuisines
        "max_tokens": 3500,
    },
    "generate_substitutions": {
        "model": "gpt-4.1-mini",
        "temperature": 0.5,
        "max_tokens": 2048,
    },
    "chat": {
        "model": "gpt-4.1-mini",
        "temperature": 0.6,  # User-facing can be warmer
        "max_tokens": 2048,
    },
}

# Default config if the operation is not recognized
DEFAULT_CONFIG: ModelConfig = {
    "model": "gpt-4.1-mini",
    "temperature": 0.5,
    "max_tokens": 2048,
}


def get_model(operation: str) -> str:
    """OpenAI model name for an operation."""
    return OPERATION_CONFIGS.get(operation, DEFAULT_CONFIG)["model"]


def get_operation_config(operation: str) -> ModelConfig:
    """
    Get full model configuration for an operation.

    Returns a copy, safe to modify.
    """
    return OPERATION_CONFIGS.get(operation, DEFAULT_CONFIG).copy()

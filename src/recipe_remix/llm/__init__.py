"""
Recipe Remix - LLM Client.

Chat completion calls via AsyncOpenAI.
"""

from recipe_remix.llm.client import call_llm, get_client
from recipe_remix.llm.model_router import get_model

__all__ = [
    "get_client",
    "call_llm",
    "get_model",
]

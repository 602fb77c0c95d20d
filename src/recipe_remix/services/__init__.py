"""
Recipe Remix - AI collaborators.
"""

from recipe_remix.services.base import RecipeAssistant
from recipe_remix.services.openai_assistant import OpenAIRecipeAssistant

__all__ = ["OpenAIRecipeAssistant", "RecipeAssistant"]

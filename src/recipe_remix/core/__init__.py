"""
Recipe Remix - Core.

Pure recipe logic (normalizer, matching, catalog) plus the session state
machine that sequences the AI-backed operations.
"""

from recipe_remix.core.catalog import RecipeCatalog
from recipe_remix.core.chat import GREETING, QUICK_PROMPTS, RecipeChat, merge_patch
from recipe_remix.core.ingredients import IngredientSet
from recipe_remix.core.requests import Operation, RequestToken, RequestTracker
from recipe_remix.core.session import SAMPLE_INGREDIENTS, RemixSession
from recipe_remix.core.states import AppState, Notice

__all__ = [
    "GREETING",
    "QUICK_PROMPTS",
    "SAMPLE_INGREDIENTS",
    "AppState",
    "IngredientSet",
    "Notice",
    "Operation",
    "RecipeCatalog",
    "RecipeChat",
    "RemixSession",
    "RequestToken",
    "RequestTracker",
    "merge_patch",
]

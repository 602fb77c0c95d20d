"""
Recipe Remix - Data models.
"""

from recipe_remix.models.chat import ChatMessage, ChatReply, RecipePatch
from recipe_remix.models.recipe import (
    INGREDIENT_CATEGORIES,
    CookingStep,
    CuisineGroup,
    Ingredient,
    Recipe,
    Substitution,
    new_recipe_id,
)
from recipe_remix.models.saved import SavedRecipe

__all__ = [
    "INGREDIENT_CATEGORIES",
    "ChatMessage",
    "ChatReply",
    "CookingStep",
    "CuisineGroup",
    "Ingredient",
    "Recipe",
    "RecipePatch",
    "SavedRecipe",
    "Substitution",
    "new_recipe_id",
]

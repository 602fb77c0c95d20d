"""
Recipe Remix - Saved recipe model.

Maps the saved_recipes table. recipe_data and ingredients_used are JSON
snapshots taken at save time and never edited afterwards.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from recipe_remix.models.recipe import Ingredient, Recipe


class SavedRecipe(BaseModel):
    """A recipe persisted for an anonymous session."""

    id: str
    session_id: str
    recipe: Recipe
    ingredients_used: list[Ingredient] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: datetime

    @property
    def title(self) -> str:
        return self.recipe.title

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SavedRecipe":
        """Build from a saved_recipes row."""
        return cls(
            id=str(row["id"]),
            session_id=row["session_id"],
            recipe=Recipe.model_validate(row["recipe_data"]),
            ingredients_used=row.get("ingredients_used") or [],
            is_favorite=bool(row.get("is_favorite", False)),
            created_at=row["created_at"],
        )

    @staticmethod
    def to_row(session_id: str, recipe: Recipe, ingredients: list[Ingredient]) -> dict[str, Any]:
        """Insert payload for a new saved recipe."""
        return {
            "session_id": session_id,
            "recipe_title": recipe.title,
            "recipe_data": recipe.to_wire(),
            "ingredients_used": [ingredient.to_wire() for ingredient in ingredients],
            "is_favorite": False,
        }

"""
Recipe Remix - AI collaborator interface.

The session state machine talks to the AI backend only through this
interface. Implementations do the network call and hand the raw reply to
the normalizer; they raise ServiceFailure for transport errors and let
MalformedAiResponse from the normalizer propagate.
"""

from abc import ABC, abstractmethod

from recipe_remix.core.images import ImageInput
from recipe_remix.models import ChatReply, CuisineGroup, Ingredient, Recipe, Substitution


class RecipeAssistant(ABC):
    """The four AI-backed operations."""

    @abstractmethod
    async def detect_ingredients(self, image: ImageInput) -> list[Ingredient]:
        """Ingredients visible in a photo."""

    @abstractmethod
    async def generate_recipes(self, ingredients: list[Ingredient]) -> list[CuisineGroup]:
        """Cuisine groups, each with at least one fully populated recipe."""

    @abstractmethod
    async def generate_substitutions(self, recipe: Recipe, ingredients: list[Ingredient]) -> list[Substitution]:
        """
        Substitutes for the recipe's missing ingredients.

        Must return [] (not raise) when nothing is missing.
        """

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, str]],
        recipe: Recipe,
        ingredients: list[Ingredient],
    ) -> ChatReply:
        """One chat turn: assistant text plus an optional recipe patch."""

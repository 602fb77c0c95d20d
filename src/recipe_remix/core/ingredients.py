"""
Recipe Remix - Ingredient set.

The list of ingredients the user has. Owned and mutated by the session
state machine only.
"""

from collections.abc import Iterator

from recipe_remix.errors import InvalidInput
from recipe_remix.models import Ingredient


class IngredientSet:
    """Ordered, duplicate-tolerant ingredient list addressed by position."""

    def __init__(self, ingredients: list[Ingredient] | None = None):
        self._items: list[Ingredient] = list(ingredients or [])

    def add(self, ingredient: Ingredient) -> None:
        """Append; no de-duplication."""
        self._items.append(ingredient)

    def remove(self, index: int) -> Ingredient:
        """Remove by position. Out-of-range is a caller bug."""
        if not 0 <= index < len(self._items):
            raise InvalidInput(f"No ingredient at position {index} (have {len(self._items)})")
        return self._items.pop(index)

    def replace_all(self, ingredients: list[Ingredient]) -> None:
        self._items = list(ingredients)

    def clear(self) -> None:
        self._items = []

    def snapshot(self) -> list[Ingredient]:
        """Copy of the current contents, safe to hand to async calls."""
        return list(self._items)

    def names(self) -> list[str]:
        return [ingredient.name for ingredient in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Ingredient]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> Ingredient:
        return self._items[index]

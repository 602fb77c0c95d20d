"""
Recipe Remix - Recipe Catalog.

Holds the latest batch of cuisine groups from recipe generation. The batch
is an immutable tuple; every change builds a new tuple and swaps the single
reference, so readers never see a half-updated catalog.
"""

import logging
from collections.abc import Iterator

from recipe_remix.models import CuisineGroup, Recipe

logger = logging.getLogger(__name__)


class RecipeCatalog:
    """Cuisine groups -> recipes, keyed by the recipe's surrogate id."""

    def __init__(self) -> None:
        self._groups: tuple[CuisineGroup, ...] = ()

    @property
    def groups(self) -> tuple[CuisineGroup, ...]:
        return self._groups

    def replace(self, groups: list[CuisineGroup] | tuple[CuisineGroup, ...]) -> None:
        """Atomically install a new batch."""
        self._groups = tuple(groups)

    def clear(self) -> None:
        self._groups = ()

    def recipes(self) -> Iterator[Recipe]:
        """All recipes, group by group."""
        groups = self._groups
        for group in groups:
            yield from group.recipes

    def find_recipe(self, recipe_id: str) -> Recipe | None:
        for recipe in self.recipes():
            if recipe.id == recipe_id:
                return recipe
        return None

    def find_recipe_by_title(self, title: str) -> Recipe | None:
        """First recipe whose title is exactly `title` (no normalization)."""
        for recipe in self.recipes():
            if recipe.title == title:
                return recipe
        return None

    def update_recipe(self, recipe_id: str, patched: Recipe) -> int:
        """
        Replace the recipe with this id. Returns how many were replaced (0 or 1
        in practice; ids are unique per batch).
        """
        return self._swap(lambda recipe: recipe.id == recipe_id, patched)

    def update_recipe_by_title(self, title: str, patched: Recipe) -> int:
        """
        Replace every recipe titled `title`, in every group.

        Title is a weak identity: recipes sharing a title across cuisines are
        all replaced. Prefer update_recipe().
        """
        return self._swap(lambda recipe: recipe.title == title, patched)

    def _swap(self, matches, patched: Recipe) -> int:
        replaced = 0
        groups = []
        for group in self._groups:
            recipes = []
            for recipe in group.recipes:
                if matches(recipe):
                    # Recipes always carry their group's cuisine
                    recipes.append(patched.model_copy(update={"cuisine": group.name}))
                    replaced += 1
                else:
                    recipes.append(recipe)
            groups.append(group.model_copy(update={"recipes": recipes}) if recipes != group.recipes else group)

        if replaced:
            self._groups = tuple(groups)
        else:
            logger.debug("Catalog update matched no recipe")
        return replaced

    def __len__(self) -> int:
        """Number of recipes across all groups."""
        return sum(len(group.recipes) for group in self._groups)

    def is_empty(self) -> bool:
        return not self._groups

"""
Recipe Remix - Ingredient matching math.

All comparisons are by value on normalized names (see tools.normalize).
"""

import math
from collections.abc import Iterable

from recipe_remix.models import Recipe


def match_percentage(matched: list[str], needed: list[str]) -> int:
    """
    round(100 * |matched| / |needed|), rounding halves up.

    Returns 0 when nothing is needed.
    """
    if not needed:
        return 0
    return min(100, math.floor(100 * len(matched) / len(needed) + 0.5))


def missing_ingredients(recipe: Recipe) -> list[str]:
    """ingredients_needed minus ingredients_matched, in recipe order."""
    matched = set(recipe.ingredients_matched)
    return [name for name in recipe.ingredients_needed if name not in matched]


def intersect(needed: list[str], available: Iterable[str]) -> list[str]:
    """Entries of `needed` present in `available`, in `needed` order."""
    have = set(available)
    return [name for name in needed if name in have]


def with_consistent_match(recipe: Recipe) -> Recipe:
    """
    Copy of the recipe whose matched list is clipped to the needed list and
    whose percentage is recomputed from the two.
    """
    matched = intersect(recipe.ingredients_needed, recipe.ingredients_matched)
    percentage = match_percentage(matched, recipe.ingredients_needed)
    if matched == recipe.ingredients_matched and percentage == recipe.match_percentage:
        return recipe
    return recipe.model_copy(update={"ingredients_matched": matched, "match_percentage": percentage})

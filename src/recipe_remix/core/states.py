"""
Recipe Remix - Screens and user-facing notices.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class AppState(str, Enum):
    """Top-level screen the session is on."""

    UPLOAD = "upload"
    INGREDIENTS = "ingredients"
    RECIPES = "recipes"
    COOKING = "cooking_instructions"
    SUBSTITUTIONS = "substitutions"
    SAVED_RECIPES = "saved_recipes"


@dataclass(frozen=True)
class Notice:
    """A toast for the UI. Drained by the presentation layer."""

    level: Literal["success", "info", "error"]
    title: str
    message: str
    retryable: bool = False

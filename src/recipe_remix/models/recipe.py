"""
Recipe Remix - Recipe data model.

Field names are snake_case in Python and camelCase on the wire (the AI
prompts, the web UI and the persisted recipe snapshots all use camelCase),
so every model validates either spelling and dumps camelCase via to_wire().
"""

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from recipe_remix.tools.normalize import normalize_choice, normalize_name, normalize_names

IngredientCategory = Literal["produce", "protein", "dairy", "grain", "spice"]
Difficulty = Literal["easy", "medium", "hard"]

INGREDIENT_CATEGORIES: tuple[str, ...] = ("produce", "protein", "dairy", "grain", "spice")


def new_recipe_id() -> str:
    """Session-local surrogate id, carried alongside the title."""
    return f"recipe_{uuid4().hex[:12]}"


class WireModel(BaseModel):
    """Base for models exchanged with the AI backend and the UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _clean_choice(value):
    return normalize_choice(value) if isinstance(value, str) else value


def _clean_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# =============================================================================
# Ingredients
# =============================================================================


class Ingredient(WireModel):
    """
    One item the user has on hand.

    Identity is positional within the session's ingredient list; duplicates
    are allowed.
    """

    name: str
    category: IngredientCategory
    quantity: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_ingredient_name(cls, value: str) -> str:
        value = normalize_name(value)
        if not value:
            raise ValueError("ingredient name must not be empty")
        return value

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _clean_choice(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, value):
        # Models often send bare numbers ("quantity": 3)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{value:g}"
        if isinstance(value, str) and not value.strip():
            return None
        return value


# =============================================================================
# Recipes
# =============================================================================


class CookingStep(WireModel):
    """A numbered instruction. Numbers are dense and ordered within a recipe."""

    step_number: int = Field(ge=1)
    instruction: str
    estimated_time: str | None = None

    @field_validator("instruction")
    @classmethod
    def strip_instruction(cls, value: str) -> str:
        return _clean_text(value)


class Recipe(WireModel):
    """
    A recipe suggestion.

    `title` is what the user sees; `id` is the identity used by the catalog.
    Invariant (enforced by the normalizer and the chat merge, not here):
    ingredients_matched is a subset of ingredients_needed and
    match_percentage is derived from the two.
    """

    id: str = Field(default_factory=new_recipe_id)
    title: str
    cook_time: int = Field(ge=0)
    difficulty: Difficulty
    ingredients_needed: list[str] = Field(min_length=1)
    ingredients_matched: list[str]
    match_percentage: int = Field(default=0, ge=0, le=100)
    description: str
    steps: list[CookingStep] = Field(default_factory=list)
    cuisine: str | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        return _clean_text(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return _clean_choice(value)

    @field_validator("ingredients_needed", "ingredients_matched")
    @classmethod
    def normalize_ingredient_names(cls, value: list[str], info: ValidationInfo) -> list[str]:
        names = normalize_names(value)
        if info.field_name == "ingredients_needed" and not names:
            raise ValueError("a recipe needs at least one ingredient")
        return names

    @property
    def has_steps(self) -> bool:
        """False for degraded/legacy recipes that carry no instructions."""
        return bool(self.steps)

    def unmatched(self) -> list[str]:
        """Entries of ingredients_matched that are not in ingredients_needed."""
        needed = set(self.ingredients_needed)
        return [name for name in self.ingredients_matched if name not in needed]


class CuisineGroup(WireModel):
    """A named bundle of recipes sharing a culinary style."""

    name: str
    description: str
    recipes: list[Recipe] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _clean_text(value)


# =============================================================================
# Substitutions
# =============================================================================


class Substitution(WireModel):
    """Swap a missing ingredient for one the user has, with the reasoning."""

    original: str
    substitute: str
    flavor_science: str
    flavor_impact: int = Field(ge=1, le=5)  # 1 = minimal change, 5 = significant
    texture_impact: int = Field(ge=1, le=5)

    @field_validator("original", "substitute")
    @classmethod
    def normalize_substitution_names(cls, value: str) -> str:
        value = normalize_name(value)
        if not value:
            raise ValueError("must not be blank")
        return value

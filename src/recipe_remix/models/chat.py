"""
Recipe Remix - Chat data model.

A chat turn yields assistant text plus, optionally, a RecipePatch: a partial
recipe the user may confirm to apply to the recipe they are cooking.
"""

from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from recipe_remix.models.recipe import CookingStep, Difficulty, WireModel
from recipe_remix.tools.normalize import normalize_choice, normalize_names


class RecipePatch(WireModel):
    """Partial recipe proposed by the chat assistant. `explanation` is always present."""

    explanation: str
    title: str | None = None
    cook_time: int | None = Field(default=None, ge=0)
    difficulty: Difficulty | None = None
    ingredients_needed: list[str] | None = Field(default=None, min_length=1)
    ingredients_matched: list[str] | None = None
    match_percentage: int | None = Field(default=None, ge=0, le=100)
    description: str | None = None
    steps: list[CookingStep] | None = None
    cuisine: str | None = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return normalize_choice(value) if isinstance(value, str) else value

    @field_validator("ingredients_needed", "ingredients_matched")
    @classmethod
    def normalize_ingredient_names(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else normalize_names(value)

    def recipe_updates(self) -> dict:
        """Defined recipe fields of the patch (python names), explanation excluded."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "explanation" and getattr(self, name) is not None
        }


class ChatMessage(WireModel):
    """One entry in the session's chat log."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    recipe_update: RecipePatch | None = None

    def to_llm(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatReply(BaseModel):
    """What the chat collaborator returns for one user turn."""

    message: str
    patch: RecipePatch | None = None

"""
Recipe Remix - Saved recipe persistence.

CRUD over the saved_recipes table, always scoped by the anonymous session
id. Table layout:

    id               uuid, primary key
    session_id       text
    recipe_title     text
    recipe_data      jsonb   (Recipe, wire format)
    ingredients_used jsonb   (Ingredient[], wire format)
    is_favorite      bool
    created_at       timestamptz, default now()

Every backend error is raised as PersistenceFailure.
"""

import logging
from collections.abc import Callable

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client

from recipe_remix.config import settings
from recipe_remix.db.client import get_client
from recipe_remix.errors import PersistenceFailure
from recipe_remix.models import Ingredient, Recipe, SavedRecipe

logger = logging.getLogger(__name__)


class SavedRecipeStore:
    """Persistence gateway for saved recipes."""

    def __init__(self, client: Client | None = None, table: str | None = None):
        self._client = client
        self.table = table or settings.saved_recipes_table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def _run(self, action: str, query: Callable):
        try:
            return query()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceFailure(f"Failed to {action}") from e

    # =========================================================================
    # Operations
    # =========================================================================

    async def save(self, session_id: str, recipe: Recipe, ingredients: list[Ingredient]) -> SavedRecipe:
        """Snapshot the recipe and the ingredients it was cooked with."""
        row = SavedRecipe.to_row(session_id, recipe, ingredients)
        response = self._run("save recipe", lambda: self.client.table(self.table).insert(row).execute())
        if not response.data:
            raise PersistenceFailure("Failed to save recipe")
        logger.info(f"Saved recipe '{recipe.title}' for session {session_id}")
        return self._parse(response.data[0])

    async def list_saved(self, session_id: str) -> list[SavedRecipe]:
        """All saved recipes for the session, newest first."""
        response = self._run(
            "load saved recipes",
            lambda: self.client.table(self.table)
            .select("*")
            .eq("session_id", session_id)
            .order("created_at", desc=True)
            .execute(),
        )
        return [self._parse(row) for row in response.data or []]

    async def delete(self, session_id: str, recipe_id: str) -> bool:
        self._run(
            "delete recipe",
            lambda: self.client.table(self.table)
            .delete()
            .eq("id", recipe_id)
            .eq("session_id", session_id)  # Security: only the owner's rows
            .execute(),
        )
        return True

    async def set_favorite(self, session_id: str, recipe_id: str, is_favorite: bool) -> bool:
        self._run(
            "update favorite",
            lambda: self.client.table(self.table)
            .update({"is_favorite": is_favorite})
            .eq("id", recipe_id)
            .eq("session_id", session_id)
            .execute(),
        )
        return True

    async def count(self, session_id: str) -> int:
        response = self._run(
            "count saved recipes",
            lambda: self.client.table(self.table)
            .select("id", count="exact", head=True)
            .eq("session_id", session_id)
            .execute(),
        )
        return response.count or 0

    @staticmethod
    def _parse(row: dict) -> SavedRecipe:
        try:
            return SavedRecipe.from_row(row)
        except (KeyError, ValidationError) as e:
            raise PersistenceFailure(f"Saved recipe {row.get('id')} is unreadable") from e

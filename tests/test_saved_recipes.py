"""
Tests for saved recipe persistence.

- SavedRecipeStore against a mocked Supabase client
- RemixSession saved-recipes screen, save/delete/favorite, viewing
"""

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from factories import make_group, make_recipe
from recipe_remix.core.states import AppState
from recipe_remix.db.saved_recipes import SavedRecipeStore
from recipe_remix.errors import InvalidInput, PersistenceFailure
from recipe_remix.models import Ingredient, SavedRecipe


def _run(coro):
    return asyncio.run(coro)


def _row(recipe_id="row-1", title="Chicken Stir Fry", is_favorite=False):
    return {
        "id": recipe_id,
        "session_id": "session-test",
        "recipe_title": title,
        "recipe_data": make_recipe(title).to_wire(),
        "ingredients_used": [{"name": "chicken breast", "category": "protein"}],
        "is_favorite": is_favorite,
        "created_at": "2026-01-05T12:00:00+00:00",
    }


def _saved(recipe_id="row-1", title="Chicken Stir Fry"):
    return SavedRecipe.from_row(_row(recipe_id, title))


# ---------------------------------------------------------------------------
# SavedRecipeStore
# ---------------------------------------------------------------------------


class TestSavedRecipeStore:
    def test_save_inserts_wire_snapshot(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value = MagicMock(data=[_row()])
        store = SavedRecipeStore(mock_supabase, table="saved_recipes")
        recipe = make_recipe()

        saved = _run(store.save("session-test", recipe, [Ingredient(name="Chicken Breast", category="protein")]))

        mock_supabase.table.assert_called_with("saved_recipes")
        row = table.insert.call_args.args[0]
        assert row["session_id"] == "session-test"
        assert row["recipe_title"] == "Chicken Stir Fry"
        assert row["recipe_data"]["cookTime"] == 25
        assert row["ingredients_used"] == [{"name": "chicken breast", "category": "protein"}]
        assert row["is_favorite"] is False
        assert saved.id == "row-1"
        assert saved.recipe.title == "Chicken Stir Fry"

    def test_save_without_returned_row_fails(self, mock_supabase):
        store = SavedRecipeStore(mock_supabase)
        with pytest.raises(PersistenceFailure):
            _run(store.save("session-test", make_recipe(), []))

    def test_list_newest_first_scoped_to_session(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value = MagicMock(data=[_row("b", "Newer"), _row("a", "Older")])
        store = SavedRecipeStore(mock_supabase)

        saved = _run(store.list_saved("session-test"))

        assert [item.title for item in saved] == ["Newer", "Older"]
        table.eq.assert_called_with("session_id", "session-test")
        table.order.assert_called_with("created_at", desc=True)

    def test_delete_scoped_by_owner(self, mock_supabase):
        table = mock_supabase.table.return_value
        store = SavedRecipeStore(mock_supabase)

        assert _run(store.delete("session-test", "row-1")) is True

        table.delete.assert_called_once()
        eq_calls = [call.args for call in table.eq.call_args_list]
        assert ("id", "row-1") in eq_calls
        assert ("session_id", "session-test") in eq_calls

    def test_set_favorite(self, mock_supabase):
        table = mock_supabase.table.return_value
        store = SavedRecipeStore(mock_supabase)

        _run(store.set_favorite("session-test", "row-1", True))

        table.update.assert_called_once_with({"is_favorite": True})

    def test_count_uses_head_request(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value = MagicMock(data=None, count=4)
        store = SavedRecipeStore(mock_supabase)

        assert _run(store.count("session-test")) == 4
        table.select.assert_called_with("id", count="exact", head=True)

    def test_backend_errors_become_persistence_failure(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})
        store = SavedRecipeStore(mock_supabase)
        with pytest.raises(PersistenceFailure, match="load saved recipes"):
            _run(store.list_saved("session-test"))

        table.execute.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(PersistenceFailure, match="count saved recipes"):
            _run(store.count("session-test"))

    def test_unreadable_row(self, mock_supabase):
        table = mock_supabase.table.return_value
        broken = _row()
        broken["recipe_data"] = {"title": "No fields"}
        table.execute.return_value = MagicMock(data=[broken])
        store = SavedRecipeStore(mock_supabase)

        with pytest.raises(PersistenceFailure, match="unreadable"):
            _run(store.list_saved("session-test"))


# ---------------------------------------------------------------------------
# Session flows
# ---------------------------------------------------------------------------


def _cooking(session):
    session.load_sample()
    _run(session.find_recipes())
    session.select_recipe(session.catalog.groups[0].recipes[0])
    session.drain_notices()


class TestSessionSavedRecipes:
    def test_open_and_close_return_to_previous_state(self, session, store):
        _cooking(session)
        store.list_saved.return_value = [_saved()]

        saved = _run(session.open_saved_recipes())

        assert session.state is AppState.SAVED_RECIPES
        assert [item.id for item in saved] == ["row-1"]
        store.list_saved.assert_awaited_once_with("session-test")
        assert session.close_saved_recipes() is AppState.COOKING

    def test_close_from_fresh_session_goes_to_upload(self, session):
        _run(session.open_saved_recipes())
        assert session.close_saved_recipes() is AppState.UPLOAD

    def test_save_selected_recipe(self, session, store):
        _cooking(session)
        store.save.return_value = _saved()

        saved = _run(session.save_selected_recipe())

        assert saved.id == "row-1"
        session_id, recipe, ingredients = store.save.await_args.args
        assert session_id == "session-test"
        assert recipe is session.selected_recipe
        assert len(ingredients) == 8
        assert session.drain_notices()[0].title == "Recipe saved!"

    def test_save_failure_is_a_notice(self, session, store):
        _cooking(session)
        store.save.side_effect = PersistenceFailure("Failed to save recipe")

        assert _run(session.save_selected_recipe()) is None

        [notice] = session.drain_notices()
        assert notice.level == "error"
        assert notice.message == "Failed to save recipe"
        assert session.state is AppState.COOKING

    def test_no_store_configured(self, assistant):
        from recipe_remix.core.session import RemixSession

        session = RemixSession(assistant)
        assert _run(session.saved_count()) == 0
        assert session.drain_notices()[0].message == "Saved recipes are not available"

    def test_delete_and_favorite_update_local_list(self, session, store):
        store.list_saved.return_value = [_saved("a", "First"), _saved("b", "Second")]
        _run(session.open_saved_recipes())

        assert _run(session.set_favorite("b", True))
        assert [item.is_favorite for item in session.saved_recipes] == [False, True]

        assert _run(session.delete_saved_recipe("a"))
        assert [item.id for item in session.saved_recipes] == ["b"]
        store.delete.assert_awaited_once_with("session-test", "a")

    def test_view_saved_recipe_restores_ingredients(self, session, store):
        store.list_saved.return_value = [_saved()]
        _run(session.open_saved_recipes())

        recipe = session.view_saved_recipe("row-1")

        assert session.state is AppState.COOKING
        assert session.selected_recipe == recipe
        assert recipe.match_percentage == 67
        assert session.ingredients.names() == ["chicken breast"]
        assert session.completed_steps == set()

    def test_view_unknown_recipe(self, session):
        _run(session.open_saved_recipes())
        with pytest.raises(InvalidInput, match="No saved recipe"):
            session.view_saved_recipe("missing")

    def test_generation_finishing_on_saved_screen_stays_put(self, session, assistant, store):
        session.load_sample()
        gate = asyncio.Event()

        async def slow_recipes(ingredients):
            await gate.wait()
            return [make_group()]

        assistant.generate_recipes.side_effect = slow_recipes

        async def scenario():
            task = asyncio.create_task(session.find_recipes())
            await asyncio.sleep(0)
            await session.open_saved_recipes()
            gate.set()
            await task

        _run(scenario())

        assert session.state is AppState.SAVED_RECIPES
        assert len(session.catalog) == 1
        assert session.close_saved_recipes() is AppState.RECIPES

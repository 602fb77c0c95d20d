"""
Recipe Remix - Session state machine.

One RemixSession per user. It owns all mutable state (ingredients, the
recipe catalog, the selected recipe, substitutions, chat, notices) and is
the only thing that mutates it. Screens:

    UPLOAD -> INGREDIENTS -> RECIPES -> COOKING <-> SUBSTITUTIONS
                                 ^---------|
    SAVED_RECIPES is a side branch reachable from anywhere.

Every AI-backed operation goes through the same shape:
take a request token -> await the assistant -> drop the result if stale ->
apply it, or roll back to the last stable screen and post an error notice.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from recipe_remix.core.catalog import RecipeCatalog
from recipe_remix.core.chat import RecipeChat
from recipe_remix.core.images import parse_image
from recipe_remix.core.ingredients import IngredientSet
from recipe_remix.core.matching import missing_ingredients, with_consistent_match
from recipe_remix.core.requests import Operation, RequestToken, RequestTracker
from recipe_remix.core.states import AppState, Notice
from recipe_remix.errors import (
    InvalidInput,
    MalformedAiResponse,
    PersistenceFailure,
    ServiceFailure,
    StaleResponse,
)
from recipe_remix.models import Ingredient, Recipe, SavedRecipe, Substitution

if TYPE_CHECKING:
    from recipe_remix.services.base import RecipeAssistant

logger = logging.getLogger(__name__)


SAMPLE_INGREDIENTS: tuple[Ingredient, ...] = (
    Ingredient(name="chicken breast", category="protein", quantity="2"),
    Ingredient(name="tomatoes", category="produce", quantity="4"),
    Ingredient(name="onion", category="produce", quantity="1"),
    Ingredient(name="garlic", category="produce", quantity="6 cloves"),
    Ingredient(name="olive oil", category="spice", quantity="3 tbsp"),
    Ingredient(name="rice", category="grain", quantity="2 cups"),
    Ingredient(name="bell pepper", category="produce", quantity="2"),
    Ingredient(name="spinach", category="produce", quantity="1 bunch"),
)

# Where a failed or cancelled operation leaves the user
_ROLLBACK = {
    Operation.GENERATE_RECIPES: AppState.INGREDIENTS,
    Operation.GENERATE_SUBSTITUTIONS: AppState.COOKING,
}


class RemixSession:
    """All state for one user, plus the operations that change it."""

    def __init__(
        self,
        assistant: RecipeAssistant,
        store=None,
        session_id: str | None = None,
    ):
        """
        Args:
            assistant: AI collaborator
            store: SavedRecipeStore, or None when persistence is not configured
            session_id: Anonymous identity that scopes saved recipes
        """
        self.assistant = assistant
        self.store = store
        self.session_id = session_id

        self.state = AppState.UPLOAD
        self.ingredients = IngredientSet()
        self.catalog = RecipeCatalog()
        self.selected_recipe: Recipe | None = None
        self.substitutions: list[Substitution] = []
        self.perfect_match = False
        self.completed_steps: set[int] = set()
        self.saved_recipes: list[SavedRecipe] = []
        self.notices: list[Notice] = []
        self.requests = RequestTracker()
        self.chat = RecipeChat(self)
        self._saved_return_state: AppState | None = None

    # =========================================================================
    # Shared plumbing
    # =========================================================================

    def notify(self, level: str, title: str, message: str, retryable: bool = False) -> None:
        self.notices.append(Notice(level=level, title=title, message=message, retryable=retryable))

    def drain_notices(self) -> list[Notice]:
        """Hand pending notices to the UI and forget them."""
        notices, self.notices = self.notices, []
        return notices

    def require_state(self, *states: AppState, action: str) -> None:
        if self.state not in states:
            raise InvalidInput(f"Can't {action} from the {self.state.value} screen")

    def is_loading(self, operation: Operation | None = None) -> bool:
        if operation is None:
            return bool(self.requests.loading())
        return self.requests.is_loading(operation)

    def _land(self, state: AppState) -> None:
        """Move to `state`, or queue it as the return target while on saved recipes."""
        if self.state is AppState.SAVED_RECIPES:
            self._saved_return_state = state
        else:
            self.state = state

    def report_failure(
        self,
        token: RequestToken,
        error: ServiceFailure | MalformedAiResponse,
        title: str,
        rollback: AppState | None = None,
    ) -> None:
        """Log a failed AI call, roll back, and post a retryable error notice."""
        name = token.operation.value
        if not self.requests.is_current(token):
            logger.debug(f"Ignoring failure of superseded {name} #{token.sequence}: {error.message}")
            return

        if isinstance(error, MalformedAiResponse):
            logger.warning(f"{name} returned an unusable payload: {error.message} | raw: {error.raw_excerpt()}")
        else:
            logger.error(f"{name} failed: {error.message}")

        if rollback is not None:
            self._land(rollback)
        self.notify("error", title, f"{error.message}. Please try again.", retryable=error.retryable)

    # =========================================================================
    # Ingredients
    # =========================================================================

    async def analyze_image(self, image: bytes | str, content_type: str | None = None) -> bool:
        """
        Detect ingredients in a photo and replace the ingredient set with them.

        Returns:
            True if the detected ingredients were applied

        Raises:
            InvalidInput: not an image (checked before any network call)
        """
        self.require_state(AppState.UPLOAD, AppState.INGREDIENTS, action="analyze a photo")
        picture = parse_image(image, content_type)

        token = self.requests.begin(Operation.DETECT_INGREDIENTS)
        try:
            detected = await self.assistant.detect_ingredients(picture)
            self.requests.check(token)
        except StaleResponse as e:
            logger.debug(e.message)
            return False
        except (ServiceFailure, MalformedAiResponse) as e:
            self.report_failure(token, e, "Failed to analyze image")
            return False
        finally:
            self.requests.finish(token)

        self.ingredients.replace_all(detected)
        self._land(AppState.INGREDIENTS)
        if detected:
            self.notify("success", "Ingredients detected!", f"Found {len(detected)} ingredients in your photo")
        else:
            self.notify("info", "No ingredients found", "Try another photo or add ingredients by hand")
        return True

    def load_sample(self) -> None:
        """Fill the ingredient set with the demo pantry."""
        self.require_state(AppState.UPLOAD, AppState.INGREDIENTS, action="load sample ingredients")
        self.requests.cancel(Operation.DETECT_INGREDIENTS)
        self.ingredients.replace_all(list(SAMPLE_INGREDIENTS))
        self.state = AppState.INGREDIENTS

    def add_ingredient(self, name: str, category: str = "produce", quantity: str | None = None) -> Ingredient:
        self.require_state(AppState.UPLOAD, AppState.INGREDIENTS, action="add an ingredient")
        try:
            ingredient = Ingredient(name=name, category=category, quantity=quantity)
        except ValidationError as e:
            raise InvalidInput(f"Invalid ingredient: {e.errors()[0]['msg']}") from e

        # A photo still being analyzed would overwrite the manual entry
        self.requests.cancel(Operation.DETECT_INGREDIENTS)
        self.ingredients.add(ingredient)
        self.state = AppState.INGREDIENTS
        return ingredient

    def remove_ingredient(self, index: int) -> Ingredient:
        self.require_state(AppState.INGREDIENTS, action="remove an ingredient")
        removed = self.ingredients.remove(index)
        self.requests.cancel(Operation.DETECT_INGREDIENTS)
        return removed

    # =========================================================================
    # Recipes
    # =========================================================================

    async def find_recipes(self) -> bool:
        """
        Generate cuisine groups for the current ingredients.

        A repeat call supersedes one still in flight. On failure the catalog is
        left untouched and the session returns to INGREDIENTS.
        """
        self.require_state(AppState.INGREDIENTS, AppState.RECIPES, action="find recipes")
        if not self.ingredients:
            raise InvalidInput("Add at least one ingredient first")

        # Recipes are generated for this snapshot; a late detection must not replace it
        self.requests.cancel(Operation.DETECT_INGREDIENTS)
        snapshot = self.ingredients.snapshot()
        token = self.requests.begin(Operation.GENERATE_RECIPES)
        self.state = AppState.RECIPES

        try:
            groups = await self.assistant.generate_recipes(snapshot)
            self.requests.check(token)
        except StaleResponse as e:
            logger.debug(e.message)
            return False
        except (ServiceFailure, MalformedAiResponse) as e:
            self.report_failure(token, e, "Failed to generate recipes", rollback=AppState.INGREDIENTS)
            return False
        finally:
            self.requests.finish(token)

        self.catalog.replace(groups)
        self.notify("success", "Recipes ready!", f"Found {len(self.catalog)} delicious recipes for you")
        return True

    def select_recipe(self, recipe: Recipe | str) -> Recipe:
        """
        Open a recipe from the catalog for cooking.

        Args:
            recipe: The Recipe itself, or its id
        """
        self.require_state(AppState.RECIPES, action="select a recipe")
        if self.requests.is_loading(Operation.GENERATE_RECIPES):
            raise InvalidInput("Recipes are still loading")

        if isinstance(recipe, str):
            found = self.catalog.find_recipe(recipe)
            if found is None:
                raise InvalidInput(f"No recipe with id {recipe!r}")
            recipe = found

        self._open_recipe(recipe)
        return recipe

    def _open_recipe(self, recipe: Recipe) -> None:
        if self.selected_recipe is None or self.selected_recipe.id != recipe.id:
            # Replies still in flight were asked about the previous recipe
            self.requests.cancel(Operation.CHAT)
            self.requests.cancel(Operation.GENERATE_SUBSTITUTIONS)
            self.chat.reset()
        self.selected_recipe = recipe
        self.substitutions = []
        self.perfect_match = False
        self.completed_steps = set()
        self.state = AppState.COOKING

    def cancel(self, operation: Operation | None = None) -> list[Operation]:
        """
        Cancel in-flight requests (all of them when `operation` is None).

        Late responses are discarded. Screens that were waiting roll back.
        """
        operations = [operation] if operation is not None else self.requests.loading()
        cancelled = []
        for op in operations:
            if self.requests.cancel(op) is None:
                continue
            cancelled.append(op)
            if op in _ROLLBACK:
                self._land(_ROLLBACK[op])
        return cancelled

    # =========================================================================
    # Substitutions
    # =========================================================================

    async def request_substitutions(self) -> bool:
        """
        Ask for substitutes for the selected recipe's missing ingredients.

        With nothing missing this short-circuits to a perfect match and makes
        no AI call.
        """
        self.require_state(AppState.COOKING, action="find substitutions")
        recipe = self.selected_recipe
        missing = missing_ingredients(recipe)

        self.substitutions = []
        self.state = AppState.SUBSTITUTIONS

        if not missing:
            self.perfect_match = True
            self.notify("success", "Perfect match!", "You have all the ingredients needed")
            return True

        self.perfect_match = False
        token = self.requests.begin(Operation.GENERATE_SUBSTITUTIONS)
        try:
            substitutions = await self.assistant.generate_substitutions(recipe, self.ingredients.snapshot())
            self.requests.check(token)
        except StaleResponse as e:
            logger.debug(e.message)
            return False
        except (ServiceFailure, MalformedAiResponse) as e:
            self.report_failure(token, e, "Failed to generate substitutions", rollback=AppState.COOKING)
            return False
        finally:
            self.requests.finish(token)

        self.substitutions = substitutions
        if substitutions:
            self.notify("success", "Substitutions found!", f"{len(substitutions)} smart substitutions ready")
        else:
            self.notify("info", "No substitutions found", f"Nothing suitable for: {', '.join(missing)}")
        return True

    # =========================================================================
    # Navigation
    # =========================================================================

    def back(self) -> AppState:
        """SUBSTITUTIONS -> COOKING -> RECIPES; closes the saved recipes screen."""
        if self.state is AppState.SUBSTITUTIONS:
            self.requests.cancel(Operation.GENERATE_SUBSTITUTIONS)
            self.state = AppState.COOKING
        elif self.state is AppState.COOKING:
            self.requests.cancel(Operation.CHAT)
            if not self.catalog.is_empty():
                self.state = AppState.RECIPES
            else:
                # opened from saved recipes without a catalog
                self.state = AppState.INGREDIENTS if self.ingredients else AppState.UPLOAD
        elif self.state is AppState.SAVED_RECIPES:
            self.close_saved_recipes()
        else:
            raise InvalidInput(f"Nowhere to go back to from the {self.state.value} screen")
        return self.state

    def reset(self) -> None:
        """Start over: cancel everything and return to UPLOAD."""
        self.requests.cancel_all()
        self.state = AppState.UPLOAD
        self.ingredients.clear()
        self.catalog.clear()
        self.selected_recipe = None
        self.substitutions = []
        self.perfect_match = False
        self.completed_steps = set()
        self.saved_recipes = []
        self.notices = []
        self.chat.reset()
        self._saved_return_state = None

    # =========================================================================
    # Cooking progress
    # =========================================================================

    def _step_numbers(self) -> set[int]:
        if self.selected_recipe is None:
            return set()
        return {step.step_number for step in self.selected_recipe.steps}

    def toggle_step(self, step_number: int) -> bool:
        """Flip a step between done and not done. Returns the new state."""
        self.require_state(AppState.COOKING, action="track cooking progress")
        if step_number not in self._step_numbers():
            raise InvalidInput(f"Recipe has no step {step_number}")

        if step_number in self.completed_steps:
            self.completed_steps.discard(step_number)
            return False
        self.completed_steps.add(step_number)
        return True

    def mark_all_steps_complete(self) -> None:
        self.require_state(AppState.COOKING, action="track cooking progress")
        self.completed_steps = self._step_numbers()

    def reset_steps(self) -> None:
        self.completed_steps = set()

    def progress(self) -> tuple[int, int]:
        """(completed, total) steps of the selected recipe."""
        numbers = self._step_numbers()
        return len(self.completed_steps & numbers), len(numbers)

    # =========================================================================
    # Saved recipes
    # =========================================================================

    async def _persist(self, title: str, call, default=None):
        """Run a store call; a PersistenceFailure becomes an error notice."""
        try:
            if self.store is None or not self.session_id:
                raise PersistenceFailure("Saved recipes are not available")
            return await call()
        except PersistenceFailure as e:
            logger.error(f"{title}: {e.message}")
            self.notify("error", title, e.message, retryable=e.retryable)
            return default

    async def open_saved_recipes(self) -> list[SavedRecipe]:
        """Show the saved recipes screen, newest first."""
        if self.state is not AppState.SAVED_RECIPES:
            self._saved_return_state = self.state
            self.state = AppState.SAVED_RECIPES

        self.saved_recipes = await self._persist(
            "Couldn't load saved recipes",
            lambda: self.store.list_saved(self.session_id),
            default=[],
        )
        return self.saved_recipes

    def close_saved_recipes(self) -> AppState:
        self.require_state(AppState.SAVED_RECIPES, action="close saved recipes")
        self.state = self._saved_return_state or AppState.UPLOAD
        self._saved_return_state = None
        return self.state

    async def save_selected_recipe(self) -> SavedRecipe | None:
        self.require_state(AppState.COOKING, AppState.SUBSTITUTIONS, action="save a recipe")
        recipe = self.selected_recipe
        saved = await self._persist(
            "Couldn't save recipe",
            lambda: self.store.save(self.session_id, recipe, self.ingredients.snapshot()),
        )
        if saved is not None:
            self.notify("success", "Recipe saved!", f"{recipe.title} was added to your saved recipes")
        return saved

    async def delete_saved_recipe(self, recipe_id: str) -> bool:
        deleted = await self._persist(
            "Couldn't delete recipe",
            lambda: self.store.delete(self.session_id, recipe_id),
            default=False,
        )
        if deleted:
            self.saved_recipes = [saved for saved in self.saved_recipes if saved.id != recipe_id]
            self.notify("success", "Recipe deleted", "Removed from your saved recipes")
        return deleted

    async def set_favorite(self, recipe_id: str, is_favorite: bool) -> bool:
        updated = await self._persist(
            "Couldn't update favorite",
            lambda: self.store.set_favorite(self.session_id, recipe_id, is_favorite),
            default=False,
        )
        if updated:
            self.saved_recipes = [
                saved.model_copy(update={"is_favorite": is_favorite}) if saved.id == recipe_id else saved
                for saved in self.saved_recipes
            ]
        return updated

    async def saved_count(self) -> int:
        return await self._persist("Couldn't count saved recipes", lambda: self.store.count(self.session_id), default=0)

    def view_saved_recipe(self, recipe_id: str) -> Recipe:
        """Cook a saved recipe with the ingredients it was saved with."""
        self.require_state(AppState.SAVED_RECIPES, action="open a saved recipe")
        saved = next((item for item in self.saved_recipes if item.id == recipe_id), None)
        if saved is None:
            raise InvalidInput(f"No saved recipe with id {recipe_id!r}")

        # The ingredient set is about to change under any in-flight generation
        self.requests.cancel(Operation.DETECT_INGREDIENTS)
        self.requests.cancel(Operation.GENERATE_RECIPES)
        self.requests.cancel(Operation.GENERATE_SUBSTITUTIONS)

        recipe = with_consistent_match(saved.recipe)
        if recipe is not saved.recipe:
            logger.warning(f"Saved recipe {saved.id} had inconsistent ingredient matches; recomputed them")

        self.ingredients.replace_all(saved.ingredients_used)
        self._saved_return_state = None
        self._open_recipe(recipe)
        return recipe


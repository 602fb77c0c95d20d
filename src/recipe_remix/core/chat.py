"""
Recipe Remix - Chat-driven recipe modification.

The cooking assistant can answer questions or propose a change to the
recipe being cooked. A proposal is held as the pending patch and only
applied when the user confirms it. At most one patch is pending; a new
user turn expires an unconfirmed one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from recipe_remix.config import settings
from recipe_remix.core.matching import intersect, match_percentage
from recipe_remix.core.requests import Operation
from recipe_remix.core.states import AppState
from recipe_remix.errors import InvalidInput, MalformedAiResponse, ServiceFailure, StaleResponse
from recipe_remix.models import ChatMessage, Recipe, RecipePatch

if TYPE_CHECKING:
    from recipe_remix.core.session import RemixSession

logger = logging.getLogger(__name__)

GREETING = (
    "Hi! I'm your cooking assistant. I can help you modify this recipe if you're missing "
    "ingredients, want to adjust portions, or need cooking tips. What would you like to know?"
)

QUICK_PROMPTS = (
    "I'm missing an ingredient",
    "Make this faster",
    "Simplify this recipe",
)

_GREETING_ID = "greeting"


# =============================================================================
# Patch Merge
# =============================================================================


def merge_patch(base: Recipe, patch: RecipePatch, available: Iterable[str] | None = None) -> Recipe:
    """
    Apply a confirmed patch to a recipe.

    Shallow merge: every field the patch defines replaces the base value, and
    steps are replaced wholesale. The recipe id never changes.

    Matched ingredients always end up a subset of the merged needed list:
    - patch gives matched: kept where still needed
    - patch gives needed only: needed ∩ (available ∪ previously matched)
    - neither: base matched is kept
    match_percentage is always recomputed.

    Args:
        base: The recipe being cooked
        patch: The confirmed proposal
        available: The user's ingredient names
    """
    updates = patch.recipe_updates()
    updates.pop("match_percentage", None)
    merged = base.model_copy(update=updates)
    needed = merged.ingredients_needed

    if "ingredients_matched" in updates:
        matched = intersect(needed, updates["ingredients_matched"])
        if len(matched) != len(updates["ingredients_matched"]):
            logger.warning(f"Patch for '{base.title}' matched ingredients the recipe does not need; dropped them")
    elif "ingredients_needed" in updates:
        matched = intersect(needed, set(base.ingredients_matched) | set(available or ()))
    else:
        matched = list(base.ingredients_matched)

    return merged.model_copy(
        update={
            "ingredients_matched": matched,
            "match_percentage": match_percentage(matched, needed),
        }
    )


# =============================================================================
# Chat Reconciler
# =============================================================================


class RecipeChat:
    """Message log, pending patch, and the confirm/decline protocol."""

    def __init__(self, session: RemixSession):
        self._session = session
        self.messages: list[ChatMessage] = []
        self.pending_patch: RecipePatch | None = None
        self.reset()

    def reset(self) -> None:
        """Start over with just the greeting."""
        self.messages = [ChatMessage(id=_GREETING_ID, role="assistant", content=GREETING)]
        self.pending_patch = None

    @property
    def is_loading(self) -> bool:
        return self._session.requests.is_loading(Operation.CHAT)

    def history(self) -> list[dict[str, str]]:
        """
        Conversation sent to the assistant.

        The greeting is UI only. Capped to the most recent turns, starting on
        a user message.
        """
        turns = [message for message in self.messages if message.id != _GREETING_ID]
        turns = turns[-settings.chat_history_limit :]
        while turns and turns[0].role != "user":
            turns.pop(0)
        return [message.to_llm() for message in turns]

    async def send(self, text: str) -> ChatMessage | None:
        """
        Send one user turn and record the assistant's reply.

        Returns:
            The assistant message, or None if the turn failed or was discarded

        Raises:
            InvalidInput: empty text, not cooking, or a turn already in flight
        """
        session = self._session
        text = (text or "").strip()
        if not text:
            raise InvalidInput("Type a message first")
        session.require_state(AppState.COOKING, action="chat about a recipe")
        if self.is_loading:
            raise InvalidInput("Still waiting for the assistant's last reply")

        if self.pending_patch is not None:
            logger.info(f"Unconfirmed recipe change expired: {self.pending_patch.explanation}")
            self.pending_patch = None

        recipe = session.selected_recipe
        self.messages.append(ChatMessage(role="user", content=text))
        token = session.requests.begin(Operation.CHAT)

        try:
            reply = await session.assistant.chat(self.history(), recipe, session.ingredients.snapshot())
            session.requests.check(token)
        except StaleResponse as e:
            logger.debug(e.message)
            return None
        except (ServiceFailure, MalformedAiResponse) as e:
            session.report_failure(token, e, "Chat error")
            return None
        finally:
            session.requests.finish(token)

        if session.selected_recipe is None or session.selected_recipe.id != recipe.id:
            logger.debug(f"Discarded chat reply about '{recipe.title}': a different recipe is open")
            return None

        patch = reply.patch
        if patch is not None and not patch.recipe_updates():
            logger.info("Assistant proposed a recipe change with no recipe fields; ignoring it")
            patch = None

        message = ChatMessage(role="assistant", content=reply.message, recipe_update=patch)
        self.messages.append(message)

        if patch is not None:
            if self.pending_patch is not None:
                logger.info(f"Pending recipe change replaced: {self.pending_patch.explanation}")
            self.pending_patch = patch

        return message

    def confirm_patch(self) -> Recipe:
        """
        Apply the pending patch to the selected recipe and its catalog entry.

        Raises:
            InvalidInput: nothing pending, or not cooking
        """
        session = self._session
        session.require_state(AppState.COOKING, action="apply a recipe change")
        patch = self.pending_patch
        if patch is None:
            raise InvalidInput("There is no recipe change to apply")

        merged = merge_patch(session.selected_recipe, patch, session.ingredients.names())
        if session.catalog.update_recipe(merged.id, merged):
            # The catalog copy carries its group's cuisine
            merged = session.catalog.find_recipe(merged.id)
        session.selected_recipe = merged
        if patch.steps is not None:
            session.reset_steps()

        self.pending_patch = None
        session.notify("success", "Recipe updated!", patch.explanation)
        return merged

    def decline_patch(self) -> None:
        if self.pending_patch is None:
            raise InvalidInput("There is no recipe change to decline")
        logger.info(f"Recipe change declined: {self.pending_patch.explanation}")
        self.pending_patch = None

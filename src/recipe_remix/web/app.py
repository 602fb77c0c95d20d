"""
Recipe Remix Web API - FastAPI application.

JSON endpoints over one in-memory RemixSession per anonymous client. The
client is identified by the recipe_remix_session_id cookie, which is also
the identity its saved recipes are stored under. Every endpoint returns the
full session view, including any notices raised since the last call.
"""

import logging
import uuid
from dataclasses import asdict
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from recipe_remix import __version__
from recipe_remix.config import settings
from recipe_remix.core.chat import QUICK_PROMPTS
from recipe_remix.core.requests import Operation
from recipe_remix.core.session import RemixSession
from recipe_remix.db import SavedRecipeStore, is_configured
from recipe_remix.errors import InvalidInput
from recipe_remix.models import SavedRecipe
from recipe_remix.services import OpenAIRecipeAssistant, RecipeAssistant

logger = logging.getLogger(__name__)

SESSION_COOKIE = "recipe_remix_session_id"

# In-memory session store (keyed by the session cookie)
sessions: dict[str, RemixSession] = {}

app = FastAPI(title="Recipe Remix", version=__version__)

# CORS middleware for React frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# =============================================================================
# Dependencies
# =============================================================================


@lru_cache
def get_assistant() -> RecipeAssistant:
    return OpenAIRecipeAssistant()


def get_store() -> SavedRecipeStore | None:
    """Persistence gateway, or None when Supabase is not configured."""
    return SavedRecipeStore() if is_configured() else None


def get_remix_session(
    request: Request,
    response: Response,
    assistant: RecipeAssistant = Depends(get_assistant),
    store: SavedRecipeStore | None = Depends(get_store),
) -> RemixSession:
    """Session for this client, created (with a new cookie) on first contact."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        session_id = str(uuid.uuid4())
        logger.info(f"New anonymous session {session_id}")

    session = sessions.get(session_id)
    if session is None:
        session = RemixSession(assistant, store=store, session_id=session_id)
        sessions[session_id] = session

    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        max_age=60 * 60 * 24 * 365,  # 1 year, the browser is the durable store
        samesite="lax",
    )
    return session


# =============================================================================
# Request Models
# =============================================================================


class AnalyzeImageRequest(BaseModel):
    image: str  # data URL or bare base64
    content_type: str | None = None


class AddIngredientRequest(BaseModel):
    name: str
    category: str = "produce"
    quantity: str | None = None


class CancelRequest(BaseModel):
    operation: Operation | None = None


class ChatRequest(BaseModel):
    message: str


class FavoriteRequest(BaseModel):
    is_favorite: bool


# =============================================================================
# Session View
# =============================================================================


def _saved_view(saved: SavedRecipe) -> dict[str, Any]:
    return {
        "id": saved.id,
        "sessionId": saved.session_id,
        "recipe": saved.recipe.to_wire(),
        "ingredientsUsed": [ingredient.to_wire() for ingredient in saved.ingredients_used],
        "isFavorite": saved.is_favorite,
        "createdAt": saved.created_at.isoformat(),
    }


def session_view(session: RemixSession) -> dict[str, Any]:
    """Everything the UI renders. Drains pending notices."""
    selected = session.selected_recipe
    pending = session.chat.pending_patch
    completed, total = session.progress()
    return {
        "state": session.state.value,
        "loading": [operation.value for operation in session.requests.loading()],
        "ingredients": [ingredient.to_wire() for ingredient in session.ingredients],
        "cuisines": [group.to_wire() for group in session.catalog.groups],
        "selectedRecipe": selected.to_wire() if selected else None,
        "substitutions": [substitution.to_wire() for substitution in session.substitutions],
        "perfectMatch": session.perfect_match,
        "completedSteps": sorted(session.completed_steps),
        "progress": {"completed": completed, "total": total},
        "chat": {
            "messages": [message.to_wire() for message in session.chat.messages],
            "pendingPatch": pending.to_wire() if pending else None,
            "quickPrompts": list(QUICK_PROMPTS),
            "loading": session.chat.is_loading,
        },
        "savedRecipes": [_saved_view(saved) for saved in session.saved_recipes],
        "notices": [asdict(notice) for notice in session.drain_notices()],
    }


# =============================================================================
# Session
# =============================================================================


@app.get("/api/session")
async def get_session_view(session: RemixSession = Depends(get_remix_session)):
    return session_view(session)


@app.post("/api/session/reset")
async def reset_session(session: RemixSession = Depends(get_remix_session)):
    """Start over."""
    session.reset()
    return session_view(session)


@app.post("/api/back")
async def go_back(session: RemixSession = Depends(get_remix_session)):
    session.back()
    return session_view(session)


@app.post("/api/cancel")
async def cancel_requests(req: CancelRequest, session: RemixSession = Depends(get_remix_session)):
    """Cancel in-flight AI requests; their late responses are discarded."""
    session.cancel(req.operation)
    return session_view(session)


# =============================================================================
# Ingredients
# =============================================================================


@app.post("/api/ingredients/analyze")
async def analyze_image(req: AnalyzeImageRequest, session: RemixSession = Depends(get_remix_session)):
    """Detect ingredients in a photo."""
    await session.analyze_image(req.image, req.content_type)
    return session_view(session)


@app.post("/api/ingredients/sample")
async def load_sample(session: RemixSession = Depends(get_remix_session)):
    session.load_sample()
    return session_view(session)


@app.post("/api/ingredients")
async def add_ingredient(req: AddIngredientRequest, session: RemixSession = Depends(get_remix_session)):
    session.add_ingredient(req.name, req.category, req.quantity)
    return session_view(session)


@app.delete("/api/ingredients/{index}")
async def remove_ingredient(index: int, session: RemixSession = Depends(get_remix_session)):
    session.remove_ingredient(index)
    return session_view(session)


# =============================================================================
# Recipes, Substitutions, Cooking
# =============================================================================


@app.post("/api/recipes/find")
async def find_recipes(session: RemixSession = Depends(get_remix_session)):
    await session.find_recipes()
    return session_view(session)


@app.post("/api/recipes/{recipe_id}/select")
async def select_recipe(recipe_id: str, session: RemixSession = Depends(get_remix_session)):
    session.select_recipe(recipe_id)
    return session_view(session)


@app.post("/api/substitutions")
async def request_substitutions(session: RemixSession = Depends(get_remix_session)):
    await session.request_substitutions()
    return session_view(session)


@app.post("/api/steps/{step_number}/toggle")
async def toggle_step(step_number: int, session: RemixSession = Depends(get_remix_session)):
    session.toggle_step(step_number)
    return session_view(session)


@app.post("/api/steps/complete")
async def complete_steps(session: RemixSession = Depends(get_remix_session)):
    session.mark_all_steps_complete()
    return session_view(session)


@app.post("/api/steps/reset")
async def reset_steps(session: RemixSession = Depends(get_remix_session)):
    session.reset_steps()
    return session_view(session)


# =============================================================================
# Chat
# =============================================================================


@app.post("/api/chat")
async def chat(req: ChatRequest, session: RemixSession = Depends(get_remix_session)):
    """Send a message to the cooking assistant."""
    await session.chat.send(req.message)
    return session_view(session)


@app.post("/api/chat/confirm")
async def confirm_patch(session: RemixSession = Depends(get_remix_session)):
    """Apply the assistant's pending recipe change."""
    session.chat.confirm_patch()
    return session_view(session)


@app.post("/api/chat/decline")
async def decline_patch(session: RemixSession = Depends(get_remix_session)):
    session.chat.decline_patch()
    return session_view(session)


# =============================================================================
# Saved Recipes
# =============================================================================


@app.get("/api/saved")
async def open_saved_recipes(session: RemixSession = Depends(get_remix_session)):
    """Open the saved recipes screen."""
    await session.open_saved_recipes()
    return session_view(session)


@app.post("/api/saved/close")
async def close_saved_recipes(session: RemixSession = Depends(get_remix_session)):
    session.close_saved_recipes()
    return session_view(session)


@app.get("/api/saved/count")
async def saved_count(session: RemixSession = Depends(get_remix_session)):
    return {"count": await session.saved_count()}


@app.post("/api/saved")
async def save_recipe(session: RemixSession = Depends(get_remix_session)):
    """Save the recipe being cooked."""
    await session.save_selected_recipe()
    return session_view(session)


@app.delete("/api/saved/{recipe_id}")
async def delete_saved_recipe(recipe_id: str, session: RemixSession = Depends(get_remix_session)):
    await session.delete_saved_recipe(recipe_id)
    return session_view(session)


@app.post("/api/saved/{recipe_id}/favorite")
async def set_favorite(recipe_id: str, req: FavoriteRequest, session: RemixSession = Depends(get_remix_session)):
    await session.set_favorite(recipe_id, req.is_favorite)
    return session_view(session)


@app.post("/api/saved/{recipe_id}/view")
async def view_saved_recipe(recipe_id: str, session: RemixSession = Depends(get_remix_session)):
    """Cook a saved recipe."""
    session.view_saved_recipe(recipe_id)
    return session_view(session)

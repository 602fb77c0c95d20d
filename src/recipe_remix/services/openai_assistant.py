"""
Recipe Remix - OpenAI-backed assistant.

One LLM call per operation. Raw replies go straight to the normalizer, so
everything returned from here is already validated.
"""

import logging

from recipe_remix.core.images import ImageInput
from recipe_remix.core.matching import missing_ingredients
from recipe_remix.core.normalizer import (
    normalize_cuisines,
    normalize_ingredients,
    normalize_patch,
    normalize_substitutions,
)
from recipe_remix.errors import MalformedAiResponse
from recipe_remix.llm.client import call_llm
from recipe_remix.llm.prompts import (
    UPDATE_RECIPE_TOOL,
    chat_system_prompt,
    detect_ingredients_prompt,
    generate_recipes_prompt,
    generate_substitutions_prompt,
)
from recipe_remix.models import ChatReply, CuisineGroup, Ingredient, Recipe, RecipePatch, Substitution
from recipe_remix.services.base import RecipeAssistant

logger = logging.getLogger(__name__)


class OpenAIRecipeAssistant(RecipeAssistant):
    async def detect_ingredients(self, image: ImageInput) -> list[Ingredient]:
        message = await call_llm(
            operation="detect_ingredients",
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": image.as_data_url()}},
                        {"type": "text", "text": detect_ingredients_prompt()},
                    ],
                }
            ],
        )
        ingredients = normalize_ingredients(message.content or "").ingredients
        logger.info(f"Detected {len(ingredients)} ingredients")
        return ingredients

    async def generate_recipes(self, ingredients: list[Ingredient]) -> list[CuisineGroup]:
        logger.info(f"Generating recipes for: {', '.join(i.name for i in ingredients)}")
        message = await call_llm(
            operation="generate_recipes",
            messages=[{"role": "user", "content": generate_recipes_prompt(ingredients)}],
        )
        payload = normalize_cuisines(message.content or "")
        if payload.dropped:
            logger.warning(f"Dropped {payload.dropped} unusable cuisine groups")
        return payload.groups

    async def generate_substitutions(self, recipe: Recipe, ingredients: list[Ingredient]) -> list[Substitution]:
        missing = missing_ingredients(recipe)
        if not missing:
            return []

        logger.info(f"Generating substitutions for: {', '.join(missing)}")
        message = await call_llm(
            operation="generate_substitutions",
            messages=[{"role": "user", "content": generate_substitutions_prompt(recipe, ingredients, missing)}],
        )
        return normalize_substitutions(
            message.content or "",
            missing=missing,
            available=[ingredient.name for ingredient in ingredients],
        ).substitutions

    async def chat(
        self,
        messages: list[dict[str, str]],
        recipe: Recipe,
        ingredients: list[Ingredient],
    ) -> ChatReply:
        message = await call_llm(
            operation="chat",
            messages=[{"role": "system", "content": chat_system_prompt(recipe, ingredients)}, *messages],
            tools=[UPDATE_RECIPE_TOOL],
        )

        patch: RecipePatch | None = None
        for tool_call in message.tool_calls or []:
            function = getattr(tool_call, "function", None)
            if function is None or function.name != "update_recipe":
                logger.warning(f"Ignoring unknown tool call: {getattr(function, 'name', tool_call.type)}")
                continue
            patch = normalize_patch(function.arguments).patch

        text = (message.content or "").strip()
        if not text:
            if patch is None:
                raise MalformedAiResponse("AI reply had neither text nor a recipe update", message.model_dump())
            text = patch.explanation

        return ChatReply(message=text, patch=patch)

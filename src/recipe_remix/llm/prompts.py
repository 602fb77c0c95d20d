"""
Recipe Remix - Prompt construction.

Templates live in recipe_remix/prompts/*.md and are filled with
str.replace so literal JSON braces in them need no escaping.
"""

from functools import lru_cache
from pathlib import Path

from recipe_remix.models import Ingredient, Recipe

_PROMPT_DIR = Path(__file__).parent.parent / "prompts"


@lru_cache
def load_prompt(name: str) -> str:
    return (_PROMPT_DIR / f"{name}.md").read_text(encoding="utf-8")


def _fill(template: str, **values: str) -> str:
    for key, value in values.items():
        template = template.replace("{" + key + "}", value)
    return template


def _names(ingredients: list[Ingredient]) -> str:
    return ", ".join(ingredient.name for ingredient in ingredients) or "None specified"


def detect_ingredients_prompt() -> str:
    return load_prompt("detect_ingredients")


def generate_recipes_prompt(ingredients: list[Ingredient]) -> str:
    return _fill(load_prompt("generate_recipes"), ingredient_list=_names(ingredients))


def generate_substitutions_prompt(recipe: Recipe, ingredients: list[Ingredient], missing: list[str]) -> str:
    return _fill(
        load_prompt("generate_substitutions"),
        title=recipe.title,
        available=_names(ingredients),
        needed=", ".join(recipe.ingredients_needed),
        missing=", ".join(missing),
    )


def _format_steps(recipe: Recipe) -> str:
    if not recipe.steps:
        return "(none yet)"
    lines = []
    for step in recipe.steps:
        line = f"{step.step_number}. {step.instruction}"
        if step.estimated_time:
            line += f" ({step.estimated_time})"
        lines.append(line)
    return "\n".join(lines)


def chat_system_prompt(recipe: Recipe, ingredients: list[Ingredient]) -> str:
    """System prompt with the recipe being cooked frozen into it."""
    return _fill(
        load_prompt("chat"),
        title=recipe.title or "Untitled Recipe",
        cook_time=str(recipe.cook_time),
        difficulty=recipe.difficulty,
        ingredients_needed=", ".join(recipe.ingredients_needed),
        available=_names(ingredients),
        steps=_format_steps(recipe),
    )


# OpenAI function tool the chat model calls to propose a recipe change
UPDATE_RECIPE_TOOL = {
    "type": "function",
    "function": {
        "name": "update_recipe",
        "description": (
            "Update the recipe with modifications based on user requests. Use this when the user asks to "
            "change ingredients, adjust cooking time, modify steps, or make any recipe modifications."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "ingredientsNeeded": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Updated list of all ingredients needed for the recipe",
                },
                "steps": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "stepNumber": {
                                "type": "number",
                                "description": "The step number (1, 2, 3, etc.)",
                            },
                            "instruction": {
                                "type": "string",
                                "description": "Clear instruction for this step",
                            },
                            "estimatedTime": {
                                "type": "string",
                                "description": 'Estimated time for this step (e.g., "5 min", "10-15 min")',
                            },
                        },
                        "required": ["stepNumber", "instruction"],
                    },
                    "description": "Updated cooking steps with step numbers and instructions",
                },
                "cookTime": {
                    "type": "number",
                    "description": "Updated total cook time in minutes",
                },
                "description": {
                    "type": "string",
                    "description": "Updated recipe description",
                },
                "explanation": {
                    "type": "string",
                    "description": "Explanation of why these changes work and what was modified",
                },
            },
            "required": ["explanation"],
        },
    },
}

"""
Recipe Remix - AI Response Normalizer.

Turns whatever the AI backend sent back into one of four typed payloads:

- ingredients:   detected ingredient list
- cuisines:      cuisine groups with recipes
- substitutions: swaps for missing ingredients
- patch:         partial recipe proposed by the chat assistant

Input is either text (possibly wrapped in prose or code fences) or an
already-structured object such as a tool-call argument blob. Text goes
through: locate outermost literal -> strict parse -> one repair pass ->
strict parse. Anything that still fails, or fails validation, raises
MalformedAiResponse carrying the raw payload. Pure: no I/O, no awaits.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from recipe_remix.core.matching import match_percentage
from recipe_remix.errors import MalformedAiResponse
from recipe_remix.models import CookingStep, CuisineGroup, Ingredient, Recipe, RecipePatch, Substitution

logger = logging.getLogger(__name__)

_CLOSERS = {"[": "]", "{": "}"}
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")

# Keys the model must not control: ids are ours, percentages are derived
_RECIPE_DERIVED_KEYS = {"id", "matchPercentage", "match_percentage"}


# =============================================================================
# Payload Types
# =============================================================================


class PayloadKind(str, Enum):
    """The four payload shapes the AI backend produces."""

    INGREDIENTS = "ingredients"
    CUISINES = "cuisines"
    SUBSTITUTIONS = "substitutions"
    PATCH = "patch"


@dataclass(frozen=True)
class IngredientsPayload:
    ingredients: list[Ingredient]
    kind: Literal[PayloadKind.INGREDIENTS] = PayloadKind.INGREDIENTS


@dataclass(frozen=True)
class CuisinesPayload:
    groups: list[CuisineGroup]
    dropped: int = 0  # groups skipped as unusable
    kind: Literal[PayloadKind.CUISINES] = PayloadKind.CUISINES


@dataclass(frozen=True)
class SubstitutionsPayload:
    substitutions: list[Substitution]
    kind: Literal[PayloadKind.SUBSTITUTIONS] = PayloadKind.SUBSTITUTIONS


@dataclass(frozen=True)
class PatchPayload:
    patch: RecipePatch
    kind: Literal[PayloadKind.PATCH] = PayloadKind.PATCH


AiPayload = IngredientsPayload | CuisinesPayload | SubstitutionsPayload | PatchPayload


# =============================================================================
# JSON Extraction
# =============================================================================


def repair_json(candidate: str) -> str:
    """
    The bounded set of textual repairs applied before the second parse.

    - Drop trailing commas before a closing bracket
    - Collapse literal newlines/tabs (invalid inside JSON strings)

    The comma rule is textual, so a ",]" or ",}" inside a string value is
    rewritten too. Only used after a strict parse has already failed.
    """
    repaired = _TRAILING_COMMA.sub(r"\1", candidate)
    return repaired.replace("\r", "").replace("\n", " ").replace("\t", " ")


def extract_json(raw: Any, opener: Literal["[", "{"], unwrap_key: str | None = None) -> Any:
    """
    Get the JSON value out of a raw AI response.

    Args:
        raw: Response text, or an already-parsed list/dict
        opener: "[" when an array is expected, "{" for an object
        unwrap_key: If the value is an object with this key, return that member
            (service envelopes like {"cuisines": [...]})

    Raises:
        MalformedAiResponse: nothing parseable was found
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, (list, dict)):
        data = raw
    elif isinstance(raw, str):
        data = _parse_text(raw, opener)
    else:
        raise MalformedAiResponse(f"Unsupported AI response type: {type(raw).__name__}", raw)

    if unwrap_key and isinstance(data, dict) and unwrap_key in data:
        data = data[unwrap_key]
    return data


def _parse_text(text: str, opener: str) -> Any:
    closer = _CLOSERS[opener]
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        kind = "array" if opener == "[" else "object"
        raise MalformedAiResponse(f"No JSON {kind} found in AI response", text)

    candidate = text[start : end + 1]
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as first_error:
        try:
            data = json.loads(repair_json(candidate))
        except json.JSONDecodeError:
            raise MalformedAiResponse(f"Invalid JSON in AI response: {first_error}", text) from first_error
        logger.debug(f"AI response needed JSON repair: {first_error}")
        return data


def _validate(model: type[BaseModel], item: Any, what: str, raw: Any):
    try:
        return model.model_validate(item)
    except ValidationError as e:
        detail = e.errors()[0]
        location = ".".join(str(part) for part in detail["loc"]) or what
        raise MalformedAiResponse(f"Invalid {what} ({location}: {detail['msg']})", raw) from e


def _expect_list(data: Any, what: str, raw: Any) -> list:
    if not isinstance(data, list):
        raise MalformedAiResponse(f"Expected a list of {what}, got {type(data).__name__}", raw)
    return data


def _ordered_steps(steps: list[CookingStep], title: str, raw: Any) -> list[CookingStep]:
    numbers = [step.step_number for step in steps]
    if len(set(numbers)) != len(numbers):
        raise MalformedAiResponse(f"Recipe '{title}' has duplicate step numbers {numbers}", raw)
    return sorted(steps, key=lambda step: step.step_number)


# =============================================================================
# Validating Constructors
# =============================================================================


def normalize_ingredients(raw: Any) -> IngredientsPayload:
    """Detected ingredients: [{"name", "category", "quantity"?}, ...]."""
    data = _expect_list(extract_json(raw, "[", unwrap_key="ingredients"), "ingredients", raw)
    ingredients = [_validate(Ingredient, item, "ingredient", raw) for item in data]
    return IngredientsPayload(ingredients=ingredients)


def normalize_recipe(item: Any, raw: Any) -> Recipe:
    """
    Validate one recipe object.

    A fresh surrogate id is always assigned. match_percentage is recomputed
    from the ingredient lists; a matched ingredient the recipe does not need
    rejects the payload.
    """
    if not isinstance(item, dict):
        raise MalformedAiResponse(f"Expected a recipe object, got {type(item).__name__}", raw)

    claimed = item.get("matchPercentage", item.get("match_percentage"))
    recipe = _validate(
        Recipe,
        {key: value for key, value in item.items() if key not in _RECIPE_DERIVED_KEYS},
        "recipe",
        raw,
    )

    stray = recipe.unmatched()
    if stray:
        raise MalformedAiResponse(
            f"Recipe '{recipe.title}' marks ingredients as matched that it does not need: {', '.join(stray)}",
            raw,
        )

    percentage = match_percentage(recipe.ingredients_matched, recipe.ingredients_needed)
    if claimed is not None and claimed != percentage:
        logger.debug(f"Recipe '{recipe.title}': model claimed {claimed}% match, computed {percentage}%")

    if not recipe.has_steps:
        logger.warning(f"Recipe '{recipe.title}' has no cooking steps")

    return recipe.model_copy(
        update={
            "match_percentage": percentage,
            "steps": _ordered_steps(recipe.steps, recipe.title, raw),
        }
    )


def normalize_cuisines(raw: Any) -> CuisinesPayload:
    """
    Cuisine groups: [{"name", "description", "recipes": [...]}, ...].

    Groups without recipes, and repeats of a group name, are dropped with a
    warning. Any invalid recipe rejects the whole payload. Every recipe's
    cuisine is set to its group's name.
    """
    data = _expect_list(extract_json(raw, "[", unwrap_key="cuisines"), "cuisine groups", raw)

    groups: list[CuisineGroup] = []
    seen: set[str] = set()
    dropped = 0

    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedAiResponse(f"Expected a cuisine group object at position {index}", raw)

        label = item.get("name") or f"#{index + 1}"
        recipes_data = item.get("recipes")
        if not isinstance(recipes_data, list) or not recipes_data:
            logger.warning(f"Dropping cuisine group {label!r}: no recipes")
            dropped += 1
            continue

        recipes = [normalize_recipe(recipe, raw) for recipe in recipes_data]
        group = _validate(
            CuisineGroup,
            {"name": item.get("name"), "description": item.get("description"), "recipes": recipes},
            "cuisine group",
            raw,
        )

        if group.name in seen:
            logger.warning(f"Dropping repeated cuisine group {group.name!r}")
            dropped += 1
            continue
        seen.add(group.name)

        groups.append(
            group.model_copy(
                update={"recipes": [recipe.model_copy(update={"cuisine": group.name}) for recipe in group.recipes]}
            )
        )

    if not groups:
        raise MalformedAiResponse("AI response contained no usable cuisine groups", raw)

    return CuisinesPayload(groups=groups, dropped=dropped)


def normalize_substitutions(
    raw: Any,
    *,
    missing: list[str] | None = None,
    available: list[str] | None = None,
) -> SubstitutionsPayload:
    """
    Substitutions: [{"original", "substitute", "flavorScience", "flavorImpact", "textureImpact"}, ...].

    Args:
        missing: The recipe's missing ingredients. Substitutions for anything
            else are dropped with a warning.
        available: The user's ingredient names. A substitute outside this set
            is kept (it is a recommendation) but logged.
    """
    data = _expect_list(extract_json(raw, "[", unwrap_key="substitutions"), "substitutions", raw)
    substitutions = [_validate(Substitution, item, "substitution", raw) for item in data]

    if missing is not None:
        wanted = set(missing)
        kept = [sub for sub in substitutions if sub.original in wanted]
        for sub in substitutions:
            if sub.original not in wanted:
                logger.warning(f"Dropping substitution for {sub.original!r}: not a missing ingredient")
        substitutions = kept

    if available is not None:
        have = set(available)
        for sub in substitutions:
            if sub.substitute not in have:
                logger.debug(f"Substitute {sub.substitute!r} for {sub.original!r} is not in the user's ingredients")

    return SubstitutionsPayload(substitutions=substitutions)


def normalize_patch(raw: Any) -> PatchPayload:
    """
    Recipe patch from the chat assistant's update_recipe tool call.

    `raw` is usually the tool call's argument blob (JSON text or dict).
    """
    data = extract_json(raw, "{")
    if not isinstance(data, dict):
        raise MalformedAiResponse(f"Expected a recipe patch object, got {type(data).__name__}", raw)

    patch = _validate(RecipePatch, {key: value for key, value in data.items() if key != "id"}, "recipe patch", raw)

    if patch.ingredients_needed is not None and patch.ingredients_matched is not None:
        needed = set(patch.ingredients_needed)
        stray = [name for name in patch.ingredients_matched if name not in needed]
        if stray:
            raise MalformedAiResponse(
                f"Recipe patch marks ingredients as matched that it does not need: {', '.join(stray)}",
                raw,
            )

    if patch.steps is not None:
        numbers = [step.step_number for step in patch.steps]
        if len(set(numbers)) != len(numbers):
            raise MalformedAiResponse(f"Recipe patch has duplicate step numbers {numbers}", raw)

    return PatchPayload(patch=patch)


def normalize(kind: PayloadKind | str, raw: Any, **context: Any) -> AiPayload:
    """
    Dispatch to the validating constructor for `kind`.

    `context` is only meaningful for substitutions (missing=, available=).
    """
    kind = PayloadKind(kind)
    if kind is PayloadKind.INGREDIENTS:
        return normalize_ingredients(raw)
    if kind is PayloadKind.CUISINES:
        return normalize_cuisines(raw)
    if kind is PayloadKind.SUBSTITUTIONS:
        return normalize_substitutions(raw, **context)
    return normalize_patch(raw)

"""
Tests for the AI response normalizer.

Covers JSON extraction from noisy model text, the single repair pass, and
the validating constructors for each payload kind.
"""

import json

import pytest

from factories import recipe_json
from recipe_remix.core.normalizer import (
    PayloadKind,
    extract_json,
    normalize,
    normalize_cuisines,
    normalize_ingredients,
    normalize_patch,
    normalize_recipe,
    normalize_substitutions,
    repair_json,
)
from recipe_remix.errors import MalformedAiResponse


def _group(name="Italian", recipes=None, description="Rustic"):
    return {"name": name, "description": description, "recipes": recipes if recipes is not None else [recipe_json()]}


class TestExtractJson:
    def test_plain_array(self):
        assert extract_json('[{"a": 1}]', "[") == [{"a": 1}]

    def test_array_wrapped_in_prose_and_fences(self):
        text = 'Sure! Here you go:\n```json\n[{"a": 1}, {"a": 2}]\n```\nEnjoy.'
        assert extract_json(text, "[") == [{"a": 1}, {"a": 2}]

    def test_trailing_comma_repaired(self):
        assert extract_json('[{"a": 1,}, {"a": 2},]', "[") == [{"a": 1}, {"a": 2}]

    def test_literal_newline_inside_string_repaired(self):
        text = '[{"instruction": "line one\nline two"}]'
        assert extract_json(text, "[") == [{"instruction": "line one line two"}]

    def test_no_array_raises_with_raw(self):
        with pytest.raises(MalformedAiResponse) as exc:
            extract_json("I couldn't find any food in this photo.", "[")
        assert exc.value.raw == "I couldn't find any food in this photo."

    def test_unrepairable_raises(self):
        with pytest.raises(MalformedAiResponse):
            extract_json('[{"a": }]', "[")

    def test_structured_input_passes_through(self):
        assert extract_json({"explanation": "x"}, "{") == {"explanation": "x"}

    def test_bytes_are_decoded(self):
        assert extract_json(b'[1, 2]', "[") == [1, 2]

    def test_unwrap_service_envelope(self):
        assert extract_json('{"ingredients": [{"a": 1}]}', "{", unwrap_key="ingredients") == [{"a": 1}]

    def test_repair_is_idempotent_on_valid_json(self):
        text = json.dumps([{"a": [1, 2]}])
        assert json.loads(repair_json(text)) == [{"a": [1, 2]}]

    def test_repair_is_textual_inside_strings(self):
        # Only reached when the strict parse already failed
        assert repair_json('["tip: stir,]", "ok",]') == '["tip: stir]", "ok"]'
        assert extract_json('["tip: stir,]"]', "[") == ["tip: stir,]"]


class TestIngredients:
    def test_names_and_categories_normalized(self):
        payload = normalize_ingredients('[{"name": "  Chicken  Breast ", "category": "Protein", "quantity": 2}]')
        assert payload.kind is PayloadKind.INGREDIENTS
        [ingredient] = payload.ingredients
        assert ingredient.name == "chicken breast"
        assert ingredient.category == "protein"
        assert ingredient.quantity == "2"

    def test_envelope_form(self):
        payload = normalize_ingredients({"ingredients": [{"name": "egg", "category": "protein"}]})
        assert [i.name for i in payload.ingredients] == ["egg"]

    def test_empty_list_is_valid(self):
        assert normalize_ingredients("[]").ingredients == []

    def test_unknown_category_rejects(self):
        with pytest.raises(MalformedAiResponse, match="ingredient"):
            normalize_ingredients('[{"name": "tofu", "category": "legume"}]')

    def test_blank_name_rejects(self):
        with pytest.raises(MalformedAiResponse):
            normalize_ingredients('[{"name": "   ", "category": "produce"}]')

    def test_object_instead_of_list_rejects(self):
        with pytest.raises(MalformedAiResponse, match="Expected a list"):
            normalize_ingredients({"name": "egg", "category": "protein"})


class TestRecipe:
    def test_percentage_is_recomputed(self):
        recipe = normalize_recipe(recipe_json(), raw=None)
        # 2 of 3 matched, model claimed 90
        assert recipe.match_percentage == 67

    def test_steps_sorted(self):
        recipe = normalize_recipe(recipe_json(), raw=None)
        assert [s.step_number for s in recipe.steps] == [1, 2]
        assert recipe.steps[0].estimated_time == "10 min"

    def test_surrogate_id_assigned_and_model_id_ignored(self):
        first = normalize_recipe(recipe_json(id="evil"), raw=None)
        second = normalize_recipe(recipe_json(), raw=None)
        assert first.id != "evil"
        assert first.id != second.id

    def test_ingredient_names_normalized(self):
        recipe = normalize_recipe(recipe_json(), raw=None)
        assert recipe.ingredients_needed == ["pasta", "tomatoes", "garlic"]
        assert recipe.difficulty == "easy"

    def test_matched_not_needed_rejects(self):
        with pytest.raises(MalformedAiResponse, match="does not need"):
            normalize_recipe(recipe_json(ingredientsMatched=["saffron"]), raw=None)

    def test_duplicate_step_numbers_reject(self):
        steps = [{"stepNumber": 1, "instruction": "a"}, {"stepNumber": 1, "instruction": "b"}]
        with pytest.raises(MalformedAiResponse, match="duplicate step"):
            normalize_recipe(recipe_json(steps=steps), raw=None)

    def test_missing_steps_accepted(self):
        data = recipe_json()
        del data["steps"]
        recipe = normalize_recipe(data, raw=None)
        assert recipe.steps == []
        assert not recipe.has_steps

    def test_empty_needed_rejects(self):
        with pytest.raises(MalformedAiResponse):
            normalize_recipe(recipe_json(ingredientsNeeded=[], ingredientsMatched=[]), raw=None)

    def test_missing_title_rejects(self):
        data = recipe_json()
        del data["title"]
        with pytest.raises(MalformedAiResponse, match="title"):
            normalize_recipe(data, raw=None)


class TestCuisines:
    def test_cuisine_forced_to_group_name(self):
        payload = normalize_cuisines(json.dumps([_group("Italian", [recipe_json(cuisine="French")])]))
        assert payload.groups[0].recipes[0].cuisine == "Italian"

    def test_empty_group_dropped(self):
        payload = normalize_cuisines([_group("Italian"), _group("Empty", recipes=[])])
        assert [g.name for g in payload.groups] == ["Italian"]
        assert payload.dropped == 1

    def test_repeated_group_name_dropped(self):
        payload = normalize_cuisines([_group("Italian"), _group("Italian", [recipe_json("Other")])])
        assert len(payload.groups) == 1
        assert payload.groups[0].recipes[0].title == "Pasta"

    def test_no_usable_groups_rejects(self):
        with pytest.raises(MalformedAiResponse, match="no usable"):
            normalize_cuisines([_group("Empty", recipes=[])])

    def test_one_bad_recipe_rejects_everything(self):
        bad = recipe_json("Bad", difficulty="impossible")
        with pytest.raises(MalformedAiResponse):
            normalize_cuisines([_group("Italian"), _group("Mexican", [bad])])

    def test_envelope_and_prose(self):
        text = 'Here are ideas: {"cuisines": ' + json.dumps([_group()]) + "}"
        payload = normalize_cuisines(text)
        assert payload.groups[0].name == "Italian"

    def test_percentages_invariant_over_all_recipes(self):
        recipes = [
            recipe_json("A", ingredientsNeeded=["a", "b"], ingredientsMatched=["a"]),
            recipe_json("B", ingredientsNeeded=["a", "b", "c"], ingredientsMatched=[]),
            recipe_json("C", ingredientsNeeded=["a"], ingredientsMatched=["a"]),
        ]
        payload = normalize_cuisines([_group("Mix", recipes)])
        assert [r.match_percentage for r in payload.groups[0].recipes] == [50, 0, 100]


class TestSubstitutions:
    RAW = json.dumps(
        [
            {
                "original": "Soy Sauce",
                "substitute": "salt",
                "flavorScience": "Salt supplies the sodium.",
                "flavorImpact": 3,
                "textureImpact": 1,
            },
            {
                "original": "rice",
                "substitute": "quinoa",
                "flavorScience": "Not needed.",
                "flavorImpact": 2,
                "textureImpact": 2,
            },
        ]
    )

    def test_parsed_and_normalized(self):
        payload = normalize_substitutions(self.RAW)
        assert payload.kind is PayloadKind.SUBSTITUTIONS
        assert payload.substitutions[0].original == "soy sauce"
        assert payload.substitutions[0].flavor_impact == 3

    def test_non_missing_originals_dropped(self):
        payload = normalize_substitutions(self.RAW, missing=["soy sauce"], available=["salt"])
        assert [s.original for s in payload.substitutions] == ["soy sauce"]

    def test_impact_out_of_range_rejects(self):
        raw = '[{"original": "a", "substitute": "b", "flavorScience": "x", "flavorImpact": 6, "textureImpact": 1}]'
        with pytest.raises(MalformedAiResponse):
            normalize_substitutions(raw)


class TestPatch:
    def test_tool_arguments_text(self):
        args = json.dumps({"explanation": "Faster", "cookTime": 15})
        patch = normalize_patch(args).patch
        assert patch.explanation == "Faster"
        assert patch.recipe_updates() == {"cook_time": 15}

    def test_explanation_required(self):
        with pytest.raises(MalformedAiResponse, match="explanation"):
            normalize_patch({"cookTime": 15})

    def test_matched_outside_needed_rejects(self):
        with pytest.raises(MalformedAiResponse, match="does not need"):
            normalize_patch({"explanation": "x", "ingredientsNeeded": ["a"], "ingredientsMatched": ["b"]})

    def test_duplicate_steps_reject(self):
        steps = [{"stepNumber": 1, "instruction": "a"}, {"stepNumber": 1, "instruction": "b"}]
        with pytest.raises(MalformedAiResponse):
            normalize_patch({"explanation": "x", "steps": steps})

    def test_id_ignored(self):
        patch = normalize_patch({"explanation": "x", "id": "recipe_other"}).patch
        assert patch.recipe_updates() == {}


class TestDispatch:
    def test_by_kind_name(self):
        assert normalize("ingredients", "[]").kind is PayloadKind.INGREDIENTS
        assert normalize(PayloadKind.PATCH, {"explanation": "x"}).kind is PayloadKind.PATCH

    def test_context_passed_to_substitutions(self):
        payload = normalize(PayloadKind.SUBSTITUTIONS, TestSubstitutions.RAW, missing=["rice"])
        assert [s.original for s in payload.substitutions] == ["rice"]

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            normalize("recipes", "[]")


class TestRecovery:
    def test_prose_and_trailing_comma(self):
        payload = normalize_ingredients('Here you go: [{"name":"egg","category":"protein"},]')
        assert len(payload.ingredients) == 1
        assert payload.ingredients[0].name == "egg"

    def test_truncated_json_is_malformed(self):
        with pytest.raises(MalformedAiResponse) as exc:
            normalize_ingredients('[{"name":"egg","category":"prot')
        assert "egg" in exc.value.raw_excerpt()

"""
Tests for the ingredient swap applied by the nutrition assistant.
"""
import copy

from plan_mutator import update_meal_ingredient


def _meal(plan, day_index=0, meal_index=0):
    return plan["nutritionPlan"]["dailyPlans"][day_index]["meals"][meal_index]


class TestUpdateMealIngredientSuccess:
    """A matching day, meal and ingredient are rewritten on a copy."""

    def test_replaces_ingredient_recipe_and_name(self, sample_plan):
        updated, ok = update_meal_ingredient(
            sample_plan, "monday", "chicken salad", "chicken breast", "tofu"
        )

        assert ok is True
        meal = _meal(updated)
        assert meal["ingredients"] == ["tofu", "100g lettuce", "10ml olive oil"]
        # whole matched entry text is the replacement target
        assert meal["recipe"][0] == "Grill the chicken breast."
        assert meal["name"] == "Chicken Salad"

    def test_recipe_steps_replaced_case_insensitively(self, sample_plan):
        plan = copy.deepcopy(sample_plan)
        _meal(plan)["ingredients"][0] = "chicken breast"

        updated, ok = update_meal_ingredient(plan, "Monday", "Chicken Salad", "chicken", "tofu")

        assert ok is True
        assert _meal(updated)["recipe"] == [
            "Grill the tofu.",
            "Slice the tofu and toss with lettuce.",
            "Dress with olive oil.",
        ]

    def test_meal_name_follows_replacement(self, sample_plan):
        plan = copy.deepcopy(sample_plan)
        _meal(plan, 0, 1)["ingredients"][1] = "Almonds"

        updated, ok = update_meal_ingredient(plan, "Monday", "Greek Yogurt with Almonds", "almond", "walnuts")

        assert ok is True
        assert _meal(updated, 0, 1)["name"] == "Greek Yogurt with walnuts"
        assert _meal(updated, 0, 1)["recipe"] == ["Top the yogurt with walnuts."]

    def test_explicit_new_meal_name_wins(self, sample_plan):
        updated, ok = update_meal_ingredient(
            sample_plan, "Monday", "Chicken Salad", "chicken", "200g tofu", new_meal_name="Tofu Salad"
        )

        assert ok is True
        assert _meal(updated)["name"] == "Tofu Salad"

    def test_only_first_matching_ingredient_replaced(self, sample_plan):
        plan = copy.deepcopy(sample_plan)
        _meal(plan)["ingredients"] = ["olive oil spray", "10ml olive oil"]

        updated, ok = update_meal_ingredient(plan, "Monday", "Chicken Salad", "OLIVE OIL", "butter")

        assert ok is True
        assert _meal(updated)["ingredients"] == ["butter", "10ml olive oil"]

    def test_replacement_text_is_literal(self, sample_plan):
        plan = copy.deepcopy(sample_plan)
        _meal(plan)["ingredients"][0] = "chicken"

        updated, ok = update_meal_ingredient(plan, "Monday", "Chicken Salad", "chicken", r"tofu \1 (50%)")

        assert ok is True
        assert _meal(updated)["recipe"][0] == r"Grill the tofu \1 (50%) breast."

    def test_input_plan_is_not_mutated(self, sample_plan):
        before = copy.deepcopy(sample_plan)
        updated, ok = update_meal_ingredient(sample_plan, "Monday", "Chicken Salad", "lettuce", "spinach")

        assert ok is True
        assert sample_plan == before
        assert updated is not sample_plan
        assert updated["workoutPlan"] == sample_plan["workoutPlan"]
        assert updated["nutritionPlan"]["dailyPlans"][1] == sample_plan["nutritionPlan"]["dailyPlans"][1]


class TestUpdateMealIngredientFailure:
    """Any lookup miss returns the very same plan object and False."""

    def test_unknown_day(self, sample_plan):
        result, ok = update_meal_ingredient(sample_plan, "Sunday", "Chicken Salad", "chicken", "tofu")
        assert ok is False
        assert result is sample_plan

    def test_unknown_meal(self, sample_plan):
        result, ok = update_meal_ingredient(sample_plan, "Monday", "Pizza", "cheese", "tofu")
        assert ok is False
        assert result is sample_plan

    def test_meal_name_must_match_fully(self, sample_plan):
        result, ok = update_meal_ingredient(sample_plan, "Monday", "Chicken", "chicken", "tofu")
        assert ok is False
        assert result is sample_plan

    def test_unknown_ingredient(self, sample_plan):
        before = copy.deepcopy(sample_plan)
        result, ok = update_meal_ingredient(sample_plan, "Monday", "Chicken Salad", "salmon", "tofu")
        assert ok is False
        assert result is sample_plan
        assert sample_plan == before

    def test_plan_without_nutrition_section(self):
        plan = {"workoutPlan": {"schedule": []}}
        result, ok = update_meal_ingredient(plan, "Monday", "Chicken Salad", "chicken", "tofu")
        assert ok is False
        assert result is plan

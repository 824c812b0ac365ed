from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def _find_by_label(items: Any, field: str, wanted: str) -> Optional[Dict[str, Any]]:
    if not isinstance(items, list):
        return None
    target = wanted.lower()
    for item in items:
        if isinstance(item, dict) and str(item.get(field, "")).lower() == target:
            return item
    return None


def _replace_literal(text: str, old: str, new: str) -> str:
    """Case-insensitive replacement of every occurrence of the literal `old`."""
    return re.sub(re.escape(old), lambda _match: new, text, flags=re.IGNORECASE)


def update_meal_ingredient(
    plan: Dict[str, Any],
    day: str,
    meal_name: str,
    old_ingredient: str,
    new_ingredient: str,
    new_meal_name: Optional[str] = None,
) -> Tuple[Dict[str, Any], bool]:
    """
    Swap one ingredient of one meal.

    The day and meal are matched case-insensitively on their full label; the
    ingredient is the first entry containing `old_ingredient`
    (case-insensitive). The matched entry is replaced by `new_ingredient`, its
    text is replaced in every recipe step, and the meal is renamed to
    `new_meal_name` or gets the same text replacement in its name.

    Works on a deep copy. On any lookup failure the original `plan` object is
    returned unchanged together with False.
    """
    if not isinstance(plan, dict) or not old_ingredient:
        logger.warning("Meal update rejected: no plan or empty ingredient")
        return plan, False

    updated = copy.deepcopy(plan)
    nutrition_plan = updated.get("nutritionPlan") or {}

    day_plan = _find_by_label(nutrition_plan.get("dailyPlans"), "day", day or "")
    meal = _find_by_label(day_plan.get("meals"), "name", meal_name or "") if day_plan else None
    if meal is None:
        logger.warning(
            "Failed to update meal: day=%r meal=%r ingredient=%r", day, meal_name, old_ingredient
        )
        return plan, False

    ingredients = meal.get("ingredients")
    if not isinstance(ingredients, list):
        ingredients = []
    needle = old_ingredient.lower()
    index = next(
        (i for i, item in enumerate(ingredients) if needle in str(item).lower()),
        -1,
    )
    if index < 0:
        logger.warning(
            "Failed to update meal: day=%r meal=%r ingredient=%r", day, meal_name, old_ingredient
        )
        return plan, False

    original_ingredient = str(ingredients[index])
    ingredients[index] = new_ingredient

    recipe = meal.get("recipe")
    if isinstance(recipe, list):
        meal["recipe"] = [
            _replace_literal(step, original_ingredient, new_ingredient) if isinstance(step, str) else step
            for step in recipe
        ]

    if new_meal_name:
        meal["name"] = new_meal_name
    else:
        meal["name"] = _replace_literal(str(meal.get("name", "")), original_ingredient, new_ingredient)

    logger.info(
        "Meal '%s' on %s: replaced '%s' with '%s'",
        meal_name, day, original_ingredient, new_ingredient,
    )
    return updated, True

"""
Identifier migration for stored and freshly generated plans.

Older plans were saved before workout days, exercises and meals carried an
`id`. Logs (completed meals, exercise set logs) are keyed by those ids, so
every plan is normalised on load and after generation.
"""
from __future__ import annotations

import copy
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


def _iter_workout_days(plan: Dict[str, Any]):
    workout_plan = plan.get("workoutPlan")
    if not isinstance(workout_plan, dict):
        return
    schedule = workout_plan.get("schedule")
    if not isinstance(schedule, list):
        return
    for day in schedule:
        if isinstance(day, dict):
            yield day


def _iter_nutrition_days(plan: Dict[str, Any]):
    nutrition_plan = plan.get("nutritionPlan")
    if not isinstance(nutrition_plan, dict):
        return
    daily_plans = nutrition_plan.get("dailyPlans")
    if not isinstance(daily_plans, list):
        return
    for day in daily_plans:
        if isinstance(day, dict):
            yield day


def _has_id(item: Dict[str, Any]) -> bool:
    value = item.get("id")
    return value is not None and value != ""


def normalize_plan(plan: Dict[str, Any], id_factory: IdFactory = new_id) -> Dict[str, Any]:
    """
    Return a copy of `plan` where every workout day, exercise and meal has an id.

    Existing ids are never touched and no element is reordered or dropped.
    A day whose `exercises`/`meals` is missing or not a list gets an empty
    list. Running it on its own output returns an equal plan.
    """
    if not isinstance(plan, dict):
        return plan

    migrated = copy.deepcopy(plan)
    assigned = 0

    for day in _iter_workout_days(migrated):
        if not _has_id(day):
            day["id"] = id_factory()
            assigned += 1
        exercises = day.get("exercises")
        if not isinstance(exercises, list):
            day["exercises"] = []
            continue
        for exercise in exercises:
            if isinstance(exercise, dict) and not _has_id(exercise):
                exercise["id"] = id_factory()
                assigned += 1

    for day in _iter_nutrition_days(migrated):
        meals = day.get("meals")
        if not isinstance(meals, list):
            day["meals"] = []
            continue
        for meal in meals:
            if isinstance(meal, dict) and not _has_id(meal):
                meal["id"] = id_factory()
                assigned += 1

    if assigned:
        logger.info("Plan migrated: assigned %d missing identifiers", assigned)
    return migrated


def assign_fresh_ids(plan: Dict[str, Any], id_factory: IdFactory = new_id) -> Dict[str, Any]:
    """
    Give every workout day, exercise and meal of a freshly generated plan a new id.

    Model-provided ids are not trusted to be unique across the whole week, and
    exercise substitution matches by id over the entire schedule.
    """
    if not isinstance(plan, dict):
        return plan

    fresh = copy.deepcopy(plan)
    for day in _iter_workout_days(fresh):
        day["id"] = id_factory()
        for exercise in day.get("exercises") or []:
            if isinstance(exercise, dict):
                exercise["id"] = id_factory()
    for day in _iter_nutrition_days(fresh):
        for meal in day.get("meals") or []:
            if isinstance(meal, dict):
                meal["id"] = id_factory()
    return normalize_plan(fresh, id_factory)


def migrate_plan_file(path: Path) -> bool:
    """
    Normalise the plan stored at `path` in place.

    Returns True when the file was rewritten.
    """
    with path.open("r", encoding="utf-8") as handle:
        plan = json.load(handle)

    migrated = normalize_plan(plan)
    if migrated == plan:
        return False

    with path.open("w", encoding="utf-8") as handle:
        json.dump(migrated, handle, indent=2, ensure_ascii=False)
    return True


def main(argv: list[str] | None = None) -> int:
    from config import DATA_DIR

    args = sys.argv[1:] if argv is None else argv
    data_dir = Path(args[0]) if args else DATA_DIR
    plan_file = data_dir / "plan.json"

    if not plan_file.exists():
        print(f"[!] {plan_file} does not exist. Nothing to migrate.")
        return 0

    try:
        changed = migrate_plan_file(plan_file)
    except json.JSONDecodeError as exc:
        print(f"[!] Could not parse {plan_file.name}: {exc}")
        return 1

    if changed:
        print(f"[OK] Assigned missing identifiers in {plan_file}.")
    else:
        print(f"[i] {plan_file.name} already has identifiers everywhere. Nothing changed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

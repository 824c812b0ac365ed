"""
Structural schema of a generated plan.

The models are lenient: unknown keys are kept and most fields have defaults.
The identifier fields are still advertised as required in the JSON schema sent
to the model so every Meal/Exercise/DailyWorkout comes back with an `id`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Number = Union[int, float]


def _require_id(schema: Dict[str, Any]) -> None:
    required = schema.setdefault("required", [])
    if "id" not in required:
        required.insert(0, "id")


class Meal(BaseModel):
    model_config = ConfigDict(extra="allow", json_schema_extra=_require_id)

    id: Optional[str] = None
    name: str = ""
    time: str = ""
    calories: Number = 0
    protein: Number = 0
    recipe: List[str] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)


class DailyNutrition(BaseModel):
    model_config = ConfigDict(extra="allow")

    day: str
    totalCalories: Number = 0
    totalProtein: Number = 0
    meals: List[Meal] = Field(default_factory=list)


class NutritionPlan(BaseModel):
    model_config = ConfigDict(extra="allow")

    summary: str = ""
    dailyPlans: List[DailyNutrition] = Field(default_factory=list)


class Exercise(BaseModel):
    model_config = ConfigDict(extra="allow", json_schema_extra=_require_id)

    id: Optional[str] = None
    name: str = ""
    sets: str = ""
    reps: str = ""
    rest: str = ""
    description: str = ""


class DailyWorkout(BaseModel):
    model_config = ConfigDict(extra="allow", json_schema_extra=_require_id)

    id: Optional[str] = None
    day: str
    focus: str = ""
    duration: str = ""
    exercises: List[Exercise] = Field(default_factory=list)


class WorkoutPlan(BaseModel):
    model_config = ConfigDict(extra="allow")

    summary: str = ""
    schedule: List[DailyWorkout] = Field(default_factory=list)


class Plan(BaseModel):
    model_config = ConfigDict(extra="allow")

    nutritionPlan: NutritionPlan
    workoutPlan: WorkoutPlan


def plan_json_schema() -> Dict[str, Any]:
    """JSON schema handed to the generation call as its structural constraint."""
    return Plan.model_json_schema()


def exercise_json_schema() -> Dict[str, Any]:
    return Exercise.model_json_schema()


def validate_plan(data: Any) -> Dict[str, Any]:
    """
    Validate a decoded plan and return it as plain JSON-compatible dicts.

    Raises pydantic.ValidationError when the structure does not match.
    """
    return Plan.model_validate(data).model_dump(mode="json", exclude_none=True)

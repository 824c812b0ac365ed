"""
Shared fixtures: a small two-day plan and a store rooted in a temp directory.
"""
import copy
import itertools

import pytest

from plan_store import PlanStore

SAMPLE_PLAN = {
    "nutritionPlan": {
        "summary": "High protein, moderate deficit.",
        "dailyPlans": [
            {
                "day": "Monday",
                "totalCalories": 2200,
                "totalProtein": 160,
                "meals": [
                    {
                        "id": "meal-mon-1",
                        "name": "Chicken Salad",
                        "time": "13:00",
                        "calories": 550,
                        "protein": 45,
                        "recipe": [
                            "Grill the chicken breast.",
                            "Slice the Chicken Breast and toss with lettuce.",
                            "Dress with olive oil.",
                        ],
                        "ingredients": ["150g chicken breast", "100g lettuce", "10ml olive oil"],
                    },
                    {
                        "id": "meal-mon-2",
                        "name": "Greek Yogurt with Almonds",
                        "time": "17:00",
                        "calories": 300,
                        "protein": 20,
                        "recipe": ["Top the yogurt with almonds."],
                        "ingredients": ["200g greek yogurt", "20g almonds"],
                    },
                ],
            },
            {
                "day": "Tuesday",
                "totalCalories": 2100,
                "totalProtein": 150,
                "meals": [
                    {
                        "id": "meal-tue-1",
                        "name": "Oatmeal",
                        "time": "08:00",
                        "calories": 400,
                        "protein": 15,
                        "recipe": ["Cook the oats in milk."],
                        "ingredients": ["60g oats", "250ml milk"],
                    }
                ],
            },
        ],
    },
    "workoutPlan": {
        "summary": "Full body twice a week.",
        "schedule": [
            {
                "id": "day-mon",
                "day": "Monday",
                "focus": "Full Body",
                "duration": "60 min",
                "exercises": [
                    {
                        "id": "ex-warmup",
                        "name": "Arm Circles (Warm-up)",
                        "sets": "2x10",
                        "reps": "10",
                        "rest": "0s",
                        "description": "Small controlled circles.",
                    },
                    {
                        "id": "ex-squat",
                        "name": "Goblet Squat",
                        "sets": "3-4",
                        "reps": "8-10",
                        "rest": "90s",
                        "description": "Keep the chest up.",
                    },
                    {
                        "id": "ex-row",
                        "name": "Dumbbell Row",
                        "sets": "3-4",
                        "reps": "10",
                        "rest": "60s",
                        "description": "Pull to the hip.",
                    },
                ],
            },
            {
                "id": "day-thu",
                "day": "Thursday",
                "focus": "Full Body",
                "duration": "60 min",
                "exercises": [
                    {
                        "id": "ex-squat-thu",
                        "name": "Goblet Squat",
                        "sets": "3-4",
                        "reps": "8-10",
                        "rest": "90s",
                        "description": "Keep the chest up.",
                    }
                ],
            },
        ],
    },
}

SAMPLE_PROFILE = {
    "gender": "female",
    "age": 34,
    "weight": 68,
    "height": 170,
    "activityLevel": "moderate",
    "goal": "lose fat",
    "workoutLocation": "Home",
    "workoutDays": ["Monday", "Thursday"],
    "equipment": ["Dumbbells", "Resistance bands"],
    "measurements": {"waist": 76},
}


@pytest.fixture
def sample_plan():
    return copy.deepcopy(SAMPLE_PLAN)


@pytest.fixture
def sample_profile():
    return copy.deepcopy(SAMPLE_PROFILE)


@pytest.fixture
def id_factory():
    """Deterministic ids: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def store(tmp_path):
    return PlanStore(data_dir=tmp_path / "data")


@pytest.fixture
def store_with_plan(store, sample_plan, sample_profile):
    store.save_profile(sample_profile)
    store.save_plan(sample_plan)
    return store

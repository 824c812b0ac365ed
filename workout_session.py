from __future__ import annotations

import copy
import logging
import re
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from config import DEFAULT_LANGUAGE
from errors import WorkoutSessionError
from locales import t, weekday_name
from plan_generator import suggest_substitute_exercise
from plan_migration import new_id
from plan_store import PlanStore

logger = logging.getLogger(__name__)

FEEDBACK_TAGS = ("easy", "ideal", "hard")
DEFAULT_EQUIPMENT = "Bodyweight"

_LEADING_INT = re.compile(r"^\s*(\d+)")


def _now_ms() -> int:
    return int(time.time() * 1000)


def is_warmup(exercise: Dict[str, Any], language: str) -> bool:
    marker = t(language, "warmup_label").lower()
    return marker in str(exercise.get("name", "")).lower()


def prescribed_set_count(exercise: Dict[str, Any], language: str) -> int:
    """
    Number of sets an exercise asks for, read from its `sets` text.

    Regular exercises use the number before '-' ("3-4" -> 3); warm-ups use
    the number before 'x' ("2x10" -> 2). Unreadable values count as 1.
    """
    sets_spec = str(exercise.get("sets") or "")
    separator = "x" if is_warmup(exercise, language) else "-"
    match = _LEADING_INT.match(sets_spec.split(separator)[0])
    return int(match.group(1)) if match else 1


def is_workout_complete(
    workout: Dict[str, Any], session: Dict[str, Any], language: str
) -> bool:
    """True once every exercise has at least its prescribed number of completed sets."""
    logs = session.get("exerciseLogs") or {}
    for exercise in workout.get("exercises") or []:
        if not isinstance(exercise, dict):
            continue
        done = sum(1 for entry in logs.get(exercise.get("id")) or [] if entry and entry.get("completed"))
        if done < prescribed_set_count(exercise, language):
            return False
    return True


def find_workout(plan: Optional[Dict[str, Any]], workout_id: str) -> Optional[Dict[str, Any]]:
    schedule = ((plan or {}).get("workoutPlan") or {}).get("schedule") or []
    return next((w for w in schedule if isinstance(w, dict) and w.get("id") == workout_id), None)


def todays_workout(
    plan: Optional[Dict[str, Any]], language: str, today: Optional[date] = None
) -> Optional[Dict[str, Any]]:
    """The DailyWorkout whose day label is today's weekday in `language`, if any."""
    today = today or date.today()
    name = weekday_name(today.weekday(), language).lower()
    schedule = ((plan or {}).get("workoutPlan") or {}).get("schedule") or []
    return next(
        (w for w in schedule if isinstance(w, dict) and str(w.get("day", "")).lower() == name),
        None,
    )


class WorkoutSessionManager:
    """
    Idle -> Active -> Idle state machine over the store's active workout slot.

    Every transition is written through the store before it returns.
    """

    def __init__(
        self,
        store: PlanStore,
        language: str = DEFAULT_LANGUAGE,
        substitute: Callable[..., Dict[str, Any]] = suggest_substitute_exercise,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = new_id,
    ):
        self.store = store
        self.language = language
        self._substitute = substitute
        self._clock = clock
        self._id_factory = id_factory

    @property
    def active(self) -> Optional[Dict[str, Any]]:
        return self.store.active_workout

    @property
    def state(self) -> str:
        return "active" if self.active is not None else "idle"

    def _require_active(self) -> Dict[str, Any]:
        session = self.active
        if session is None:
            raise WorkoutSessionError("No workout in progress.")
        return session

    def start(self, workout: Dict[str, Any]) -> Dict[str, Any]:
        if self.active is not None:
            raise WorkoutSessionError(
                f"A workout is already in progress ({self.active.get('workoutName')}); "
                "finish or cancel it first."
            )
        session = {
            "id": self._id_factory(),
            "workoutId": workout.get("id"),
            "workoutName": workout.get("focus") or workout.get("day", ""),
            "startTime": self._clock(),
            "exerciseLogs": {},
        }
        self.store.set_active_workout(session)
        logger.info("Workout started: %s (%s)", session["workoutName"], session["id"])
        return session

    def log_set(self, exercise_id: str, set_index: int, weight: float, reps: int) -> Dict[str, Any]:
        """
        Record a completed set at `set_index`, replacing whatever was there.

        Indices past the end are allowed (extra sets); skipped positions are
        filled with incomplete placeholders so the log stays positional.
        """
        if set_index < 0:
            raise WorkoutSessionError(f"Invalid set index {set_index}")

        session = copy.deepcopy(self._require_active())
        logs: List[Dict[str, Any]] = list(session["exerciseLogs"].get(exercise_id) or [])
        while len(logs) < set_index:
            logs.append({"weight": 0, "reps": 0, "completed": False})

        entry = {"weight": float(weight), "reps": int(reps), "completed": True}
        if set_index < len(logs):
            logs[set_index] = entry
        else:
            logs.append(entry)

        session["exerciseLogs"][exercise_id] = logs
        self.store.set_active_workout(session)
        return session

    def finish(self, feedback: str) -> Dict[str, Any]:
        if feedback not in FEEDBACK_TAGS:
            raise WorkoutSessionError(f"Feedback must be one of {', '.join(FEEDBACK_TAGS)}")

        finished = copy.deepcopy(self._require_active())
        finished["endTime"] = self._clock()
        finished["feedback"] = feedback
        self.store.archive_workout(finished)
        logger.info("Workout finished: %s (%s)", finished["workoutName"], feedback)
        return finished

    def cancel(self) -> None:
        session = self._require_active()
        self.store.set_active_workout(None)
        logger.info("Workout cancelled: %s", session.get("id"))

    def current_workout(self) -> Optional[Dict[str, Any]]:
        session = self.active
        if session is None:
            return None
        return find_workout(self.store.plan, session.get("workoutId"))

    def is_complete(self) -> bool:
        session = self.active
        workout = self.current_workout()
        if session is None or workout is None:
            return False
        return is_workout_complete(workout, session, self.language)

    def substitute_exercise(self, exercise_id: str, equipment: Optional[str] = None) -> Dict[str, Any]:
        """
        Replace an exercise everywhere in the schedule with a model-suggested alternative.

        The alternative keeps the original sets/reps/rest and gets a new id.
        """
        plan = self.store.plan
        schedule = ((plan or {}).get("workoutPlan") or {}).get("schedule") or []

        original, focus = None, ""
        for day in schedule:
            for exercise in (day.get("exercises") or []) if isinstance(day, dict) else []:
                if isinstance(exercise, dict) and exercise.get("id") == exercise_id:
                    original, focus = exercise, day.get("focus", "")
                    break
            if original is not None:
                break
        if original is None:
            raise WorkoutSessionError(f"Exercise {exercise_id} is not in the plan.")

        if equipment is None:
            profile_equipment = (self.store.profile or {}).get("equipment") or []
            equipment = ", ".join(profile_equipment) or DEFAULT_EQUIPMENT

        replacement = self._substitute(original, focus, equipment, self.language)

        updated = copy.deepcopy(plan)
        replaced = 0
        for day in updated["workoutPlan"]["schedule"]:
            if not isinstance(day, dict) or not isinstance(day.get("exercises"), list):
                continue
            for i, exercise in enumerate(day["exercises"]):
                if isinstance(exercise, dict) and exercise.get("id") == exercise_id:
                    day["exercises"][i] = copy.deepcopy(replacement)
                    replaced += 1

        self.store.save_plan(updated)
        logger.info(
            "Substituted '%s' with '%s' (%d occurrences)",
            original.get("name"), replacement.get("name"), replaced,
        )
        return replacement

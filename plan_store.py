"""
Durable per-user state: one JSON file per namespace.

Every namespace is read once when the store is created; every mutation is
written through immediately. A namespace that is missing or cannot be read
back falls back to its neutral default and is never reported as an error.
"""
from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import backend_client
from config import DATA_DIR
from errors import StorageCorrupt
from plan_migration import new_id, normalize_plan

logger = logging.getLogger(__name__)

PROFILE = "profile"
PLAN = "plan"
PROGRESS_ENTRIES = "progressEntries"
COMPLETED_MEALS = "completedMeals"
ACTIVE_WORKOUT = "activeWorkout"
WORKOUT_HISTORY = "workoutHistory"

# Namespace -> (default value, accepted JSON types)
NAMESPACES: Dict[str, tuple] = {
    PROFILE: (None, (dict,)),
    PLAN: (None, (dict,)),
    PROGRESS_ENTRIES: ([], (list,)),
    COMPLETED_MEALS: ({}, (dict,)),
    ACTIVE_WORKOUT: (None, (dict,)),
    WORKOUT_HISTORY: ([], (list,)),
}

Mirror = Callable[[str, Any], Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or timestamp into an aware datetime.

    Accepts the `Z` suffix written by JavaScript's `toISOString()`; naive
    values are taken as UTC. Returns None when `raw` is not a timestamp.
    """
    if not isinstance(raw, str) or not raw:
        return None
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _date_sort_key(entry: Dict[str, Any]) -> datetime:
    raw = entry.get("date") if isinstance(entry, dict) else None
    return parse_timestamp(raw) or datetime.min.replace(tzinfo=timezone.utc)


class PlanStore:
    """Write-through store for profile, plan, progress, meal log and workouts."""

    def __init__(
        self,
        data_dir: Path | str | None = None,
        mirror: Optional[Mirror] = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = new_id,
    ):
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        self._mirror = mirror
        self._clock = clock
        self._id_factory = id_factory
        self._state: Dict[str, Any] = {}
        self._load_all()

    @classmethod
    def from_env(cls, data_dir: Path | str | None = None) -> "PlanStore":
        """Build a store that mirrors writes to BACKEND_URL when it is configured."""
        mirror = backend_client.push_namespace if backend_client.is_configured() else None
        return cls(data_dir=data_dir, mirror=mirror)

    # ---------- raw namespace I/O ----------

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> Any:
        default, accepted = NAMESPACES[key]
        path = self._path(key)
        if not path.exists():
            return copy.deepcopy(default)
        try:
            with path.open("r", encoding="utf-8") as f:
                value = json.load(f)
        except (OSError, ValueError) as exc:
            raise StorageCorrupt(key, str(exc)) from exc
        if value is None:
            return copy.deepcopy(default)
        if not isinstance(value, accepted):
            raise StorageCorrupt(key, f"expected {accepted[0].__name__}, got {type(value).__name__}")
        return value

    def _load_all(self) -> None:
        for key, (default, _) in NAMESPACES.items():
            try:
                self._state[key] = self._read(key)
            except StorageCorrupt as exc:
                logger.warning("%s; using default", exc)
                self._state[key] = copy.deepcopy(default)

        plan = self._state[PLAN]
        if plan is not None:
            migrated = normalize_plan(plan)
            self._state[PLAN] = migrated
            if migrated != plan:
                self._write(PLAN)

    def _write(self, key: str) -> None:
        value = self._state[key]
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with self._path(key).open("w", encoding="utf-8") as f:
            json.dump(value, f, indent=2, ensure_ascii=False)
        if self._mirror is not None:
            self._mirror(key, value)

    # ---------- generic access (used by the sync backend) ----------

    def get(self, key: str) -> Any:
        if key not in NAMESPACES:
            raise KeyError(key)
        return self._state[key]

    def put(self, key: str, value: Any) -> None:
        if key not in NAMESPACES:
            raise KeyError(key)
        default, accepted = NAMESPACES[key]
        if value is not None and not isinstance(value, accepted):
            raise ValueError(f"'{key}' must be a {accepted[0].__name__}")
        if key == PLAN and value is not None:
            value = normalize_plan(value)
        self._state[key] = copy.deepcopy(default) if value is None else value
        self._write(key)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._state)

    def restore(self, namespaces: Dict[str, Any]) -> List[str]:
        """
        Replace local namespaces with values pulled from the backend.

        Values of the wrong type are skipped. Returns the restored keys.
        """
        mirror, self._mirror = self._mirror, None
        restored = []
        try:
            for key, value in namespaces.items():
                if key not in NAMESPACES:
                    continue
                try:
                    self.put(key, value)
                except ValueError as exc:
                    logger.warning("Skipping '%s' from backend: %s", key, exc)
                    continue
                restored.append(key)
        finally:
            self._mirror = mirror
        return restored

    # ---------- profile & plan ----------

    @property
    def profile(self) -> Optional[Dict[str, Any]]:
        return self._state[PROFILE]

    @property
    def plan(self) -> Optional[Dict[str, Any]]:
        return self._state[PLAN]

    def save_profile(self, profile: Dict[str, Any]) -> None:
        self._state[PROFILE] = profile
        self._write(PROFILE)

    def save_plan(self, plan: Dict[str, Any]) -> None:
        self._state[PLAN] = plan
        self._write(PLAN)

    def reset(self) -> None:
        """Forget profile and plan (re-onboarding). Tracking data is kept."""
        self._state[PROFILE] = None
        self._state[PLAN] = None
        self._write(PROFILE)
        self._write(PLAN)

    # ---------- progress ----------

    @property
    def progress_entries(self) -> List[Dict[str, Any]]:
        return self._state[PROGRESS_ENTRIES]

    def add_progress_entry(
        self,
        weight: Optional[float] = None,
        measurements: Optional[Dict[str, float]] = None,
        photo: Optional[str] = None,
        entry_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Append a progress entry and keep the collection sorted by date.

        `entry_date` defaults to now; pass an ISO date to backfill an older
        weigh-in.
        """
        entry: Dict[str, Any] = {
            "id": self._id_factory(),
            "date": entry_date or self._clock().isoformat(),
        }
        if weight is not None:
            entry["weight"] = weight
        if measurements:
            entry["measurements"] = dict(measurements)
        if photo:
            entry["photo"] = photo

        entries = self._state[PROGRESS_ENTRIES] + [entry]
        entries.sort(key=_date_sort_key)
        self._state[PROGRESS_ENTRIES] = entries
        self._write(PROGRESS_ENTRIES)
        return entry

    # ---------- meal log ----------

    @property
    def completed_meals(self) -> Dict[str, Dict[str, bool]]:
        return self._state[COMPLETED_MEALS]

    def toggle_meal_completion(self, date_str: str, meal_id: str) -> bool:
        """Flip the eaten flag of a meal on a date; returns the new value."""
        log = self._state[COMPLETED_MEALS]
        day_log = log.setdefault(date_str, {})
        day_log[meal_id] = not day_log.get(meal_id, False)
        self._write(COMPLETED_MEALS)
        return day_log[meal_id]

    # ---------- workouts ----------

    @property
    def active_workout(self) -> Optional[Dict[str, Any]]:
        return self._state[ACTIVE_WORKOUT]

    @property
    def workout_history(self) -> List[Dict[str, Any]]:
        return self._state[WORKOUT_HISTORY]

    def set_active_workout(self, session: Optional[Dict[str, Any]]) -> None:
        self._state[ACTIVE_WORKOUT] = session
        self._write(ACTIVE_WORKOUT)

    def archive_workout(self, finished: Dict[str, Any]) -> None:
        """Prepend a finished session to history and clear the active slot."""
        self._state[WORKOUT_HISTORY] = [finished] + self._state[WORKOUT_HISTORY]
        self._write(WORKOUT_HISTORY)
        self._state[ACTIVE_WORKOUT] = None
        self._write(ACTIVE_WORKOUT)

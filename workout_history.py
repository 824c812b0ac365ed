from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

RECENT_SESSIONS_LIMIT = 5
COLUMNS = ["date", "session_id", "exercise_id", "exercise", "set_number", "weight", "reps"]


def _safe_mean(series: pd.Series):
    series = series.dropna()
    if series.empty:
        return None
    return float(series.mean())


def _safe_max(series: pd.Series):
    series = series.dropna()
    if series.empty:
        return None
    return float(series.max())


def _exercise_names(plan: Optional[Dict[str, Any]]) -> Dict[str, str]:
    names: Dict[str, str] = {}
    schedule = ((plan or {}).get("workoutPlan") or {}).get("schedule") or []
    for day in schedule:
        if not isinstance(day, dict):
            continue
        for exercise in day.get("exercises") or []:
            if isinstance(exercise, dict) and exercise.get("id"):
                names[exercise["id"]] = exercise.get("name", "")
    return names


def history_to_frame(
    history: List[Dict[str, Any]], plan: Optional[Dict[str, Any]] = None
) -> pd.DataFrame:
    """
    Flatten finished sessions into one row per completed set.

    Exercises no longer in the plan (e.g. substituted since) keep their id as name.
    """
    names = _exercise_names(plan)
    rows = []
    for session in history or []:
        start = session.get("startTime")
        if start is None:
            continue
        day = datetime.fromtimestamp(start / 1000, tz=timezone.utc).date().isoformat()
        for exercise_id, sets in (session.get("exerciseLogs") or {}).items():
            for index, entry in enumerate(sets or []):
                if not entry or not entry.get("completed"):
                    continue
                rows.append(
                    {
                        "date": day,
                        "session_id": session.get("id"),
                        "exercise_id": exercise_id,
                        "exercise": names.get(exercise_id, exercise_id),
                        "set_number": index + 1,
                        "weight": entry.get("weight"),
                        "reps": entry.get("reps"),
                    }
                )
    return pd.DataFrame(rows, columns=COLUMNS)


def _summarise_exercise(ex_df: pd.DataFrame) -> Dict[str, Any]:
    ex_df = ex_df.copy()
    ex_df["weight"] = pd.to_numeric(ex_df["weight"], errors="coerce")
    ex_df["reps"] = pd.to_numeric(ex_df["reps"], errors="coerce")

    max_reps = _safe_max(ex_df["reps"])
    overall = {
        "avg_weight": _safe_mean(ex_df["weight"]),
        "avg_reps": _safe_mean(ex_df["reps"]),
        "max_weight": _safe_max(ex_df["weight"]),
        "max_reps": int(max_reps) if max_reps is not None else None,
    }

    session_rows = []
    for (date_str, session_id), day_df in ex_df.groupby(["date", "session_id"], sort=False):
        top_weight = _safe_max(day_df["weight"])
        top_reps = None
        if top_weight is not None:
            top_row = day_df[day_df["weight"] == top_weight].iloc[-1]
            top_reps = int(top_row["reps"]) if not pd.isna(top_row["reps"]) else None
        session_rows.append(
            {
                "date": date_str,
                "session_id": session_id,
                "sets": int(len(day_df)),
                "avg_weight": _safe_mean(day_df["weight"]),
                "avg_reps": _safe_mean(day_df["reps"]),
                "top_set": {"weight": top_weight, "reps": top_reps},
            }
        )

    session_rows.sort(key=lambda s: s["date"], reverse=True)

    return {
        "total_sessions": int(ex_df["session_id"].nunique()),
        "total_sets": int(len(ex_df)),
        "last_session_date": ex_df["date"].max(),
        "overall": overall,
        "recent_sessions": session_rows[:RECENT_SESSIONS_LIMIT],
    }


def summarise_workout_history(
    history: List[Dict[str, Any]], plan: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Per-exercise statistics over every finished workout session."""
    summary: Dict[str, Any] = {
        "summary_generated_at": datetime.now(timezone.utc).isoformat(),
        "total_workouts": len(history or []),
        "exercises": {},
    }

    df = history_to_frame(history, plan)
    if df.empty:
        return summary

    exercises: Dict[str, Any] = {}
    for exercise_name, ex_df in df.groupby("exercise"):
        exercises[str(exercise_name)] = _summarise_exercise(ex_df)

    summary["exercises"] = exercises
    return summary


def main(argv: list[str] | None = None) -> None:
    from plan_store import PlanStore

    args = sys.argv[1:] if argv is None else argv
    store = PlanStore(data_dir=args[0] if args else None)
    history = summarise_workout_history(store.workout_history, store.plan)
    print(json.dumps(history, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd

from locales import weekday_name
from plan_store import parse_timestamp

WEIGH_IN_INTERVAL_DAYS = 7


def _entry_day(entry: Dict[str, Any]) -> Optional[date]:
    parsed = parse_timestamp(entry.get("date"))
    return parsed.date() if parsed else None


def weigh_in_status(entries: List[Dict[str, Any]], today: Optional[date] = None) -> Dict[str, Any]:
    """
    How long since the last progress entry and whether a new one is due.

    With no entries at all a weigh-in is due immediately.
    """
    today = today or date.today()
    days = [d for d in (_entry_day(e) for e in entries or []) if d is not None]
    if not days:
        return {"last_entry": None, "days_since": None, "due": True, "next_due": today.isoformat()}

    last = max(days)
    days_since = (today - last).days
    return {
        "last_entry": last.isoformat(),
        "days_since": days_since,
        "due": days_since >= WEIGH_IN_INTERVAL_DAYS,
        "next_due": (last + timedelta(days=WEIGH_IN_INTERVAL_DAYS)).isoformat(),
    }


def weight_series(entries: List[Dict[str, Any]]) -> pd.Series:
    """Recorded body weights indexed by entry timestamp, oldest first."""
    rows = [
        (e.get("date"), e.get("weight"))
        for e in entries or []
        if isinstance(e.get("weight"), (int, float)) and e.get("weight") > 0
    ]
    if not rows:
        return pd.Series(dtype="float64", name="weight")

    dates = pd.to_datetime([r[0] for r in rows], errors="coerce", utc=True, format="ISO8601")
    series = pd.Series([float(r[1]) for r in rows], index=dates, name="weight")
    return series[series.index.notna()].sort_index()


def _plan_day(plan: Optional[Dict[str, Any]], section: str, items: str, day_label: str):
    days = ((plan or {}).get(section) or {}).get(items) or []
    wanted = day_label.lower()
    return next(
        (d for d in days if isinstance(d, dict) and str(d.get("day", "")).lower() == wanted),
        None,
    )


def todays_nutrition(
    plan: Optional[Dict[str, Any]], language: str, today: Optional[date] = None
) -> Optional[Dict[str, Any]]:
    today = today or date.today()
    return _plan_day(plan, "nutritionPlan", "dailyPlans", weekday_name(today.weekday(), language))


def meal_totals_for_date(
    plan: Optional[Dict[str, Any]],
    completed_meals: Dict[str, Dict[str, bool]],
    day: date,
    language: str,
) -> Dict[str, Any]:
    """Calories and protein eaten on `day` against that weekday's targets."""
    nutrition_day = todays_nutrition(plan, language, today=day) or {}
    eaten_ids = {
        meal_id for meal_id, done in (completed_meals.get(day.isoformat()) or {}).items() if done
    }
    meals = [m for m in nutrition_day.get("meals") or [] if isinstance(m, dict)]
    eaten = [m for m in meals if m.get("id") in eaten_ids]

    return {
        "date": day.isoformat(),
        "day": nutrition_day.get("day"),
        "meals_total": len(meals),
        "meals_eaten": len(eaten),
        "calories_eaten": sum(m.get("calories") or 0 for m in eaten),
        "protein_eaten": sum(m.get("protein") or 0 for m in eaten),
        "calories_target": nutrition_day.get("totalCalories"),
        "protein_target": nutrition_day.get("totalProtein"),
    }

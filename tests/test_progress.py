"""
Tests for weigh-in cadence and daily meal totals.
"""
from datetime import date

from progress import meal_totals_for_date, todays_nutrition, weigh_in_status, weight_series


class TestWeighInStatus:
    def test_no_entries_is_due(self):
        status = weigh_in_status([], today=date(2024, 3, 10))
        assert status == {"last_entry": None, "days_since": None, "due": True, "next_due": "2024-03-10"}

    def test_recent_entry_is_not_due(self):
        entries = [{"date": "2024-03-05T08:00:00+00:00", "weight": 70}]
        status = weigh_in_status(entries, today=date(2024, 3, 10))

        assert status["days_since"] == 5
        assert status["due"] is False
        assert status["next_due"] == "2024-03-12"

    def test_week_old_entry_is_due(self):
        entries = [
            {"date": "2024-02-20T08:00:00+00:00", "weight": 71},
            {"date": "2024-03-03T08:00:00+00:00", "weight": 70},
        ]
        status = weigh_in_status(entries, today=date(2024, 3, 10))

        assert status["last_entry"] == "2024-03-03"
        assert status["due"] is True

    def test_unparseable_dates_are_ignored(self):
        status = weigh_in_status([{"date": "yesterday"}], today=date(2024, 3, 10))
        assert status["due"] is True
        assert status["last_entry"] is None

    def test_z_suffixed_dates(self):
        entries = [
            {"date": "2024-02-20T08:00:00.000Z", "weight": 71},
            {"date": "2024-03-05T08:00:00.000Z", "weight": 70},
        ]
        status = weigh_in_status(entries, today=date(2024, 3, 10))

        assert status["last_entry"] == "2024-03-05"
        assert status["days_since"] == 5
        assert status["due"] is False


class TestWeightSeries:
    def test_series_sorted_and_filtered(self):
        entries = [
            {"date": "2024-03-03T08:00:00+00:00", "weight": 70},
            {"date": "2024-02-20T08:00:00+00:00", "weight": 71.5},
            {"date": "2024-02-25T08:00:00+00:00", "measurements": {"waist": 80}},
        ]

        series = weight_series(entries)

        assert list(series.values) == [71.5, 70.0]
        assert series.name == "weight"

    def test_empty(self):
        assert weight_series([]).empty


class TestMealTotals:
    """2024-01-01 is a Monday."""

    def test_totals_for_eaten_meals(self, sample_plan):
        completed = {"2024-01-01": {"meal-mon-1": True, "meal-mon-2": False}}

        totals = meal_totals_for_date(sample_plan, completed, date(2024, 1, 1), "en")

        assert totals == {
            "date": "2024-01-01",
            "day": "Monday",
            "meals_total": 2,
            "meals_eaten": 1,
            "calories_eaten": 550,
            "protein_eaten": 45,
            "calories_target": 2200,
            "protein_target": 160,
        }

    def test_day_without_plan(self, sample_plan):
        totals = meal_totals_for_date(sample_plan, {}, date(2024, 1, 7), "en")
        assert totals["meals_total"] == 0
        assert totals["calories_target"] is None

    def test_todays_nutrition_by_language(self, sample_plan):
        sample_plan["nutritionPlan"]["dailyPlans"][1]["day"] = "Martes"
        assert todays_nutrition(sample_plan, "es", today=date(2024, 1, 2))["totalCalories"] == 2100
        assert todays_nutrition(sample_plan, "en", today=date(2024, 1, 2)) is None

"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import date

from nutriscan.domain.meals import MacroBreakdown


@dataclass(frozen=True)
class MealAggregate:
    """Count, calorie and macro totals for a set of meals."""

    count: int
    total_calories: float
    average_calories: int
    totals_by_macro: MacroBreakdown


@dataclass(frozen=True)
class PeriodComparison:
    """Percentage change per metric between two periods."""

    meals_change: int
    calories_change: int
    average_calories_change: int
    protein_change: int
    carbs_change: int
    fat_change: int


@dataclass(frozen=True)
class WeeklyReport:
    """Rolling week totals against the week before."""

    current: MealAggregate
    previous: MealAggregate
    comparison: PeriodComparison


@dataclass(frozen=True)
class MonthlyStats:
    """Totals for a calendar month."""

    total_meals: int
    total_calories: float
    average_calories: int
    days_with_meals: int


@dataclass(frozen=True)
class CalendarDay:
    """Meal count and calories for a single day."""

    day: date
    meal_count: int
    total_calories: float

"""Statistics over saved meals."""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from nutriscan.domain.meals import MacroBreakdown, MealRecord
from nutriscan.domain.stats import (
    CalendarDay,
    MealAggregate,
    MonthlyStats,
    PeriodComparison,
    WeeklyReport,
)
from nutriscan.services.energy import round_half_up

DECEMBER = 12
WEEK_DAYS = 7


class StatsRepository(Protocol):
    """Read access to meals for statistics."""

    def list_meals_between(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meals created in ``[start, end)``."""

    def list_all_meals(self, user_id: UUID) -> list[MealRecord]:
        """Return every meal for a user."""


@dataclass
class StatsService:
    """Service for computing user stats by timezone."""

    repository: StatsRepository

    def get_today(self, user_id: UUID, timezone_name: str) -> MealAggregate:
        """Return today's meal count and calories in the user's timezone."""
        tz = ZoneInfo(timezone_name)
        start = _local_midnight(datetime.now(tz=tz))
        end = start + timedelta(days=1)
        meals = self._load(user_id, start, end)
        return aggregate(meals, start, end)

    def get_week(self, user_id: UUID, timezone_name: str) -> WeeklyReport:
        """Return the last seven local days compared with the seven before."""
        tz = ZoneInfo(timezone_name)
        end = _local_midnight(datetime.now(tz=tz)) + timedelta(days=1)
        current_start = end - timedelta(days=WEEK_DAYS)
        previous_start = current_start - timedelta(days=WEEK_DAYS)
        meals = self._load(user_id, previous_start, end)
        current = aggregate(meals, current_start, end)
        previous = aggregate(meals, previous_start, current_start)
        return WeeklyReport(
            current=current,
            previous=previous,
            comparison=compare_periods(current, previous),
        )

    def get_month(
        self, user_id: UUID, timezone_name: str, year: int, month: int
    ) -> MonthlyStats:
        """Return totals for a calendar month."""
        tz = ZoneInfo(timezone_name)
        start, end = _month_bounds(year, month, tz)
        meals = self._load(user_id, start, end)
        summary = aggregate(meals, start, end)
        return MonthlyStats(
            total_meals=summary.count,
            total_calories=summary.total_calories,
            average_calories=summary.average_calories,
            days_with_meals=len(group_by_day(meals, tz)),
        )

    def get_calendar(
        self, user_id: UUID, timezone_name: str, year: int, month: int
    ) -> list[CalendarDay]:
        """Return meal counts and calories for every day of a month."""
        tz = ZoneInfo(timezone_name)
        start, end = _month_bounds(year, month, tz)
        groups = group_by_day(self._load(user_id, start, end), tz)
        days = []
        for offset in range(calendar.monthrange(year, month)[1]):
            day = start.date() + timedelta(days=offset)
            meals = groups.get(day, [])
            days.append(
                CalendarDay(
                    day=day,
                    meal_count=len(meals),
                    total_calories=sum(meal.calories for meal in meals),
                )
            )
        return days

    def get_overview(self, user_id: UUID) -> MealAggregate:
        """Return all-time totals."""
        return summarize(self.repository.list_all_meals(user_id))

    def _load(self, user_id: UUID, start: datetime, end: datetime) -> list[MealRecord]:
        return self.repository.list_meals_between(
            user_id, start.astimezone(UTC), end.astimezone(UTC)
        )


def aggregate(
    meals: Iterable[MealRecord], start: datetime, end: datetime
) -> MealAggregate:
    """Reduce meals created in ``[start, end)`` to totals and an average."""
    return summarize(meal for meal in meals if start <= meal.created_at < end)


def summarize(meals: Iterable[MealRecord]) -> MealAggregate:
    """Reduce meals to a count, calorie totals and macro totals."""
    count = 0
    total_calories = 0.0
    protein = carbs = fat = fiber = sugar = 0.0
    for meal in meals:
        count += 1
        total_calories += meal.calories
        protein += meal.macros.protein
        carbs += meal.macros.carbs
        fat += meal.macros.fat
        fiber += meal.macros.fiber
        sugar += meal.macros.sugar
    average = round_half_up(total_calories / count) if count else 0
    return MealAggregate(
        count=count,
        total_calories=total_calories,
        average_calories=average,
        totals_by_macro=MacroBreakdown(
            protein=protein, carbs=carbs, fat=fat, fiber=fiber, sugar=sugar
        ),
    )


def group_by_day(
    meals: Iterable[MealRecord], tz: ZoneInfo
) -> dict[date, list[MealRecord]]:
    """Group meals by local calendar date, keeping input order per day."""
    groups: dict[date, list[MealRecord]] = {}
    for meal in meals:
        day = meal.created_at.astimezone(tz).date()
        groups.setdefault(day, []).append(meal)
    return groups


def percentage_change(current: float, previous: float) -> int:
    """Return the rounded percentage change, or 0 when there is no baseline."""
    if previous == 0:
        return 0
    return round_half_up((current - previous) / previous * 100)


def compare_periods(
    current: MealAggregate, previous: MealAggregate
) -> PeriodComparison:
    """Compare two aggregates metric by metric."""
    return PeriodComparison(
        meals_change=percentage_change(current.count, previous.count),
        calories_change=percentage_change(
            current.total_calories, previous.total_calories
        ),
        average_calories_change=percentage_change(
            current.average_calories, previous.average_calories
        ),
        protein_change=percentage_change(
            current.totals_by_macro.protein, previous.totals_by_macro.protein
        ),
        carbs_change=percentage_change(
            current.totals_by_macro.carbs, previous.totals_by_macro.carbs
        ),
        fat_change=percentage_change(
            current.totals_by_macro.fat, previous.totals_by_macro.fat
        ),
    )


def _local_midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _month_bounds(year: int, month: int, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1, tzinfo=tz)
    if month == DECEMBER:
        end = start.replace(year=year + 1, month=1)
    else:
        end = start.replace(month=month + 1)
    return start, end

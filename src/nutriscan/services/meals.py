"""Meal history service."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutriscan.domain.analysis import FoodAnalysis
from nutriscan.domain.meals import MacroBreakdown, MealRecord

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for saved meals."""

    def create_meal(  # noqa: PLR0913
        self,
        user_id: UUID,
        food_name: str,
        calories: float,
        macros: MacroBreakdown,
        recommendations: list[str],
        image_url: str | None,
        created_at: datetime,
    ) -> UUID:
        """Store a meal and return its id."""

    def list_meals(self, user_id: UUID) -> list[MealRecord]:
        """Return a user's meals, newest first."""

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        """Return a single meal owned by the user."""

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> bool:
        """Delete a meal and report whether it existed."""


@dataclass
class MealService:
    """Service that saves analysed meals and reads history."""

    repository: MealRepository

    def save_meal(
        self, user_id: UUID, analysis: FoodAnalysis, image_url: str | None = None
    ) -> MealRecord:
        """Persist an analysis result as a new meal."""
        macros = MacroBreakdown(
            protein=analysis.macros.protein,
            carbs=analysis.macros.carbs,
            fat=analysis.macros.fat,
            fiber=analysis.macros.fiber,
            sugar=analysis.macros.sugar,
        )
        created_at = datetime.now(tz=UTC)
        meal_id = self.repository.create_meal(
            user_id=user_id,
            food_name=analysis.food_name,
            calories=analysis.calories,
            macros=macros,
            recommendations=list(analysis.recommendations),
            image_url=image_url,
            created_at=created_at,
        )
        _logger.info("Saved meal %s for user %s", meal_id, user_id)
        return MealRecord(
            id=meal_id,
            user_id=user_id,
            food_name=analysis.food_name,
            calories=analysis.calories,
            macros=macros,
            created_at=created_at,
            recommendations=list(analysis.recommendations),
            image_url=image_url,
        )

    def list_meals(self, user_id: UUID) -> list[MealRecord]:
        """Return meal history, newest first."""
        return sorted(
            self.repository.list_meals(user_id),
            key=lambda meal: meal.created_at,
            reverse=True,
        )

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        """Return a meal if it belongs to the user."""
        return self.repository.get_meal(user_id, meal_id)

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> bool:
        """Delete a meal owned by the user."""
        return self.repository.delete_meal(user_id, meal_id)

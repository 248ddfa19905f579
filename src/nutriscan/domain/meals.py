"""Domain models for saved meals."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class MacroBreakdown:
    """Macronutrients in grams."""

    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0


@dataclass(frozen=True)
class MealRecord:
    """A meal saved to a user's history.

    Created once at save time and never mutated; removal is explicit.
    """

    id: UUID
    user_id: UUID
    food_name: str
    calories: float
    macros: MacroBreakdown
    created_at: datetime
    recommendations: list[str] = field(default_factory=list)
    image_url: str | None = None

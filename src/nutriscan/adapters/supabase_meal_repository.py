"""Supabase repository for saved meals."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutriscan.domain.meals import MacroBreakdown, MealRecord
from nutriscan.services.meals import MealRepository

MEAL_COLUMNS = (
    "id, user_id, food_name, calories, protein_g, carbs_g, fat_g, fiber_g, "
    "sugar_g, recommendations, image_url, created_at"
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meal history."""

    client: Client

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
        """Insert a meal row and return its id."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "user_id": str(user_id),
                    "food_name": food_name,
                    "calories": calories,
                    "protein_g": macros.protein,
                    "carbs_g": macros.carbs,
                    "fat_g": macros.fat,
                    "fiber_g": macros.fiber,
                    "sugar_g": macros.sugar,
                    "recommendations": recommendations,
                    "image_url": image_url,
                    "created_at": created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return UUID(response.data[0]["id"])

    def list_meals(self, user_id: UUID) -> list[MealRecord]:
        """Return a user's meals, newest first."""
        response = (
            self.client.table("meals")
            .select(MEAL_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [parse_meal_row(row) for row in response.data or []]

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        """Return a meal by id if it belongs to the user."""
        response = (
            self.client.table("meals")
            .select(MEAL_COLUMNS)
            .eq("id", str(meal_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_meal_row(response.data[0])

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> bool:
        """Delete a meal row and report whether one was removed."""
        response = (
            self.client.table("meals")
            .delete()
            .eq("id", str(meal_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        return bool(response.data)


def parse_meal_row(row: dict[str, object]) -> MealRecord:
    """Build a meal record from a ``meals`` row."""
    created_at_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_at_raw)
        if isinstance(created_at_raw, str) and created_at_raw
        else datetime.min.replace(tzinfo=UTC)
    )
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    recommendations = row.get("recommendations")
    image_url = row.get("image_url")
    return MealRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        food_name=str(row.get("food_name") or ""),
        calories=_to_float(row.get("calories")),
        macros=MacroBreakdown(
            protein=_to_float(row.get("protein_g")),
            carbs=_to_float(row.get("carbs_g")),
            fat=_to_float(row.get("fat_g")),
            fiber=_to_float(row.get("fiber_g")),
            sugar=_to_float(row.get("sugar_g")),
        ),
        created_at=created_at,
        recommendations=(
            [str(item) for item in recommendations]
            if isinstance(recommendations, list)
            else []
        ),
        image_url=image_url if isinstance(image_url, str) else None,
    )


def _to_float(value: object) -> float:
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0

"""Tests for the meal history service."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from nutriscan.domain.analysis import AnalysisMacros, FoodAnalysis
from nutriscan.services.meals import MealService
from tests.conftest import InMemoryMealRepository, make_meal


def _analysis() -> FoodAnalysis:
    return FoodAnalysis(
        food_name="Greek yogurt bowl",
        calories=280,
        macros=AnalysisMacros(protein=20, carbs=30, fat=8, fiber=3, sugar=18),
        recommendations=["Swap honey for fresh fruit"],
    )


def test_save_meal_persists_analysis() -> None:
    repo = InMemoryMealRepository()
    service = MealService(repo)
    user_id = uuid4()

    meal = service.save_meal(user_id, _analysis(), image_url="https://cdn/meal.jpg")

    stored = repo.meals[meal.id]
    assert stored.food_name == "Greek yogurt bowl"
    assert stored.calories == 280
    assert stored.macros.sugar == 18
    assert stored.recommendations == ["Swap honey for fresh fruit"]
    assert stored.image_url == "https://cdn/meal.jpg"
    assert meal.created_at.tzinfo is not None


def test_list_meals_is_newest_first() -> None:
    repo = InMemoryMealRepository()
    user_id = uuid4()
    now = datetime.now(tz=UTC)
    older = repo.add(make_meal(user_id, now - timedelta(hours=5), food_name="Eggs"))
    newer = repo.add(make_meal(user_id, now, food_name="Soup"))

    meals = MealService(repo).list_meals(user_id)

    assert [meal.id for meal in meals] == [newer.id, older.id]


def test_get_and_delete_are_scoped_to_owner() -> None:
    repo = InMemoryMealRepository()
    service = MealService(repo)
    owner = uuid4()
    meal = repo.add(make_meal(owner, datetime.now(tz=UTC)))

    assert service.get_meal(uuid4(), meal.id) is None
    assert service.delete_meal(uuid4(), meal.id) is False
    assert service.get_meal(owner, meal.id) == meal
    assert service.delete_meal(owner, meal.id) is True
    assert service.get_meal(owner, meal.id) is None

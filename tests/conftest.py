"""Shared test fixtures."""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from nutriscan.api.app import create_app
from nutriscan.config import Settings
from nutriscan.containers import AppContainer
from nutriscan.domain.auth import AuthSession
from nutriscan.domain.errors import AuthenticationError
from nutriscan.domain.meals import MacroBreakdown, MealRecord
from nutriscan.domain.profile import UserProfile
from nutriscan.services.analysis import AnalysisClient, FoodAnalysisService
from nutriscan.services.auth import AuthProvider, AuthService
from nutriscan.services.cache import InMemoryCache
from nutriscan.services.calories import CalorieTrackerService
from nutriscan.services.meals import MealRepository, MealService
from nutriscan.services.profiles import ProfileRepository, ProfileService
from nutriscan.services.stats import StatsRepository, StatsService

TEST_TOKEN = "test-access-token"


@dataclass
class InMemoryMealRepository(MealRepository, StatsRepository):
    """In-memory meal store serving both history and stats queries."""

    meals: dict[UUID, MealRecord] = field(default_factory=dict)

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
        meal_id = uuid4()
        self.meals[meal_id] = MealRecord(
            id=meal_id,
            user_id=user_id,
            food_name=food_name,
            calories=calories,
            macros=macros,
            created_at=created_at,
            recommendations=recommendations,
            image_url=image_url,
        )
        return meal_id

    def add(self, meal: MealRecord) -> MealRecord:
        self.meals[meal.id] = meal
        return meal

    def list_meals(self, user_id: UUID) -> list[MealRecord]:
        return sorted(
            (meal for meal in self.meals.values() if meal.user_id == user_id),
            key=lambda meal: meal.created_at,
            reverse=True,
        )

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_id != user_id:
            return None
        return meal

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> bool:
        if self.get_meal(user_id, meal_id) is None:
            return False
        del self.meals[meal_id]
        return True

    def list_meals_between(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[MealRecord]:
        return [
            meal
            for meal in self.list_meals(user_id)
            if start <= meal.created_at < end
        ]

    def list_all_meals(self, user_id: UUID) -> list[MealRecord]:
        return self.list_meals(user_id)


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)

    def set_profile(
        self, user_id: UUID, fields: dict[str, object], *, merge: bool
    ) -> None:
        current = self.profiles.get(user_id)
        if merge and current is not None:
            self.profiles[user_id] = replace(current, **fields)
        else:
            self.profiles[user_id] = UserProfile(user_id=user_id, **fields)


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake model client returning queued raw responses."""

    responses: list[str] = field(
        default_factory=lambda: [
            json.dumps(
                {
                    "foodName": "Chicken salad",
                    "calories": 420,
                    "macros": {
                        "protein": 35,
                        "carbs": 18,
                        "fat": 22,
                        "fiber": 6,
                        "sugar": 5,
                    },
                    "recommendations": ["Add whole grains", "Use less dressing"],
                }
            )
        ]
    )
    failures: int = 0
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image_data_url: str | None,
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "image_data_url": image_data_url,
                "schema_name": schema_name,
            }
        )
        if self.failures:
            self.failures -= 1
            raise RuntimeError("model unavailable")
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


@dataclass
class FakeAuthProvider(AuthProvider):
    """Identity provider keeping accounts and tokens in memory."""

    accounts: dict[str, tuple[UUID, str]] = field(default_factory=dict)
    tokens: dict[str, AuthSession] = field(default_factory=dict)
    revoked: list[str] = field(default_factory=list)

    def register(self, email: str, password: str, token: str) -> AuthSession:
        user_id = uuid4()
        self.accounts[email] = (user_id, password)
        session = AuthSession(user_id=user_id, email=email, access_token=token)
        self.tokens[token] = session
        return session

    def sign_in(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email)
        if account is None or account[1] != password:
            raise AuthenticationError("Invalid login credentials")
        session = AuthSession(
            user_id=account[0], email=email, access_token=f"token-{uuid4()}"
        )
        self.tokens[session.access_token] = session
        return session

    def sign_up(self, email: str, password: str) -> AuthSession:
        if email in self.accounts:
            raise AuthenticationError("User already registered")
        return self.register(email, password, f"token-{uuid4()}")

    def provider_sign_in_url(self, provider: str, redirect_to: str | None) -> str:
        return f"https://auth.example.com/authorize?provider={provider}"

    def sign_out(self, access_token: str) -> None:
        self.revoked.append(access_token)
        self.tokens.pop(access_token, None)

    def get_session(self, access_token: str) -> AuthSession | None:
        return self.tokens.get(access_token)


def make_meal(  # noqa: PLR0913
    user_id: UUID,
    created_at: datetime,
    calories: float = 500,
    protein: float = 30,
    carbs: float = 50,
    fat: float = 15,
    food_name: str = "Pasta",
) -> MealRecord:
    return MealRecord(
        id=uuid4(),
        user_id=user_id,
        food_name=food_name,
        calories=calories,
        macros=MacroBreakdown(protein=protein, carbs=carbs, fat=fat, fiber=4, sugar=6),
        created_at=created_at,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon.test.key",
        supabase_service_key="service.test.key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def session(auth_provider: FakeAuthProvider) -> AuthSession:
    return auth_provider.register("ana@example.com", "secret-pass", TEST_TOKEN)


@pytest.fixture
def container(
    settings: Settings,
    meal_repository: InMemoryMealRepository,
    profile_repository: InMemoryProfileRepository,
    analysis_client: FakeAnalysisClient,
    auth_provider: FakeAuthProvider,
) -> AppContainer:
    profile_service = ProfileService(profile_repository)
    stats_service = StatsService(meal_repository)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        auth_service=AuthService(auth_provider),
        profile_service=profile_service,
        meal_service=MealService(meal_repository),
        stats_service=stats_service,
        calorie_tracker_service=CalorieTrackerService(
            profile_service=profile_service,
            stats_service=stats_service,
            calorie_floor=settings.daily_calorie_floor,
        ),
        analysis_service=FoodAnalysisService(
            client=analysis_client,
            cache=InMemoryCache(),
            model=settings.openai_model,
            reasoning_effort=settings.openai_reasoning_effort,
            store=settings.openai_store,
            retry_delay_seconds=0,
        ),
        close_resources=close_resources,
    )


@pytest.fixture
def client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


@pytest.fixture
def auth_headers(session: AuthSession) -> dict[str, str]:
    return {"Authorization": f"Bearer {session.access_token}"}

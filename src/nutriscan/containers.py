"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, ClientOptions, create_client

from nutriscan.adapters.openai_analysis_client import OpenAIAnalysisClient
from nutriscan.adapters.supabase_auth_provider import SupabaseAuthProvider
from nutriscan.adapters.supabase_meal_repository import SupabaseMealRepository
from nutriscan.adapters.supabase_profile_repository import SupabaseProfileRepository
from nutriscan.adapters.supabase_stats_repository import SupabaseStatsRepository
from nutriscan.config import Settings
from nutriscan.services.analysis import FoodAnalysisService
from nutriscan.services.auth import AuthService
from nutriscan.services.cache import InMemoryCache
from nutriscan.services.calories import CalorieTrackerService
from nutriscan.services.meals import MealService
from nutriscan.services.profiles import ProfileService
from nutriscan.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    profile_service: ProfileService
    meal_service: MealService
    stats_service: StatsService
    calorie_tracker_service: CalorieTrackerService
    analysis_service: FoodAnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    data_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )

    def auth_client_factory() -> Client:
        return create_client(
            resolved_settings.supabase_url,
            resolved_settings.supabase_anon_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    profile_service = ProfileService(SupabaseProfileRepository(data_client))
    meal_service = MealService(SupabaseMealRepository(data_client))
    stats_service = StatsService(SupabaseStatsRepository(data_client))
    calorie_tracker_service = CalorieTrackerService(
        profile_service=profile_service,
        stats_service=stats_service,
        calorie_floor=resolved_settings.daily_calorie_floor,
    )
    openai_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    analysis_service = FoodAnalysisService(
        client=openai_client,
        cache=InMemoryCache(),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    auth_service = AuthService(
        SupabaseAuthProvider(
            client=auth_client_factory(), session_client_factory=auth_client_factory
        )
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        auth_service=auth_service,
        profile_service=profile_service,
        meal_service=meal_service,
        stats_service=stats_service,
        calorie_tracker_service=calorie_tracker_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )

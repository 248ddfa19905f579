"""Daily calorie goal tracking."""

from dataclasses import dataclass
from uuid import UUID

from nutriscan.domain.energy import CalorieStatus, EnergyPlan
from nutriscan.domain.errors import IncompleteProfileError
from nutriscan.services.energy import REQUIRED_FIELDS, compute_energy_plan
from nutriscan.services.profiles import ProfileService
from nutriscan.services.stats import StatsService


@dataclass
class CalorieTrackerService:
    """Combines the profile energy plan with today's intake."""

    profile_service: ProfileService
    stats_service: StatsService
    calorie_floor: int = 0

    def get_plan(self, user_id: UUID) -> EnergyPlan:
        """Return the energy plan for the user's stored profile."""
        profile = self.profile_service.get_profile(user_id)
        if profile is None:
            raise IncompleteProfileError(list(REQUIRED_FIELDS))
        return compute_energy_plan(profile, calorie_floor=self.calorie_floor)

    def get_status(self, user_id: UUID) -> CalorieStatus:
        """Return today's goal, consumption and remaining calories."""
        plan = self.get_plan(user_id)
        timezone_name = self.profile_service.get_timezone(user_id)
        today = self.stats_service.get_today(user_id, timezone_name)
        consumed = today.total_calories
        return CalorieStatus(
            daily_goal=plan.daily_calories,
            consumed=consumed,
            remaining=max(0.0, plan.daily_calories - consumed),
            bmr=plan.bmr,
            tdee=plan.tdee,
            macros=plan.macros,
            explanation=plan.explanation,
        )

"""Domain models for user profiles."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class Gender(StrEnum):
    """Gender used to pick the BMR offset."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(StrEnum):
    """Daily activity level."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class FitnessGoal(StrEnum):
    """Body composition goal."""

    BULKING = "bulking"
    SHEDDING = "shedding"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class UserProfile:
    """Biometric profile and preferences stored per user.

    Fields are optional because onboarding can leave a profile partially
    filled; calculations reject incomplete profiles instead of guessing.
    """

    user_id: UUID
    age: int | None = None
    gender: str | None = None
    weight: float | None = None
    height: float | None = None
    activity_level: str | None = None
    fitness_goal: str | None = None
    display_name: str | None = None
    timezone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

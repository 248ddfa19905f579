"""User profile service."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nutriscan.domain.errors import InvalidDomainValueError
from nutriscan.domain.profile import UserProfile

KG_PER_POUND = 0.453592
CM_PER_INCH = 2.54
DEFAULT_TIMEZONE = "UTC"

PROFILE_FIELDS = (
    "age",
    "gender",
    "weight",
    "height",
    "activity_level",
    "fitness_goal",
    "display_name",
    "timezone",
)


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the stored profile, if any."""

    def set_profile(
        self, user_id: UUID, fields: dict[str, object], *, merge: bool
    ) -> None:
        """Write profile fields, replacing the document unless ``merge``."""


@dataclass(frozen=True)
class ProfileInput:
    """Profile data as submitted from onboarding, in the user's units."""

    age: int | None = None
    gender: str | None = None
    weight: float | None = None
    weight_unit: str = "kg"
    height: float | None = None
    height_unit: str = "cm"
    activity_level: str | None = None
    fitness_goal: str | None = None
    display_name: str | None = None
    timezone: str | None = None


@dataclass
class ProfileService:
    """Service for reading and writing user profiles."""

    repository: ProfileRepository

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return a user's profile."""
        return self.repository.get_profile(user_id)

    def save_profile(self, user_id: UUID, data: ProfileInput) -> UserProfile:
        """Replace the user's profile, converting units to kg and cm."""
        now = datetime.now(tz=UTC)
        fields = _normalize(data)
        fields["created_at"] = now
        fields["updated_at"] = now
        self.repository.set_profile(user_id, fields, merge=False)
        return _require(self.repository.get_profile(user_id))

    def update_profile(self, user_id: UUID, data: ProfileInput) -> UserProfile:
        """Merge the provided fields into the stored profile."""
        fields = {
            name: value for name, value in _normalize(data).items() if value is not None
        }
        fields["updated_at"] = datetime.now(tz=UTC)
        self.repository.set_profile(user_id, fields, merge=True)
        return _require(self.repository.get_profile(user_id))

    def get_timezone(self, user_id: UUID) -> str:
        """Return the user's timezone or UTC if unset."""
        profile = self.repository.get_profile(user_id)
        if profile is None or not profile.timezone:
            return DEFAULT_TIMEZONE
        return profile.timezone


def to_kilograms(value: float, unit: str) -> float:
    """Convert a weight to kilograms, rounded to one decimal."""
    if unit == "kg":
        return round(value, 1)
    if unit == "lbs":
        return round(value * KG_PER_POUND, 1)
    raise InvalidDomainValueError("weight_unit", unit)


def to_centimeters(value: float, unit: str) -> float:
    """Convert a height to centimeters, rounded to one decimal."""
    if unit == "cm":
        return round(value, 1)
    if unit == "inches":
        return round(value * CM_PER_INCH, 1)
    raise InvalidDomainValueError("height_unit", unit)


def _normalize(data: ProfileInput) -> dict[str, object]:
    if data.timezone is not None:
        try:
            ZoneInfo(data.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidDomainValueError("timezone", data.timezone) from exc
    return {
        "age": data.age,
        "gender": data.gender,
        "weight": (
            to_kilograms(data.weight, data.weight_unit)
            if data.weight is not None
            else None
        ),
        "height": (
            to_centimeters(data.height, data.height_unit)
            if data.height is not None
            else None
        ),
        "activity_level": data.activity_level,
        "fitness_goal": data.fitness_goal,
        "display_name": data.display_name,
        "timezone": data.timezone,
    }


def _require(profile: UserProfile | None) -> UserProfile:
    if profile is None:
        raise RuntimeError("Profile was not persisted")
    return profile

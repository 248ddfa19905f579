"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutriscan.domain.profile import UserProfile
from nutriscan.services.profiles import PROFILE_FIELDS, ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the stored profile for a user."""
        response = (
            self.client.table("profiles")
            .select(", ".join(("user_id", *PROFILE_FIELDS, "created_at", "updated_at")))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserProfile(
            user_id=user_id,
            age=row.get("age"),
            gender=row.get("gender"),
            weight=row.get("weight"),
            height=row.get("height"),
            activity_level=row.get("activity_level"),
            fitness_goal=row.get("fitness_goal"),
            display_name=row.get("display_name"),
            timezone=row.get("timezone"),
            created_at=_parse_datetime(row.get("created_at")),
            updated_at=_parse_datetime(row.get("updated_at")),
        )

    def set_profile(
        self, user_id: UUID, fields: dict[str, object], *, merge: bool
    ) -> None:
        """Upsert profile fields; a full write clears fields not provided."""
        payload: dict[str, object] = {"user_id": str(user_id)}
        if not merge:
            payload.update({name: None for name in PROFILE_FIELDS})
        for name, value in fields.items():
            payload[name] = value.isoformat() if isinstance(value, datetime) else value
        self.client.table("profiles").upsert(payload, on_conflict="user_id").execute()


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None

"""Authentication domain models."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AuthSession:
    """An authenticated user session passed explicitly through calls."""

    user_id: UUID
    email: str | None
    access_token: str

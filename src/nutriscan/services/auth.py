"""Authentication service delegating to an identity provider."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutriscan.domain.auth import AuthSession
from nutriscan.domain.errors import AuthenticationError

MIN_PASSWORD_LENGTH = 6
SUPPORTED_PROVIDERS = frozenset({"google"})

_logger = logging.getLogger(__name__)


class AuthProvider(Protocol):
    """Interface for an external identity provider."""

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password."""

    def sign_up(self, email: str, password: str) -> AuthSession:
        """Register a new account and return its session."""

    def provider_sign_in_url(self, provider: str, redirect_to: str | None) -> str:
        """Return the URL that starts an OAuth sign-in."""

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""

    def get_session(self, access_token: str) -> AuthSession | None:
        """Resolve an access token to a session, if still valid."""


@dataclass
class AuthService:
    """Application service for sign-in flows."""

    provider: AuthProvider

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        email = _validate_credentials(email, password)
        session = self.provider.sign_in(email, password)
        _logger.info("User %s signed in", session.user_id)
        return session

    def sign_up(self, email: str, password: str) -> AuthSession:
        """Create an account and sign it in."""
        email = _validate_credentials(email, password)
        session = self.provider.sign_up(email, password)
        _logger.info("User %s signed up", session.user_id)
        return session

    def sign_in_with_provider(
        self, provider: str, redirect_to: str | None = None
    ) -> str:
        """Return the OAuth URL for a supported provider."""
        if provider not in SUPPORTED_PROVIDERS:
            raise AuthenticationError(f"Unsupported provider: {provider}")
        return self.provider.provider_sign_in_url(provider, redirect_to)

    def sign_out(self, session: AuthSession) -> None:
        """End a session."""
        self.provider.sign_out(session.access_token)
        _logger.info("User %s signed out", session.user_id)

    def resolve(self, access_token: str | None) -> AuthSession | None:
        """Return the session for a bearer token, or None."""
        if not access_token:
            return None
        return self.provider.get_session(access_token)


def _validate_credentials(email: str, password: str) -> str:
    cleaned = email.strip().lower()
    if not cleaned or "@" not in cleaned:
        raise AuthenticationError("A valid email is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthenticationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return cleaned

"""Supabase Auth implementation of the identity provider."""

from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from supabase import AuthError, Client

from nutriscan.domain.auth import AuthSession
from nutriscan.domain.errors import AuthenticationError
from nutriscan.services.auth import AuthProvider


@dataclass
class SupabaseAuthProvider(AuthProvider):
    """Identity provider backed by Supabase Auth.

    Uses anon-key clients, separate from the data client, so signing users in
    never changes the credentials used for table access. Sign-in, sign-up and
    OAuth store session state on the client they run on, so each of them gets
    a fresh client from ``session_client_factory``; token lookups and
    sign-out take the token explicitly and use the shared ``client``.
    """

    client: Client
    session_client_factory: Callable[[], Client]

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password."""
        try:
            response = self._fresh_auth().sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise AuthenticationError(exc.message) from exc
        return _to_session(response.user, response.session)

    def sign_up(self, email: str, password: str) -> AuthSession:
        """Register a new account."""
        try:
            response = self._fresh_auth().sign_up(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise AuthenticationError(exc.message) from exc
        if response.session is None:
            raise AuthenticationError("Confirm your email address to finish sign-up")
        return _to_session(response.user, response.session)

    def provider_sign_in_url(self, provider: str, redirect_to: str | None) -> str:
        """Return the OAuth authorize URL for a provider."""
        credentials: dict[str, object] = {"provider": provider}
        if redirect_to:
            credentials["options"] = {"redirect_to": redirect_to}
        try:
            response = self._fresh_auth().sign_in_with_oauth(credentials)
        except AuthError as exc:
            raise AuthenticationError(exc.message) from exc
        return response.url

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        try:
            self.client.auth.admin.sign_out(access_token)
        except AuthError as exc:
            raise AuthenticationError(exc.message) from exc

    def get_session(self, access_token: str) -> AuthSession | None:
        """Resolve an access token to its user."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError:
            return None
        if response is None or response.user is None:
            return None
        return AuthSession(
            user_id=UUID(str(response.user.id)),
            email=response.user.email,
            access_token=access_token,
        )

    def _fresh_auth(self):  # type: ignore[no-untyped-def]
        return self.session_client_factory().auth


def _to_session(user: object, session: object) -> AuthSession:
    if user is None or session is None:
        raise AuthenticationError("Identity provider returned no session")
    return AuthSession(
        user_id=UUID(str(user.id)),  # type: ignore[attr-defined]
        email=getattr(user, "email", None),
        access_token=session.access_token,  # type: ignore[attr-defined]
    )

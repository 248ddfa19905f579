"""Authentication endpoints and the per-request session dependency."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutriscan.api.schemas import CredentialsRequest
from nutriscan.domain.auth import AuthSession  # noqa: TC001

if TYPE_CHECKING:
    from nutriscan.containers import AppContainer

router = APIRouter(prefix="/auth", tags=["auth"])


def _parse_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def current_session(
    request: Request, authorization: str | None = Header(default=None)
) -> AuthSession:
    """Resolve the bearer token into the caller's session."""
    container: AppContainer = request.app.state.container
    session = container.auth_service.resolve(_parse_bearer(authorization))
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return session


@router.post("/sign-in")
async def sign_in(payload: CredentialsRequest, request: Request) -> dict[str, object]:
    """Sign in with email and password."""
    container: AppContainer = request.app.state.container
    session = container.auth_service.sign_in(payload.email, payload.password)
    return _session_payload(session)


@router.post("/sign-up")
async def sign_up(payload: CredentialsRequest, request: Request) -> dict[str, object]:
    """Create an account."""
    container: AppContainer = request.app.state.container
    session = container.auth_service.sign_up(payload.email, payload.password)
    return _session_payload(session)


@router.get("/provider/{provider}")
async def provider_sign_in(
    provider: str, request: Request, redirect_to: str | None = None
) -> dict[str, str]:
    """Return the URL that starts an OAuth sign-in."""
    container: AppContainer = request.app.state.container
    url = container.auth_service.sign_in_with_provider(provider, redirect_to)
    return {"url": url}


@router.post("/sign-out")
async def sign_out(
    request: Request, session: AuthSession = Depends(current_session)
) -> dict[str, str]:
    """End the caller's session."""
    container: AppContainer = request.app.state.container
    container.auth_service.sign_out(session)
    return {"status": "ok"}


def _session_payload(session: AuthSession) -> dict[str, object]:
    return {
        "user_id": str(session.user_id),
        "email": session.email,
        "access_token": session.access_token,
    }

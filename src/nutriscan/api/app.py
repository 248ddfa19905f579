"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nutriscan.api.auth import current_session
from nutriscan.api.auth import router as auth_router
from nutriscan.api.schemas import AnalysisRequest, ProfileRequest, SaveMealRequest
from nutriscan.app_logging import configure_logging
from nutriscan.config import parse_cors_origins
from nutriscan.containers import AppContainer
from nutriscan.domain.auth import AuthSession
from nutriscan.domain.errors import (
    AuthenticationError,
    IncompleteProfileError,
    InvalidDomainValueError,
)
from nutriscan.domain.meals import MealRecord
from nutriscan.domain.profile import UserProfile
from nutriscan.services.analysis import DEFAULT_TIPS
from nutriscan.services.profiles import ProfileInput

RECENT_MEALS_FOR_TIPS = 10
# A month window ends on the first of the next month, so December of the
# last representable year has no end bound.
MIN_YEAR = 1
MAX_YEAR = 9998


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    origins = parse_cors_origins(container.settings.cors_allowed_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(auth_router)

    @app.exception_handler(IncompleteProfileError)
    async def incomplete_profile(
        request: Request, exc: IncompleteProfileError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Complete your profile to calculate daily calories.",
                "missing_fields": exc.missing_fields,
            },
        )

    @app.exception_handler(InvalidDomainValueError)
    async def invalid_value(
        request: Request, exc: InvalidDomainValueError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "field": exc.field},
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_failed(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/profile")
    async def get_profile(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return the caller's profile."""
        profile = container.profile_service.get_profile(session.user_id)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _profile_payload(profile)

    @app.put("/profile")
    async def put_profile(
        payload: ProfileRequest, session: AuthSession = Depends(current_session)
    ) -> dict[str, object]:
        """Replace the caller's profile."""
        profile = container.profile_service.save_profile(
            session.user_id, ProfileInput(**payload.model_dump())
        )
        return _profile_payload(profile)

    @app.patch("/profile")
    async def patch_profile(
        payload: ProfileRequest, session: AuthSession = Depends(current_session)
    ) -> dict[str, object]:
        """Update only the provided profile fields."""
        profile = container.profile_service.update_profile(
            session.user_id, ProfileInput(**payload.model_dump())
        )
        return _profile_payload(profile)

    @app.get("/calories")
    async def calories(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return today's calorie goal, intake and macro targets."""
        return asdict(container.calorie_tracker_service.get_status(session.user_id))

    @app.post("/analysis")
    async def analyze(
        payload: AnalysisRequest, session: AuthSession = Depends(current_session)
    ) -> dict[str, object]:
        """Estimate nutrition for a meal photo or description."""
        image = _decode_image(payload.image_base64)
        if image is None and not (payload.text and payload.text.strip()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Send a photo or a food description.",
            )
        try:
            result = await container.analysis_service.analyze(
                image=image, text=payload.text, description=payload.description
            )
        except Exception as exc:
            logger.exception("Food analysis failed for user %s", session.user_id)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="The analysis service is unavailable. Try again.",
            ) from exc
        if result.value is None:
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={
                    "detail": "Could not analyze the meal. Try again.",
                    "reason": result.error.message if result.error else None,
                },
            )
        return result.value.model_dump()

    @app.post("/meals", status_code=status.HTTP_201_CREATED)
    async def save_meal(
        payload: SaveMealRequest, session: AuthSession = Depends(current_session)
    ) -> dict[str, object]:
        """Save an analysed meal to the caller's history."""
        meal = container.meal_service.save_meal(
            session.user_id, payload, image_url=payload.image_url
        )
        return _meal_payload(meal)

    @app.get("/meals")
    async def list_meals(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return the caller's meal history, newest first."""
        meals = container.meal_service.list_meals(session.user_id)
        return {"meals": [_meal_payload(meal) for meal in meals]}

    @app.get("/meals/{meal_id}")
    async def get_meal(
        meal_id: UUID, session: AuthSession = Depends(current_session)
    ) -> dict[str, object]:
        """Return a single meal."""
        meal = container.meal_service.get_meal(session.user_id, meal_id)
        if meal is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _meal_payload(meal)

    @app.delete("/meals/{meal_id}")
    async def delete_meal(
        meal_id: UUID, session: AuthSession = Depends(current_session)
    ) -> dict[str, str]:
        """Delete a meal from the caller's history."""
        if not container.meal_service.delete_meal(session.user_id, meal_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"status": "deleted"}

    @app.get("/stats/today")
    async def stats_today(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return today's meal count and calories."""
        timezone = container.profile_service.get_timezone(session.user_id)
        return asdict(container.stats_service.get_today(session.user_id, timezone))

    @app.get("/stats/week")
    async def stats_week(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return the last seven days compared with the seven before."""
        timezone = container.profile_service.get_timezone(session.user_id)
        return asdict(container.stats_service.get_week(session.user_id, timezone))

    @app.get("/stats/month")
    async def stats_month(
        year: int | None = Query(default=None, ge=MIN_YEAR, le=MAX_YEAR),
        month: int | None = Query(default=None, ge=1, le=12),
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return totals for a calendar month (default: the current one)."""
        timezone = container.profile_service.get_timezone(session.user_id)
        year, month = _resolve_month(year, month, timezone)
        return asdict(
            container.stats_service.get_month(session.user_id, timezone, year, month)
        )

    @app.get("/stats/calendar")
    async def stats_calendar(
        year: int | None = Query(default=None, ge=MIN_YEAR, le=MAX_YEAR),
        month: int | None = Query(default=None, ge=1, le=12),
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return per-day meal counts for a month."""
        timezone = container.profile_service.get_timezone(session.user_id)
        year, month = _resolve_month(year, month, timezone)
        days = container.stats_service.get_calendar(
            session.user_id, timezone, year, month
        )
        return {"year": year, "month": month, "days": [asdict(day) for day in days]}

    @app.get("/stats/overview")
    async def stats_overview(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return all-time totals."""
        return asdict(container.stats_service.get_overview(session.user_id))

    @app.get("/tips")
    async def tips(
        session: AuthSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return nutrition tips based on recent meals."""
        meals = container.meal_service.list_meals(session.user_id)
        timezone = container.profile_service.get_timezone(session.user_id)
        today = container.stats_service.get_today(session.user_id, timezone)
        try:
            result = await container.analysis_service.tips(
                meals[:RECENT_MEALS_FOR_TIPS], today.total_calories
            )
        except Exception:
            logger.exception("Failed to generate tips for user %s", session.user_id)
            result = list(DEFAULT_TIPS)
        return {"tips": result}

    return app


def _decode_image(encoded: str | None) -> bytes | None:
    """Decode a base64 image, accepting an optional data URL prefix."""
    if not encoded:
        return None
    _, _, data = encoded.rpartition(",")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="image_base64 is not valid base64.",
        ) from exc


def _resolve_month(
    year: int | None, month: int | None, timezone_name: str
) -> tuple[int, int]:
    now = datetime.now(tz=ZoneInfo(timezone_name))
    return (year or now.year, month or now.month)


def _profile_payload(profile: UserProfile) -> dict[str, object]:
    payload = asdict(profile)
    payload["user_id"] = str(profile.user_id)
    return payload


def _meal_payload(meal: MealRecord) -> dict[str, object]:
    return {
        "id": str(meal.id),
        "food_name": meal.food_name,
        "calories": meal.calories,
        "macros": asdict(meal.macros),
        "recommendations": meal.recommendations,
        "image_url": meal.image_url,
        "created_at": meal.created_at.isoformat(),
    }

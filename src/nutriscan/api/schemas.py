"""Pydantic models for API request payloads."""

from typing import Literal

from pydantic import BaseModel, Field

from nutriscan.domain.analysis import FoodAnalysis


class CredentialsRequest(BaseModel):
    """Email and password credentials."""

    email: str
    password: str


class ProfileRequest(BaseModel):
    """Profile fields as entered during onboarding."""

    age: int | None = Field(default=None, ge=13, le=120)
    gender: Literal["male", "female", "other"] | None = None
    weight: float | None = Field(default=None, gt=0)
    weight_unit: Literal["kg", "lbs"] = "kg"
    height: float | None = Field(default=None, gt=0)
    height_unit: Literal["cm", "inches"] = "cm"
    activity_level: (
        Literal["sedentary", "light", "moderate", "active", "very_active"] | None
    ) = None
    fitness_goal: Literal["bulking", "shedding", "maintenance"] | None = None
    display_name: str | None = None
    timezone: str | None = None


class AnalysisRequest(BaseModel):
    """A meal photo (base64) and/or a text description to analyse."""

    image_base64: str | None = None
    text: str | None = None
    description: str | None = None


class SaveMealRequest(FoodAnalysis):
    """An analysis result the user chose to keep."""

    image_url: str | None = None

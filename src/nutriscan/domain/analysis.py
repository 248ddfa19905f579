"""Models for AI food analysis results."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


class AnalysisMacros(BaseModel):
    """Estimated macronutrients in grams."""

    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    fiber: float = Field(ge=0.0)
    sugar: float = Field(ge=0.0)


class FoodAnalysis(BaseModel):
    """Structured nutritional estimate for a meal."""

    food_name: str = Field(alias="foodName", min_length=1)
    calories: float = Field(ge=0.0)
    macros: AnalysisMacros
    recommendations: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("food_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("foodName must not be blank")
        return stripped


class NutritionTips(BaseModel):
    """Short nutrition tips for the user."""

    tips: list[str] = Field(min_length=1)


@dataclass(frozen=True)
class ParseError:
    """Why a model response could not be parsed."""

    message: str
    raw: str


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of parsing a model response: a value or an error."""

    value: T | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, raw: str) -> "ParseResult[T]":
        return cls(error=ParseError(message=message, raw=raw))

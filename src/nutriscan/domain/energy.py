"""Domain models for energy expenditure results."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MacroTargets:
    """Daily macronutrient targets in grams."""

    protein: int
    carbs: int
    fat: int


@dataclass(frozen=True)
class EnergyPlan:
    """Calorie and macro targets derived from a profile."""

    bmr: int
    tdee: int
    daily_calories: int
    macros: MacroTargets
    explanation: str


@dataclass(frozen=True)
class CalorieStatus:
    """Today's calorie goal against what was consumed."""

    daily_goal: int
    consumed: float
    remaining: float
    bmr: int
    tdee: int
    macros: MacroTargets
    explanation: str

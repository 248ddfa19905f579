"""Energy expenditure and macro target calculator.

BMR uses the Mifflin-St Jeor equation. The ``other`` gender offset (-78) is
the average of the male (+5) and female (-161) offsets; it is an app policy,
not a published formula.

Macro grams are rounded independently, so their calorie equivalents do not
have to add up to ``daily_calories``.
"""

import math
from dataclasses import dataclass
from enum import StrEnum

from nutriscan.domain.energy import EnergyPlan, MacroTargets
from nutriscan.domain.errors import IncompleteProfileError, InvalidDomainValueError
from nutriscan.domain.profile import ActivityLevel, FitnessGoal, Gender, UserProfile

MIN_AGE = 13
MAX_AGE = 120

BMR_GENDER_OFFSETS: dict[Gender, float] = {
    Gender.MALE: 5.0,
    Gender.FEMALE: -161.0,
    Gender.OTHER: -78.0,
}

ACTIVITY_FACTORS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

GOAL_ADJUSTMENTS: dict[FitnessGoal, int] = {
    FitnessGoal.MAINTENANCE: 0,
    FitnessGoal.BULKING: 400,
    FitnessGoal.SHEDDING: -500,
}

GOAL_RATIONALE: dict[FitnessGoal, str] = {
    FitnessGoal.MAINTENANCE: "maintaining current weight",
    FitnessGoal.BULKING: (
        "a 400 kcal surplus for roughly 0.25-0.5 kg of muscle gain per month"
    ),
    FitnessGoal.SHEDDING: (
        "a 500 kcal deficit for roughly 0.5 kg of fat loss per week"
    ),
}

# (protein g per kg bodyweight, carbs share of calories, fat share of calories)
MACRO_SPLITS: dict[FitnessGoal, tuple[float, float, float]] = {
    FitnessGoal.MAINTENANCE: (2.0, 0.45, 0.25),
    FitnessGoal.BULKING: (2.2, 0.55, 0.225),
    FitnessGoal.SHEDDING: (2.5, 0.35, 0.30),
}

KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9

REQUIRED_FIELDS = (
    "age",
    "gender",
    "weight",
    "height",
    "activity_level",
    "fitness_goal",
)


@dataclass(frozen=True)
class _Biometrics:
    age: float
    weight: float
    height: float
    gender: Gender
    activity: ActivityLevel
    goal: FitnessGoal


def compute_energy_plan(
    profile: UserProfile, *, calorie_floor: int = 0
) -> EnergyPlan:
    """Compute BMR, TDEE, the goal-adjusted target and daily macros.

    Raises ``InvalidDomainValueError`` when the inputs are individually in
    range but still produce a non-positive BMR.

    ``calorie_floor`` is the lowest target a shedding goal may produce; it
    never lifts the target above TDEE. No goal ever yields a negative target.
    """
    data = _validate(profile)

    bmr = calculate_bmr(
        weight=data.weight, height=data.height, age=data.age, gender=data.gender
    )
    if bmr <= 0:
        raise InvalidDomainValueError("bmr", round_half_up(bmr))
    factor = ACTIVITY_FACTORS[data.activity]
    tdee = round_half_up(bmr * factor)
    daily_calories = adjust_for_goal(tdee, data.goal, calorie_floor=calorie_floor)
    macros = calculate_macros(data.weight, daily_calories, data.goal)

    activity_label = data.activity.value.replace("_", " ")
    explanation = (
        f"BMR of {round_half_up(bmr)} kcal (Mifflin-St Jeor) times the "
        f"{activity_label} activity factor of {factor} gives a TDEE of {tdee} kcal. "
        f"The {data.goal.value} goal means {GOAL_RATIONALE[data.goal]}: "
        f"{daily_calories} kcal per day with {macros.protein} g protein, "
        f"{macros.carbs} g carbs and {macros.fat} g fat."
    )
    return EnergyPlan(
        bmr=round_half_up(bmr),
        tdee=tdee,
        daily_calories=daily_calories,
        macros=macros,
        explanation=explanation,
    )


def calculate_bmr(
    *, weight: float, height: float, age: float, gender: Gender
) -> float:
    """Return the unrounded Mifflin-St Jeor BMR."""
    return 10 * weight + 6.25 * height - 5 * age + BMR_GENDER_OFFSETS[gender]


def adjust_for_goal(tdee: int, goal: FitnessGoal, *, calorie_floor: int = 0) -> int:
    """Apply the goal surplus or deficit to TDEE."""
    target = tdee + GOAL_ADJUSTMENTS[goal]
    if goal is FitnessGoal.SHEDDING:
        target = min(tdee, max(target, calorie_floor))
    return max(target, 0)


def calculate_macros(
    weight: float, daily_calories: int, goal: FitnessGoal
) -> MacroTargets:
    """Split daily calories into protein, carb and fat grams."""
    protein_per_kg, carbs_share, fat_share = MACRO_SPLITS[goal]
    return MacroTargets(
        protein=round_half_up(weight * protein_per_kg),
        carbs=round_half_up(daily_calories * carbs_share / KCAL_PER_GRAM_CARBS),
        fat=round_half_up(daily_calories * fat_share / KCAL_PER_GRAM_FAT),
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves away from zero."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def _validate(profile: UserProfile) -> _Biometrics:
    missing: set[str] = set()
    numbers: dict[str, float] = {}
    for name in ("age", "weight", "height"):
        value = getattr(profile, name)
        if _is_number(value) and (name != "age" or float(value).is_integer()):
            numbers[name] = float(value)
        else:
            missing.add(name)
    gender = _parse_enum(Gender, profile.gender)
    activity = _parse_enum(ActivityLevel, profile.activity_level)
    goal = _parse_enum(FitnessGoal, profile.fitness_goal)
    if gender is None:
        missing.add("gender")
    if activity is None:
        missing.add("activity_level")
    if goal is None:
        missing.add("fitness_goal")
    if missing:
        raise IncompleteProfileError(
            [name for name in REQUIRED_FIELDS if name in missing]
        )

    if not MIN_AGE <= numbers["age"] <= MAX_AGE:
        raise InvalidDomainValueError("age", profile.age)
    if numbers["weight"] <= 0:
        raise InvalidDomainValueError("weight", profile.weight)
    if numbers["height"] <= 0:
        raise InvalidDomainValueError("height", profile.height)
    return _Biometrics(
        age=numbers["age"],
        weight=numbers["weight"],
        height=numbers["height"],
        gender=Gender(gender),
        activity=ActivityLevel(activity),
        goal=FitnessGoal(goal),
    )


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def _parse_enum(enum_type: type[StrEnum], value: object) -> StrEnum | None:
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError:
        return None

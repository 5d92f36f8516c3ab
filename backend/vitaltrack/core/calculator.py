"""Physiological Calculations - Pure functions for BMI and energy needs.

All functions are pure: same input always produces same output, no side effects.
Inputs are not range-checked here; callers validate biometrics first.

BMR uses the male Mifflin-St Jeor constant unconditionally because user
profiles carry no sex attribute.
"""

from enum import Enum

from .models import MetricsResult
from .units import round_half_up

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "Sedentary": 1.2,
    "Lightly Active": 1.375,
    "Moderately Active": 1.55,
    "Very Active": 1.725,
    "Extremely Active": 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

GOAL_CALORIE_ADJUSTMENTS: dict[str, int] = {
    "Lose Weight": -500,
    "Gain Muscle": 300,
}

MIN_DAILY_CALORIES = 1200


def _label(value: object) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """Calculate Body Mass Index.

    Args:
        weight_kg: Weight in kilograms
        height_cm: Height in centimeters

    Returns:
        Unrounded BMI, or 0.0 when height is not positive
    """
    if height_cm <= 0:
        return 0.0
    height_m = height_cm / 100
    return weight_kg / (height_m ** 2)


def bmi_category(bmi: float) -> str:
    """Classify BMI using the WHO adult bands."""
    if bmi < 18.5:
        return "underweight"
    if bmi < 25:
        return "normal"
    if bmi < 30:
        return "overweight"
    return "obese"


def calculate_bmr(weight_kg: float, height_cm: float, age: int) -> float:
    """Basal Metabolic Rate via Mifflin-St Jeor (male constant)."""
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + 5


def activity_multiplier(activity_level: object) -> float:
    """Look up the TDEE multiplier; unknown levels fall back to moderate."""
    return ACTIVITY_MULTIPLIERS.get(_label(activity_level), DEFAULT_ACTIVITY_MULTIPLIER)


def calculate_tdee(bmr: float, activity_level: object) -> float:
    """Total Daily Energy Expenditure."""
    return bmr * activity_multiplier(activity_level)


def adjust_for_goal(tdee: float, fitness_goal: object) -> float:
    """Apply the goal's calorie deficit or surplus.

    Maintain Weight, Improve Endurance and unknown goals leave TDEE unchanged.
    """
    return tdee + GOAL_CALORIE_ADJUSTMENTS.get(_label(fitness_goal), 0)


def daily_calorie_target(tdee: float, fitness_goal: object) -> int:
    """Goal-adjusted calories, rounded half up and never below 1200."""
    return max(MIN_DAILY_CALORIES, round_half_up(adjust_for_goal(tdee, fitness_goal)))


def calculate_metrics(
    weight_kg: float,
    height_cm: float,
    age: int,
    activity_level: object,
    fitness_goal: object,
) -> MetricsResult:
    """Compute BMI, BMR, TDEE and the daily calorie target.

    Args:
        weight_kg: Weight in kilograms
        height_cm: Height in centimeters
        age: Age in years
        activity_level: One of the five activity labels
        fitness_goal: One of the four goal labels

    Returns:
        MetricsResult with unrounded BMI, BMR and TDEE
    """
    bmr = calculate_bmr(weight_kg, height_cm, age)
    tdee = calculate_tdee(bmr, activity_level)

    return MetricsResult(
        bmi=calculate_bmi(weight_kg, height_cm),
        bmr=bmr,
        tdee=tdee,
        daily_calorie_target=daily_calorie_target(tdee, fitness_goal),
    )

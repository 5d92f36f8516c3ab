"""Recommendation Content - Schemas and fallbacks for generated guidance.

Generated payloads are validated against these schemas before they are
stored. Content is stored in its camelCase wire form (the shape the
dashboard reads); snake_case keys are accepted on input.
"""

import copy
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import RecommendationKind

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class _Content(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Section(_Content):
    """A titled block of free text."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)


class AmountSection(Section):
    """A titled block with a headline number (kcal or grams)."""

    amount: float = Field(ge=0)


class ScheduleEntry(_Content):
    workout_type: str = Field(
        min_length=1,
        validation_alias=_alias("workoutType", "workout_type"),
        serialization_alias="workoutType",
    )
    color_tag: str = Field(
        min_length=1,
        validation_alias=_alias("color", "colorTag", "color_tag"),
        serialization_alias="color",
    )


class FitnessContent(_Content):
    """Cardio, strength and flexibility advice plus a seven-day schedule."""

    cardio: Section
    strength: Section
    flexibility: Section
    weekly_schedule: dict[str, ScheduleEntry] = Field(
        validation_alias=_alias("weeklySchedule", "weekly_schedule"),
        serialization_alias="weeklySchedule",
    )

    @field_validator("weekly_schedule", mode="before")
    @classmethod
    def lowercase_days(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(day).strip().lower(): entry for day, entry in value.items()}
        return value

    @field_validator("weekly_schedule")
    @classmethod
    def has_every_weekday(cls, value: dict[str, ScheduleEntry]) -> dict[str, ScheduleEntry]:
        if set(value) != set(WEEKDAYS):
            missing = [day for day in WEEKDAYS if day not in value]
            extra = sorted(set(value) - set(WEEKDAYS))
            raise ValueError(f"weekly schedule must cover each weekday once (missing={missing}, unexpected={extra})")
        return {day: value[day] for day in WEEKDAYS}


class MacroDistribution(_Content):
    """Percent of calories from each macronutrient."""

    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)

    @model_validator(mode="after")
    def sums_to_hundred(self) -> "MacroDistribution":
        total = self.protein + self.carbs + self.fats
        if total <= 0:
            raise ValueError("macro distribution must have a positive total")
        if abs(total - 100) > 0.01:
            # Rescale proportionally; fats absorb the rounding residue.
            self.protein = round(self.protein * 100 / total, 1)
            self.carbs = round(self.carbs * 100 / total, 1)
            self.fats = round(100 - self.protein - self.carbs, 1)
        return self


class Meal(_Content):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    calories: float = Field(ge=0)
    protein_g: float = Field(
        ge=0, validation_alias=_alias("protein", "protein_g"), serialization_alias="protein"
    )
    carbs_g: float = Field(
        ge=0, validation_alias=_alias("carbs", "carbs_g"), serialization_alias="carbs"
    )
    fats_g: float = Field(
        ge=0, validation_alias=_alias("fats", "fats_g"), serialization_alias="fats"
    )


class MealPlan(_Content):
    breakfast: Meal
    lunch: Meal
    dinner: Meal


class NutritionContent(_Content):
    """Calorie and protein targets, meal timing, macro split and meal plan."""

    calorie_target: AmountSection = Field(
        validation_alias=_alias("calorieTarget", "calorie_target"),
        serialization_alias="calorieTarget",
    )
    protein_intake: AmountSection = Field(
        validation_alias=_alias("proteinIntake", "protein_intake"),
        serialization_alias="proteinIntake",
    )
    meal_timing: Section = Field(
        validation_alias=_alias("mealTiming", "meal_timing"),
        serialization_alias="mealTiming",
    )
    macro_distribution: MacroDistribution = Field(
        validation_alias=_alias("macroDistribution", "macro_distribution"),
        serialization_alias="macroDistribution",
    )
    meal_plan: MealPlan = Field(
        validation_alias=_alias("mealPlan", "meal_plan"),
        serialization_alias="mealPlan",
    )


CONTENT_SCHEMAS: dict[RecommendationKind, type[BaseModel]] = {
    RecommendationKind.FITNESS: FitnessContent,
    RecommendationKind.NUTRITION: NutritionContent,
}


def coerce_content(kind: RecommendationKind, raw: Any) -> dict[str, Any]:
    """Validate a generated payload and return its normalized wire form.

    Args:
        kind: Which recommendation family the payload belongs to
        raw: Decoded JSON object from the generator

    Returns:
        Normalized content dictionary

    Raises:
        pydantic.ValidationError: If the payload does not match the schema
    """
    schema = CONTENT_SCHEMAS[RecommendationKind(kind)]
    return schema.model_validate(raw).model_dump(by_alias=True)


_FITNESS_FALLBACK: dict[str, Any] = {
    "cardio": {
        "title": "Cardio Recommendation",
        "description": (
            "Start with 30 minutes of moderate-intensity cardio 3 days per week. "
            "Focus on jogging, cycling, or swimming to improve heart health."
        ),
    },
    "strength": {
        "title": "Strength Training",
        "description": (
            "Incorporate 2-3 days of full-body strength training. Focus on compound "
            "movements with moderate weights and 10-12 repetitions."
        ),
    },
    "flexibility": {
        "title": "Flexibility & Recovery",
        "description": (
            "Add 10-15 minutes of stretching after workouts to improve flexibility "
            "and reduce injury risk. Consider adding one yoga session weekly."
        ),
    },
    "weeklySchedule": {
        "monday": {"workoutType": "Cardio", "color": "secondary"},
        "tuesday": {"workoutType": "Strength", "color": "primary"},
        "wednesday": {"workoutType": "Rest", "color": "gray"},
        "thursday": {"workoutType": "Cardio", "color": "secondary"},
        "friday": {"workoutType": "Strength", "color": "primary"},
        "saturday": {"workoutType": "Yoga", "color": "accent"},
        "sunday": {"workoutType": "Rest", "color": "gray"},
    },
}

_NUTRITION_FALLBACK: dict[str, Any] = {
    "calorieTarget": {
        "title": "Calorie Target",
        "description": (
            "Aim for 1,860 calories per day with a macro ratio of 40% protein, "
            "30% carbs, and 30% healthy fats."
        ),
        "amount": 1860,
    },
    "proteinIntake": {
        "title": "Protein Intake",
        "description": (
            "Consume 0.8g of protein per pound of body weight (approximately 138g daily). "
            "Focus on lean sources like chicken, fish, tofu, legumes, and low-fat dairy."
        ),
        "amount": 138,
    },
    "mealTiming": {
        "title": "Meal Timing",
        "description": (
            "Distribute your calories across 4-5 smaller meals throughout the day. "
            "Consider eating your largest meal within 2 hours of your workout."
        ),
    },
    "macroDistribution": {"protein": 40, "carbs": 30, "fats": 30},
    "mealPlan": {
        "breakfast": {
            "title": "Breakfast",
            "description": "Greek yogurt with berries and honey, 2 boiled eggs",
            "calories": 420,
            "protein": 26,
            "carbs": 38,
            "fats": 14,
        },
        "lunch": {
            "title": "Lunch",
            "description": "Grilled chicken salad with olive oil dressing, quinoa",
            "calories": 560,
            "protein": 42,
            "carbs": 40,
            "fats": 20,
        },
        "dinner": {
            "title": "Dinner",
            "description": "Baked salmon with roasted vegetables and brown rice",
            "calories": 520,
            "protein": 36,
            "carbs": 45,
            "fats": 18,
        },
    },
}

_FALLBACKS: dict[RecommendationKind, dict[str, Any]] = {
    RecommendationKind.FITNESS: _FITNESS_FALLBACK,
    RecommendationKind.NUTRITION: _NUTRITION_FALLBACK,
}


def fallback_content(kind: RecommendationKind) -> dict[str, Any]:
    """Fixed default content served when generation fails.

    Returns a fresh copy so callers may not mutate the shared default.
    """
    return copy.deepcopy(_FALLBACKS[RecommendationKind(kind)])

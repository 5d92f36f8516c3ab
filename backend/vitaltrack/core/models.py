"""Core Data Models - Pydantic models for type safety.

Stored records are immutable snapshots; only the User profile is replaced
on write.
"""

from datetime import date as DateType
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .units import lb_to_kg

MIN_WEIGHT_KG = 30
MAX_WEIGHT_KG = 250


def utcnow() -> datetime:
    """Timezone-aware current instant in UTC."""
    return datetime.now(timezone.utc)


class ActivityLevel(str, Enum):
    SEDENTARY = "Sedentary"
    LIGHTLY_ACTIVE = "Lightly Active"
    MODERATELY_ACTIVE = "Moderately Active"
    VERY_ACTIVE = "Very Active"
    EXTREMELY_ACTIVE = "Extremely Active"


class FitnessGoal(str, Enum):
    MAINTAIN_WEIGHT = "Maintain Weight"
    LOSE_WEIGHT = "Lose Weight"
    GAIN_MUSCLE = "Gain Muscle"
    IMPROVE_ENDURANCE = "Improve Endurance"


class RecommendationKind(str, Enum):
    FITNESS = "fitness"
    NUTRITION = "nutrition"


WeightUnit = Literal["kg", "lbs"]


class NewUser(BaseModel):
    """Profile submitted when creating a user."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: str
    name: str = Field(min_length=1)
    age: int = Field(ge=16, le=100, description="Age in years")
    height: float = Field(ge=50, le=250, description="Height in cm")
    weight: float = Field(ge=MIN_WEIGHT_KG, le=MAX_WEIGHT_KG, description="Weight in kg")
    target_weight: float = Field(
        ge=MIN_WEIGHT_KG,
        le=MAX_WEIGHT_KG,
        validation_alias=AliasChoices("target_weight", "targetWeight"),
        description="Target weight in kg",
    )
    activity_level: ActivityLevel = Field(
        default=ActivityLevel.MODERATELY_ACTIVE,
        validation_alias=AliasChoices("activity_level", "activityLevel"),
    )
    fitness_goal: FitnessGoal = Field(
        default=FitnessGoal.MAINTAIN_WEIGHT,
        validation_alias=AliasChoices("fitness_goal", "fitnessGoal"),
    )

    @field_validator("email")
    @classmethod
    def email_has_at_sign(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("Valid email is required")
        return value


class User(BaseModel):
    """User profile with current biometrics."""

    id: int
    username: str
    password: str
    email: str
    name: str
    age: int
    height: float = Field(description="Height in cm")
    weight: float = Field(description="Current weight in kg")
    target_weight: float = Field(description="Target weight in kg")
    activity_level: str
    fitness_goal: str
    created_at: datetime = Field(default_factory=utcnow)

    def public_dict(self) -> dict[str, Any]:
        """JSON-ready profile without the password."""
        return self.model_dump(mode="json", exclude={"password"})


class MetricsUpdate(BaseModel):
    """Body of a metrics update.

    Weights may be submitted in pounds; they are converted to kilograms
    before the 30-250 kg range check.
    """

    weight: float = Field(validation_alias=AliasChoices("weight", "weight_kg"))
    weight_unit: WeightUnit = Field(
        default="kg", validation_alias=AliasChoices("weight_unit", "weightUnit")
    )
    target_weight: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices(
            "target_weight", "targetWeight", "target_weight_kg", "targetWeight_kg"
        ),
    )
    target_weight_unit: WeightUnit = Field(
        default="kg",
        validation_alias=AliasChoices("target_weight_unit", "targetWeightUnit"),
    )
    activity_level: ActivityLevel = Field(
        validation_alias=AliasChoices("activity_level", "activityLevel")
    )
    fitness_goal: FitnessGoal = Field(
        validation_alias=AliasChoices("fitness_goal", "fitnessGoal")
    )

    @model_validator(mode="after")
    def normalize_to_kg(self) -> "MetricsUpdate":
        if self.weight_unit == "lbs":
            self.weight = lb_to_kg(self.weight)
            self.weight_unit = "kg"
        if self.target_weight is not None and self.target_weight_unit == "lbs":
            self.target_weight = lb_to_kg(self.target_weight)
            self.target_weight_unit = "kg"

        if not MIN_WEIGHT_KG <= self.weight <= MAX_WEIGHT_KG:
            raise ValueError(f"weight must be between {MIN_WEIGHT_KG} and {MAX_WEIGHT_KG} kg")
        if self.target_weight is not None and not (
            MIN_WEIGHT_KG <= self.target_weight <= MAX_WEIGHT_KG
        ):
            raise ValueError(
                f"target weight must be between {MIN_WEIGHT_KG} and {MAX_WEIGHT_KG} kg"
            )
        return self


class MetricsResult(BaseModel):
    """Derived physiological values for one set of biometrics."""

    bmi: float
    bmr: float
    tdee: float
    daily_calorie_target: int = Field(ge=1200)


class HealthMetric(BaseModel):
    """A recorded weight with the BMI and calorie target derived from it."""

    id: int
    user_id: int
    weight: float = Field(description="Weight in kg at time of recording")
    bmi: float
    daily_calories: int
    recorded_at: datetime


class Recommendation(BaseModel):
    """A generated fitness or nutrition recommendation.

    Unsaved fallback content has no id.
    """

    id: Optional[int] = None
    user_id: int
    kind: RecommendationKind
    content: dict[str, Any]
    generated_at: datetime
    is_fallback: bool = False


class WaterIntake(BaseModel):
    """A single logged drink."""

    id: int
    user_id: int
    amount: float = Field(gt=0, description="Amount in liters")
    recorded_at: datetime


class WaterStatus(BaseModel):
    """Today's intake against the daily target."""

    amount: float = Field(ge=0, description="Liters consumed today")
    target: float = Field(gt=0, description="Daily target in liters")
    percentage: int = Field(ge=0, le=100)


class DailyWaterTotal(BaseModel):
    """Total intake for one local calendar day."""

    day: DateType
    amount: float = Field(ge=0)
    entry_count: int = Field(ge=0)


class MetricsUpdateResult(BaseModel):
    """Everything produced by a metrics update."""

    user: User
    health_metric: HealthMetric
    fitness: Recommendation
    nutrition: Recommendation

"""Unit tests for data models - validation and defaults."""

import pytest
from pydantic import ValidationError

from vitaltrack.core.models import (
    ActivityLevel,
    FitnessGoal,
    MetricsUpdate,
    NewUser,
    User,
    WaterIntake,
)


def _new_user(**overrides):
    data = {
        "username": "sam",
        "password": "hunter22",
        "email": "sam@example.com",
        "name": "Sam",
        "age": 40,
        "height": 170,
        "weight": 70,
        "target_weight": 65,
    }
    data.update(overrides)
    return NewUser(**data)


class TestNewUser:
    """Tests for NewUser model."""

    def test_valid_profile(self):
        """Valid profile is created with default activity and goal."""
        profile = _new_user()
        assert profile.activity_level == ActivityLevel.MODERATELY_ACTIVE
        assert profile.fitness_goal == FitnessGoal.MAINTAIN_WEIGHT

    def test_camel_case_fields(self):
        """The dashboard's camelCase field names are accepted."""
        profile = NewUser.model_validate({
            "username": "sam", "password": "x", "email": "sam@example.com", "name": "Sam",
            "age": 40, "height": 170, "weight": 70, "targetWeight": 65,
            "activityLevel": "Very Active", "fitnessGoal": "Gain Muscle",
        })
        assert profile.target_weight == 65
        assert profile.activity_level == ActivityLevel.VERY_ACTIVE

    @pytest.mark.parametrize(
        "field,value",
        [("age", 15), ("age", 101), ("height", 49), ("height", 251),
         ("weight", 29), ("target_weight", 251), ("email", "not-an-email")],
    )
    def test_out_of_range_rejected(self, field, value):
        """Biometrics outside the accepted ranges are rejected."""
        with pytest.raises(ValidationError):
            _new_user(**{field: value})


class TestUser:
    """Tests for User model."""

    def test_public_dict_strips_password(self):
        """The password never appears in the public form."""
        user = User(id=1, **_new_user().model_dump(mode="json"))
        data = user.public_dict()
        assert "password" not in data
        assert data["username"] == "sam"
        assert data["activity_level"] == "Moderately Active"


class TestMetricsUpdate:
    """Tests for MetricsUpdate model."""

    def test_valid_update(self):
        update = MetricsUpdate(weight=80, activity_level="Sedentary", fitness_goal="Lose Weight")
        assert update.weight == 80
        assert update.target_weight is None

    def test_request_aliases(self):
        """weight_kg / targetWeight_kg / camelCase enums are accepted."""
        update = MetricsUpdate.model_validate({
            "weight_kg": 80,
            "targetWeight_kg": 75,
            "activityLevel": "Lightly Active",
            "fitnessGoal": "Improve Endurance",
        })
        assert update.weight == 80
        assert update.target_weight == 75
        assert update.fitness_goal == FitnessGoal.IMPROVE_ENDURANCE

    def test_pounds_converted(self):
        """Weights given in pounds are stored in kilograms."""
        update = MetricsUpdate.model_validate({
            "weight": 172, "weightUnit": "lbs",
            "targetWeight": 160, "targetWeightUnit": "lbs",
            "activityLevel": "Sedentary", "fitnessGoal": "Lose Weight",
        })
        assert update.weight == pytest.approx(78.0178, abs=1e-3)
        assert update.target_weight == pytest.approx(72.5748, abs=1e-3)
        assert update.weight_unit == "kg"

    @pytest.mark.parametrize("weight", [0, 29.9, 250.1, 500])
    def test_weight_out_of_range(self, weight):
        """Weights outside 30-250 kg are rejected."""
        with pytest.raises(ValidationError):
            MetricsUpdate(weight=weight, activity_level="Sedentary", fitness_goal="Lose Weight")

    def test_pounds_checked_after_conversion(self):
        """600 lbs is about 272 kg and is rejected."""
        with pytest.raises(ValidationError):
            MetricsUpdate(
                weight=600, weight_unit="lbs",
                activity_level="Sedentary", fitness_goal="Lose Weight",
            )

    def test_unknown_activity_rejected(self):
        with pytest.raises(ValidationError):
            MetricsUpdate(weight=70, activity_level="Couch", fitness_goal="Lose Weight")

    def test_unknown_goal_rejected(self):
        with pytest.raises(ValidationError):
            MetricsUpdate(weight=70, activity_level="Sedentary", fitness_goal="Get Famous")


class TestWaterIntake:
    """Tests for WaterIntake model."""

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            WaterIntake(id=1, user_id=1, amount=0, recorded_at="2025-03-14T12:00:00Z")

"""Health Service - The metrics-and-recommendation pipeline.

Ties the calculator, repository, recommendation cache and water tracker
together behind the operations the HTTP layer exposes.
"""

import logging
from typing import Any

from ..core.calculator import calculate_metrics
from ..core.errors import StorageFailure, UserNotFoundError
from ..core.models import (
    DailyWaterTotal,
    HealthMetric,
    MetricsUpdate,
    MetricsUpdateResult,
    NewUser,
    Recommendation,
    RecommendationKind,
    User,
    WaterStatus,
)
from .generator import GeneratorInputs
from .recommendation_cache import RecommendationCache
from .repository import Repository
from .water_tracker import WaterTracker


logger = logging.getLogger(__name__)


class HealthService:
    """Operations on one user's profile, metrics, recommendations and water."""

    def __init__(
        self,
        repository: Repository,
        recommendations: RecommendationCache,
        water: WaterTracker,
    ) -> None:
        self.repository = repository
        self.recommendations = recommendations
        self.water = water

    # ==================== Profile ====================

    def get_user(self, user_id: int) -> User:
        """Fetch a user.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = self.repository.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def create_user(self, profile: NewUser) -> User:
        return self.repository.create_user(profile)

    # ==================== Metrics ====================

    def _record_metric(self, user: User, weight: float) -> HealthMetric:
        metrics = calculate_metrics(
            weight, user.height, user.age, user.activity_level, user.fitness_goal
        )
        return self.repository.append_health_metric(
            user.id,
            weight=weight,
            bmi=metrics.bmi,
            daily_calories=metrics.daily_calorie_target,
        )

    async def update_metrics(self, user: User, update: MetricsUpdate) -> MetricsUpdateResult:
        """Apply new biometrics and refresh both recommendation kinds.

        Order: update profile, append health metric, refresh fitness, refresh
        nutrition. A storage failure raises before any generator call;
        generator failures never abort the update. The profile is written
        first, so a failed metric append leaves the new values on the profile
        with no matching health metric.

        Args:
            user: The user as already fetched by the caller
            update: Validated metrics (weights in kg)

        Returns:
            MetricsUpdateResult with the updated user and new snapshots
        """
        user_id = user.id
        target_weight = update.target_weight if update.target_weight is not None else user.target_weight
        changes: dict[str, Any] = {
            "weight": update.weight,
            "target_weight": target_weight,
            "activity_level": update.activity_level.value,
            "fitness_goal": update.fitness_goal.value,
        }
        updated = self.repository.update_user(user_id, changes)
        if updated is None:
            raise StorageFailure("Failed to update user metrics")

        metric = self._record_metric(updated, update.weight)
        logger.info(
            "User %s metrics updated: bmi=%.1f calories=%d",
            user_id, metric.bmi, metric.daily_calories,
        )

        inputs = GeneratorInputs.from_user(updated)
        fitness = await self.recommendations.refresh(user_id, RecommendationKind.FITNESS, inputs)
        nutrition = await self.recommendations.refresh(user_id, RecommendationKind.NUTRITION, inputs)

        return MetricsUpdateResult(
            user=updated, health_metric=metric, fitness=fitness, nutrition=nutrition
        )

    def current_health_metric(self, user_id: int) -> HealthMetric:
        """Latest health metric, bootstrapping one from the profile if none exists."""
        user = self.get_user(user_id)
        latest = self.repository.get_latest_health_metric(user_id)
        if latest is not None:
            return latest

        logger.info("No health metric for user %s; computing initial snapshot", user_id)
        return self._record_metric(user, user.weight)

    def health_metric_history(self, user_id: int) -> list[HealthMetric]:
        self.get_user(user_id)
        return self.repository.get_health_metric_history(user_id)

    # ==================== Recommendations ====================

    async def recommendation(self, user_id: int, kind: RecommendationKind) -> Recommendation:
        user = self.get_user(user_id)
        return await self.recommendations.get(user, kind)

    # ==================== Water ====================

    def record_water(self, user: User, amount: Any) -> WaterStatus:
        """Record an intake for an already-fetched user and return today's status."""
        self.water.record_intake(user.id, amount)
        return self.water.daily_status(user.id)

    def water_status(self, user_id: int, target: float | None = None) -> WaterStatus:
        self.get_user(user_id)
        return self.water.daily_status(user_id, target)

    def water_history(self, user_id: int, days: int = 7) -> list[DailyWaterTotal]:
        self.get_user(user_id)
        return self.water.history(user_id, days)

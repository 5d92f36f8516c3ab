"""Tests for the in-memory repository contract."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from vitaltrack.core.models import RecommendationKind
from vitaltrack.core.recommendations import fallback_content
from vitaltrack.shell.repository import DEMO_USER, InMemoryRepository, seed_demo_user


class TestUsers:
    """Tests for user operations."""

    def test_create_assigns_ids_and_timestamp(self, repository, profile_factory, clock):
        first = repository.create_user(profile_factory(username="a"))
        second = repository.create_user(profile_factory(username="b"))

        assert (first.id, second.id) == (1, 2)
        assert first.created_at == clock.now
        assert repository.get_user(1) == first

    def test_get_missing_user(self, repository):
        assert repository.get_user(99) is None

    def test_get_by_username(self, repository, user):
        assert repository.get_user_by_username("alex") == user
        assert repository.get_user_by_username("nobody") is None

    def test_update_merges_fields(self, repository, user):
        updated = repository.update_user(user.id, {"weight": 80.5, "fitness_goal": "Gain Muscle"})

        assert updated.weight == 80.5
        assert updated.fitness_goal == "Gain Muscle"
        assert updated.height == user.height
        assert repository.get_user(user.id) == updated

    def test_update_keeps_identity(self, repository, user):
        updated = repository.update_user(
            user.id, {"id": 42, "created_at": datetime(2000, 1, 1, tzinfo=timezone.utc)}
        )
        assert updated.id == user.id
        assert updated.created_at == user.created_at

    def test_update_unknown_user(self, repository):
        assert repository.update_user(99, {"weight": 80}) is None


class TestHealthMetrics:
    """Tests for the health metric log."""

    def test_empty_log(self, repository, user):
        assert repository.get_latest_health_metric(user.id) is None
        assert repository.get_health_metric_history(user.id) == []

    def test_latest_is_last_append(self, repository, user, clock):
        repository.append_health_metric(user.id, weight=78, bmi=24.6, daily_calories=2193)
        clock.advance(days=1)
        second = repository.append_health_metric(user.id, weight=77, bmi=24.3, daily_calories=2180)

        assert repository.get_latest_health_metric(user.id) == second
        history = repository.get_health_metric_history(user.id)
        assert [m.weight for m in history] == [78, 77]
        assert history[0].id < history[1].id

    def test_history_is_a_copy(self, repository, user):
        repository.append_health_metric(user.id, weight=78, bmi=24.6, daily_calories=2193)
        repository.get_health_metric_history(user.id).clear()
        assert len(repository.get_health_metric_history(user.id)) == 1

    def test_timestamps_never_go_backwards(self, repository, user, clock):
        first = repository.append_health_metric(user.id, weight=78, bmi=24.6, daily_calories=2193)
        clock.advance(hours=-3)
        second = repository.append_health_metric(user.id, weight=77, bmi=24.3, daily_calories=2180)

        assert second.recorded_at >= first.recorded_at

    def test_users_partitioned(self, repository, user, profile_factory):
        other = repository.create_user(profile_factory(username="other"))
        repository.append_health_metric(user.id, weight=78, bmi=24.6, daily_calories=2193)

        assert repository.get_latest_health_metric(other.id) is None


class TestRecommendations:
    """Tests for the two recommendation logs."""

    def test_families_are_independent(self, repository, user):
        fitness = repository.append_fitness_recommendation(
            user.id, fallback_content(RecommendationKind.FITNESS)
        )

        assert repository.get_latest_fitness_recommendation(user.id) == fitness
        assert repository.get_latest_nutrition_recommendation(user.id) is None

    def test_ids_per_family(self, repository, user):
        nutrition = repository.append_nutrition_recommendation(
            user.id, fallback_content(RecommendationKind.NUTRITION)
        )
        fitness = repository.append_fitness_recommendation(
            user.id, fallback_content(RecommendationKind.FITNESS)
        )
        assert nutrition.id == 1
        assert fitness.id == 1
        assert fitness.kind == RecommendationKind.FITNESS

    def test_malformed_content_rejected(self, repository, user):
        """Content is validated before it is stored."""
        with pytest.raises(ValidationError):
            repository.append_fitness_recommendation(user.id, {"cardio": "run"})
        assert repository.get_latest_fitness_recommendation(user.id) is None

    def test_history(self, repository, user):
        for _ in range(3):
            repository.append_nutrition_recommendation(
                user.id, fallback_content(RecommendationKind.NUTRITION)
            )
        history = repository.get_recommendation_history(RecommendationKind.NUTRITION, user.id)
        assert [r.id for r in history] == [1, 2, 3]


class TestWaterIntakes:
    """Tests for the water intake log."""

    def test_total_within_bounds(self, repository, user, clock):
        day_start = datetime(2025, 3, 14, tzinfo=timezone.utc)
        repository.append_water_intake(user.id, 0.5, day_start - timedelta(minutes=1))
        repository.append_water_intake(user.id, 0.2, day_start)
        repository.append_water_intake(user.id, 0.3, day_start + timedelta(hours=12))

        total = repository.get_today_water_total(user.id, (day_start, day_start + timedelta(days=1)))

        assert total == pytest.approx(0.5)

    def test_concurrent_appends_lose_nothing(self, repository, user):
        """N concurrent appends of a increase the total by N * a."""
        bounds = (datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2026, 1, 1, tzinfo=timezone.utc))

        with ThreadPoolExecutor(max_workers=8) as pool:
            intakes = list(pool.map(lambda _: repository.append_water_intake(user.id, 0.25), range(200)))

        assert len({i.id for i in intakes}) == 200
        assert repository.get_today_water_total(user.id, bounds) == pytest.approx(50.0)


class TestSeedDemoUser:
    """Tests for seed_demo_user."""

    def test_seed_is_idempotent(self):
        repository = InMemoryRepository()
        first = seed_demo_user(repository)
        second = seed_demo_user(repository)

        assert first.id == second.id == 1
        assert first.username == DEMO_USER.username
        assert first.activity_level == "Moderately Active"

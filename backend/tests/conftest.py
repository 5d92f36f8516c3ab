"""Shared fixtures: a controllable clock, a scripted generator and services."""

from datetime import datetime, timedelta, timezone

import pytest
from starlette.testclient import TestClient

from vitaltrack.core.models import NewUser, RecommendationKind
from vitaltrack.core.recommendations import fallback_content
from vitaltrack.main import create_app
from vitaltrack.shell.generator import GeneratedContent
from vitaltrack.shell.health_service import HealthService
from vitaltrack.shell.recommendation_cache import RecommendationCache
from vitaltrack.shell.repository import InMemoryRepository
from vitaltrack.shell.water_tracker import WaterTracker


class FakeClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubGenerator:
    """Generator that records calls and returns distinguishable content."""

    def __init__(self) -> None:
        self.calls = []
        self.failing = set()

    def calls_for(self, kind):
        return [c for c in self.calls if c[0] == kind]

    async def generate(self, kind, inputs):
        kind = RecommendationKind(kind)
        self.calls.append((kind, inputs))
        content = fallback_content(kind)
        if kind in self.failing:
            return GeneratedContent(content, is_fallback=True)

        label = f"Generated #{len(self.calls)} for {inputs.weight_kg} kg"
        if kind == RecommendationKind.FITNESS:
            content["cardio"]["description"] = label
        else:
            content["mealTiming"]["description"] = label
        return GeneratedContent(content)


def make_profile(**overrides) -> NewUser:
    data = {
        "username": "alex",
        "password": "secret-pass",
        "email": "alex@example.com",
        "name": "Alex Doe",
        "age": 32,
        "height": 178,
        "weight": 78,
        "target_weight": 72.5,
        "activity_level": "Moderately Active",
        "fitness_goal": "Lose Weight",
    }
    data.update(overrides)
    return NewUser(**data)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository(clock):
    return InMemoryRepository(clock=clock)


@pytest.fixture
def generator():
    return StubGenerator()


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def user(repository):
    return repository.create_user(make_profile())


@pytest.fixture
def water(repository, clock):
    return WaterTracker(repository, clock=clock)


@pytest.fixture
def cache(repository, generator, clock):
    return RecommendationCache(repository, generator, clock=clock)


@pytest.fixture
def service(repository, cache, water):
    return HealthService(repository, cache, water)


@pytest.fixture
def client(service):
    return TestClient(create_app(service))

"""Repository - Storage contract and in-memory implementation.

Every record family (health metrics, fitness recommendations, nutrition
recommendations, water intakes) is an append-only log partitioned by user,
with a pointer to each user's latest record. The User profile is the only
record replaced on write.
"""

import itertools
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Generic, Protocol, TypeVar

from ..core.models import (
    HealthMetric,
    NewUser,
    Recommendation,
    RecommendationKind,
    User,
    WaterIntake,
    utcnow,
)
from ..core.recommendations import coerce_content


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

RecordT = TypeVar("RecordT")

IMMUTABLE_USER_FIELDS = frozenset({"id", "created_at"})


class Repository(Protocol):
    """Operations every storage backend provides, keyed by user id."""

    def get_user(self, user_id: int) -> User | None: ...

    def get_user_by_username(self, username: str) -> User | None: ...

    def create_user(self, profile: NewUser) -> User: ...

    def update_user(self, user_id: int, updates: dict[str, Any]) -> User | None: ...

    def append_health_metric(
        self, user_id: int, *, weight: float, bmi: float, daily_calories: int
    ) -> HealthMetric: ...

    def get_latest_health_metric(self, user_id: int) -> HealthMetric | None: ...

    def get_health_metric_history(self, user_id: int) -> list[HealthMetric]: ...

    def append_recommendation(
        self, kind: RecommendationKind, user_id: int, content: dict[str, Any]
    ) -> Recommendation: ...

    def get_latest_recommendation(
        self, kind: RecommendationKind, user_id: int
    ) -> Recommendation | None: ...

    def get_recommendation_history(
        self, kind: RecommendationKind, user_id: int
    ) -> list[Recommendation]: ...

    def append_water_intake(
        self, user_id: int, amount: float, recorded_at: datetime | None = None
    ) -> WaterIntake: ...

    def get_water_intakes(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[WaterIntake]: ...

    def get_today_water_total(self, user_id: int, bounds: tuple[datetime, datetime]) -> float: ...


class RepositoryHelpers:
    """Named wrappers for the two recommendation families."""

    def append_fitness_recommendation(self, user_id: int, content: dict[str, Any]) -> Recommendation:
        return self.append_recommendation(RecommendationKind.FITNESS, user_id, content)

    def append_nutrition_recommendation(self, user_id: int, content: dict[str, Any]) -> Recommendation:
        return self.append_recommendation(RecommendationKind.NUTRITION, user_id, content)

    def get_latest_fitness_recommendation(self, user_id: int) -> Recommendation | None:
        return self.get_latest_recommendation(RecommendationKind.FITNESS, user_id)

    def get_latest_nutrition_recommendation(self, user_id: int) -> Recommendation | None:
        return self.get_latest_recommendation(RecommendationKind.NUTRITION, user_id)


class AppendLog(Generic[RecordT]):
    """Per-user append-only log with a family-wide id sequence.

    Ids are assigned under a family lock and are never reused. Appends for
    one user are serialized by that user's lock; timestamps never go
    backwards within a user's log.
    """

    def __init__(self, name: str, clock: Clock) -> None:
        self.name = name
        self._clock = clock
        self._ids = itertools.count(1)
        self._guard = threading.Lock()
        self._user_locks: dict[int, threading.Lock] = {}
        self._entries: dict[int, list[RecordT]] = {}
        self._latest: dict[int, RecordT] = {}
        self._last_stamp: dict[int, datetime] = {}

    def _lock_for(self, user_id: int) -> threading.Lock:
        with self._guard:
            return self._user_locks.setdefault(user_id, threading.Lock())

    def append(
        self,
        user_id: int,
        build: Callable[[int, datetime], RecordT],
        stamp: datetime | None = None,
    ) -> RecordT:
        """Assign an id and timestamp, build the record and append it."""
        with self._lock_for(user_id):
            with self._guard:
                record_id = next(self._ids)

            stamp = stamp or self._clock()
            previous = self._last_stamp.get(user_id)
            if previous is not None and stamp < previous:
                stamp = previous

            record = build(record_id, stamp)
            self._entries.setdefault(user_id, []).append(record)
            self._latest[user_id] = record
            self._last_stamp[user_id] = stamp

        logger.debug("Appended %s record %d for user %s", self.name, record_id, user_id)
        return record

    def latest(self, user_id: int) -> RecordT | None:
        return self._latest.get(user_id)

    def history(self, user_id: int) -> list[RecordT]:
        """Snapshot copy of the user's log in append order."""
        with self._lock_for(user_id):
            return list(self._entries.get(user_id, []))


class InMemoryRepository(RepositoryHelpers):
    """Process-local repository backed by dictionaries.

    Used for development and tests; contents are lost on restart.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._user_lock = threading.Lock()
        self._user_ids = itertools.count(1)
        self._users: dict[int, User] = {}

        self._health_metrics: AppendLog[HealthMetric] = AppendLog("health_metric", clock)
        self._recommendations: dict[RecommendationKind, AppendLog[Recommendation]] = {
            kind: AppendLog(f"{kind.value}_recommendation", clock)
            for kind in RecommendationKind
        }
        self._water_intakes: AppendLog[WaterIntake] = AppendLog("water_intake", clock)

    # ==================== User Operations ====================

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in list(self._users.values()) if u.username == username), None)

    def create_user(self, profile: NewUser) -> User:
        with self._user_lock:
            user = User(
                id=next(self._user_ids),
                created_at=self._clock(),
                **profile.model_dump(mode="json"),
            )
            self._users[user.id] = user

        logger.info("Created user %s (%s)", user.id, user.username)
        return user

    def update_user(self, user_id: int, updates: dict[str, Any]) -> User | None:
        with self._user_lock:
            user = self._users.get(user_id)
            if user is None:
                logger.warning("Update for unknown user %s ignored", user_id)
                return None

            data = user.model_dump()
            data.update({k: v for k, v in updates.items() if k not in IMMUTABLE_USER_FIELDS})
            updated = User.model_validate(data)
            self._users[user_id] = updated

        logger.info("Updated user %s", user_id)
        return updated

    # ==================== Health Metric Operations ====================

    def append_health_metric(
        self, user_id: int, *, weight: float, bmi: float, daily_calories: int
    ) -> HealthMetric:
        return self._health_metrics.append(
            user_id,
            lambda record_id, stamp: HealthMetric(
                id=record_id,
                user_id=user_id,
                weight=weight,
                bmi=bmi,
                daily_calories=daily_calories,
                recorded_at=stamp,
            ),
        )

    def get_latest_health_metric(self, user_id: int) -> HealthMetric | None:
        return self._health_metrics.latest(user_id)

    def get_health_metric_history(self, user_id: int) -> list[HealthMetric]:
        return self._health_metrics.history(user_id)

    # ==================== Recommendation Operations ====================

    def append_recommendation(
        self, kind: RecommendationKind, user_id: int, content: dict[str, Any]
    ) -> Recommendation:
        kind = RecommendationKind(kind)
        validated = coerce_content(kind, content)
        return self._recommendations[kind].append(
            user_id,
            lambda record_id, stamp: Recommendation(
                id=record_id,
                user_id=user_id,
                kind=kind,
                content=validated,
                generated_at=stamp,
            ),
        )

    def get_latest_recommendation(
        self, kind: RecommendationKind, user_id: int
    ) -> Recommendation | None:
        return self._recommendations[RecommendationKind(kind)].latest(user_id)

    def get_recommendation_history(
        self, kind: RecommendationKind, user_id: int
    ) -> list[Recommendation]:
        return self._recommendations[RecommendationKind(kind)].history(user_id)

    # ==================== Water Intake Operations ====================

    def append_water_intake(
        self, user_id: int, amount: float, recorded_at: datetime | None = None
    ) -> WaterIntake:
        return self._water_intakes.append(
            user_id,
            lambda record_id, stamp: WaterIntake(
                id=record_id, user_id=user_id, amount=amount, recorded_at=stamp
            ),
            stamp=recorded_at,
        )

    def get_water_intakes(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[WaterIntake]:
        return [
            intake
            for intake in self._water_intakes.history(user_id)
            if start <= intake.recorded_at < end
        ]

    def get_today_water_total(self, user_id: int, bounds: tuple[datetime, datetime]) -> float:
        start, end = bounds
        return sum(i.amount for i in self.get_water_intakes(user_id, start, end))


DEMO_USER = NewUser(
    username="johndoe",
    password="password123",
    email="john.doe@example.com",
    name="John Doe",
    age=32,
    height=178,
    weight=78,
    target_weight=72.5,
    activity_level="Moderately Active",
    fitness_goal="Lose Weight",
)


def seed_demo_user(repository: Repository) -> User:
    """Create the demo profile unless it already exists."""
    existing = repository.get_user_by_username(DEMO_USER.username)
    if existing is not None:
        return existing
    return repository.create_user(DEMO_USER)

"""Firestore Client - Durable persistence for profiles and snapshots.

This module handles all database I/O against Firestore.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from google.cloud import firestore

from ..core.errors import StorageFailure
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
from .repository import IMMUTABLE_USER_FIELDS, RepositoryHelpers


logger = logging.getLogger(__name__)

HEALTH_METRICS = "health_metrics"
WATER_INTAKES = "water_intakes"
USERS = "users"


def recommendation_family(kind: RecommendationKind) -> str:
    return f"{RecommendationKind(kind).value}_recommendations"


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


class FirestoreRepository(RepositoryHelpers):
    """Repository persisting every record family to Firestore.

    Document structure:
        counters/{family}: { value }            last id issued per family
        users/{user_id}: { username, age, height, ... }
            {family}/{record_id}: { id, user_id, ... }
            latest/{family}: copy of the newest record

    Id assignment, the record write and the latest pointer are committed in
    one transaction, so ids are never reused and latest never lags.
    """

    def __init__(
        self,
        config: FirestoreConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
            clock: Source of record timestamps
        """
        self.config = config or FirestoreConfig()
        self._clock = clock
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _counter_ref(self, family: str) -> firestore.DocumentReference:
        """Get reference to a family's id counter."""
        return self.client.collection("counters").document(family)

    def _user_ref(self, user_id: int) -> firestore.DocumentReference:
        """Get reference to user document."""
        return self.client.collection(USERS).document(str(user_id))

    def _family_ref(self, user_id: int, family: str) -> firestore.CollectionReference:
        """Get reference to one of a user's record collections."""
        return self._user_ref(user_id).collection(family)

    def _latest_ref(self, user_id: int, family: str) -> firestore.DocumentReference:
        """Get reference to a user's latest-record pointer."""
        return self._user_ref(user_id).collection("latest").document(family)

    def _append(
        self,
        family: str,
        user_id: int,
        data: dict[str, Any],
        stamp_field: str,
        stamp: datetime | None = None,
    ) -> dict[str, Any]:
        """Append a record to a family log inside a transaction."""
        counter_ref = self._counter_ref(family)
        latest_ref = self._latest_ref(user_id, family)
        collection = self._family_ref(user_id, family)

        @firestore.transactional
        def append_in_transaction(transaction: firestore.Transaction) -> dict[str, Any]:
            counter = counter_ref.get(transaction=transaction)
            latest = latest_ref.get(transaction=transaction)

            last_id = (counter.to_dict() or {}).get("value", 0) if counter.exists else 0
            record_id = last_id + 1

            record_stamp = stamp or self._clock()
            if latest.exists:
                previous = (latest.to_dict() or {}).get(stamp_field)
                if previous is not None and record_stamp < previous:
                    record_stamp = previous

            record = {**data, "id": record_id, "user_id": user_id, stamp_field: record_stamp}
            transaction.set(counter_ref, {"value": record_id})
            transaction.set(collection.document(f"{record_id:012d}"), record)
            transaction.set(latest_ref, record)
            return record

        logger.info("Appending %s record for user %s", family, user_id)
        try:
            return append_in_transaction(self.client.transaction())
        except Exception as e:
            logger.error("Failed to append %s record: %s", family, str(e))
            raise StorageFailure(f"Failed to store {family} record") from e

    def _latest(self, family: str, user_id: int) -> dict[str, Any] | None:
        logger.debug("Fetching latest %s for user %s", family, user_id)
        try:
            doc = self._latest_ref(user_id, family).get()
        except Exception as e:
            logger.error("Failed to fetch latest %s: %s", family, str(e))
            raise StorageFailure(f"Failed to read {family}") from e
        if not doc.exists:
            return None
        return doc.to_dict()

    def _history(
        self,
        family: str,
        user_id: int,
        window: tuple[str, datetime, datetime] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch a user's records in id order, optionally within [start, end)."""
        logger.debug("Fetching %s history for user %s", family, user_id)
        try:
            query = self._family_ref(user_id, family)
            if window is not None:
                # Range filters require ordering on the filtered field first.
                stamp_field, start, end = window
                query = (
                    query.where(stamp_field, ">=", start)
                    .where(stamp_field, "<", end)
                    .order_by(stamp_field)
                )
            return [doc.to_dict() for doc in query.order_by("id").stream()]
        except Exception as e:
            logger.error("Failed to fetch %s history: %s", family, str(e))
            raise StorageFailure(f"Failed to read {family}") from e

    # ==================== User Operations ====================

    def get_user(self, user_id: int) -> User | None:
        logger.debug("Fetching user: %s", user_id)
        try:
            doc = self._user_ref(user_id).get()
        except Exception as e:
            logger.error("Failed to fetch user: %s", str(e))
            raise StorageFailure("Failed to read user") from e
        if not doc.exists:
            return None
        return User(**doc.to_dict())

    def get_user_by_username(self, username: str) -> User | None:
        try:
            query = self.client.collection(USERS).where("username", "==", username).limit(1)
            for doc in query.stream():
                return User(**doc.to_dict())
            return None
        except Exception as e:
            logger.error("Failed to look up username: %s", str(e))
            raise StorageFailure("Failed to read user") from e

    def create_user(self, profile: NewUser) -> User:
        counter_ref = self._counter_ref(USERS)
        created_at = self._clock()

        @firestore.transactional
        def create_in_transaction(transaction: firestore.Transaction) -> dict[str, Any]:
            counter = counter_ref.get(transaction=transaction)
            last_id = (counter.to_dict() or {}).get("value", 0) if counter.exists else 0
            data = {**profile.model_dump(mode="json"), "id": last_id + 1, "created_at": created_at}
            transaction.set(counter_ref, {"value": data["id"]})
            transaction.set(self._user_ref(data["id"]), data)
            return data

        logger.info("Creating user: %s", profile.username)
        try:
            return User(**create_in_transaction(self.client.transaction()))
        except Exception as e:
            logger.error("Failed to create user: %s", str(e))
            raise StorageFailure("Failed to create user") from e

    def update_user(self, user_id: int, updates: dict[str, Any]) -> User | None:
        user = self.get_user(user_id)
        if user is None:
            logger.warning("Update for unknown user %s ignored", user_id)
            return None

        data = user.model_dump()
        data.update({k: v for k, v in updates.items() if k not in IMMUTABLE_USER_FIELDS})
        updated = User.model_validate(data)

        logger.info("Saving user: %s", user_id)
        try:
            self._user_ref(user_id).set(updated.model_dump())
        except Exception as e:
            logger.error("Failed to save user: %s", str(e))
            raise StorageFailure("Failed to update user") from e
        return updated

    # ==================== Health Metric Operations ====================

    def append_health_metric(
        self, user_id: int, *, weight: float, bmi: float, daily_calories: int
    ) -> HealthMetric:
        record = self._append(
            HEALTH_METRICS,
            user_id,
            {"weight": weight, "bmi": bmi, "daily_calories": daily_calories},
            "recorded_at",
        )
        return HealthMetric(**record)

    def get_latest_health_metric(self, user_id: int) -> HealthMetric | None:
        record = self._latest(HEALTH_METRICS, user_id)
        return HealthMetric(**record) if record else None

    def get_health_metric_history(self, user_id: int) -> list[HealthMetric]:
        return [HealthMetric(**r) for r in self._history(HEALTH_METRICS, user_id)]

    # ==================== Recommendation Operations ====================

    def append_recommendation(
        self, kind: RecommendationKind, user_id: int, content: dict[str, Any]
    ) -> Recommendation:
        kind = RecommendationKind(kind)
        record = self._append(
            recommendation_family(kind),
            user_id,
            {"kind": kind.value, "content": coerce_content(kind, content)},
            "generated_at",
        )
        return Recommendation(**record)

    def get_latest_recommendation(
        self, kind: RecommendationKind, user_id: int
    ) -> Recommendation | None:
        record = self._latest(recommendation_family(kind), user_id)
        return Recommendation(**record) if record else None

    def get_recommendation_history(
        self, kind: RecommendationKind, user_id: int
    ) -> list[Recommendation]:
        return [Recommendation(**r) for r in self._history(recommendation_family(kind), user_id)]

    # ==================== Water Intake Operations ====================

    def append_water_intake(
        self, user_id: int, amount: float, recorded_at: datetime | None = None
    ) -> WaterIntake:
        record = self._append(
            WATER_INTAKES, user_id, {"amount": amount}, "recorded_at", stamp=recorded_at
        )
        return WaterIntake(**record)

    def get_water_intakes(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[WaterIntake]:
        records = self._history(WATER_INTAKES, user_id, ("recorded_at", start, end))
        return [WaterIntake(**r) for r in records]

    def get_today_water_total(self, user_id: int, bounds: tuple[datetime, datetime]) -> float:
        start, end = bounds
        return sum(i.amount for i in self.get_water_intakes(user_id, start, end))

"""Water Tracker - Daily-bucketed water intake aggregation.

Raw intake events are kept; totals are always recomputed from the log for
the local calendar day defined by the configured timezone.
"""

import logging
import math
from datetime import timedelta, timezone, tzinfo
from typing import Any

from ..core.errors import InvalidInputError
from ..core.hydration import (
    DEFAULT_WATER_TARGET_LITERS,
    daily_totals,
    day_bounds,
    local_day,
    parse_amount,
    today_bounds,
    water_status,
)
from ..core.models import DailyWaterTotal, WaterIntake, WaterStatus, utcnow
from .repository import Clock, Repository


logger = logging.getLogger(__name__)

MAX_HISTORY_DAYS = 90


class WaterTracker:
    """Records intake events and reports today's progress."""

    def __init__(
        self,
        repository: Repository,
        tz: tzinfo = timezone.utc,
        default_target: float = DEFAULT_WATER_TARGET_LITERS,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._tz = tz
        self._default_target = default_target
        self._clock = clock

    def record_intake(self, user_id: int, amount: Any) -> WaterIntake:
        """Append one intake event stamped with the current instant.

        Identical calls are not deduplicated; each records a new event.

        Raises:
            InvalidInputError: If amount is non-numeric or not positive
        """
        liters = parse_amount(amount)
        intake = self._repository.append_water_intake(user_id, liters, self._clock())
        logger.info("Recorded %.3f L for user %s", liters, user_id)
        return intake

    def today_total(self, user_id: int) -> float:
        bounds = today_bounds(self._clock(), self._tz)
        return self._repository.get_today_water_total(user_id, bounds)

    def daily_status(self, user_id: int, target: float | None = None) -> WaterStatus:
        """Today's total against the target (default 3.2 L)."""
        if target is None:
            target = self._default_target
        if not math.isfinite(target) or target <= 0:
            raise InvalidInputError("Water target must be positive")
        return water_status(self.today_total(user_id), target)

    def history(self, user_id: int, days: int = 7) -> list[DailyWaterTotal]:
        """Per-day totals for the last ``days`` local days, oldest first."""
        if not 1 <= days <= MAX_HISTORY_DAYS:
            raise InvalidInputError(f"days must be between 1 and {MAX_HISTORY_DAYS}")

        today = local_day(self._clock(), self._tz)
        requested = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
        start, _ = day_bounds(requested[0], self._tz)
        _, end = day_bounds(today, self._tz)

        intakes = self._repository.get_water_intakes(user_id, start, end)
        return daily_totals(intakes, requested, self._tz)

"""Hydration Calculations - Pure functions for daily water intake.

A "day" is a calendar day in an explicit timezone, expressed as a half-open
[start, end) range of UTC instants. All functions are pure.
"""

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidInputError
from .models import DailyWaterTotal, WaterIntake, WaterStatus
from .units import round_half_up

DEFAULT_WATER_TARGET_LITERS = 3.2


def resolve_timezone(name: str | None) -> tzinfo:
    """Resolve an IANA zone name; empty or "UTC" yields UTC.

    Raises:
        ValueError: If the zone is unknown
    """
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def local_day(instant: datetime, tz: tzinfo) -> date:
    """Calendar day of an instant as seen in the given timezone."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz).date()


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC bounds [start, end) of a local calendar day.

    Args:
        day: The local calendar day
        tz: Timezone defining the day

    Returns:
        Tuple of (start, end) as UTC datetimes
    """
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def today_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC bounds of the local day containing ``now``."""
    return day_bounds(local_day(now, tz), tz)


def parse_amount(value: Any) -> float:
    """Validate a water amount in liters.

    Accepts numbers and numeric strings.

    Raises:
        InvalidInputError: If the amount is missing, non-numeric,
            non-finite or not positive
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError("Invalid water amount")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError("Invalid water amount") from None
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidInputError("Invalid water amount")
    return amount


def total_amount(intakes: Iterable[WaterIntake]) -> float:
    """Sum of intake amounts in liters."""
    return sum(i.amount for i in intakes)


def water_status(amount: float, target: float = DEFAULT_WATER_TARGET_LITERS) -> WaterStatus:
    """Compare an amount against the daily target.

    Percentage is clamped at 100; drinking past the target is not reported
    as more than 100%.

    Args:
        amount: Liters consumed
        target: Daily target in liters (must be positive)

    Returns:
        WaterStatus with amount rounded to milliliters
    """
    percentage = min(100, round_half_up(amount / target * 100))
    return WaterStatus(amount=round(amount, 3), target=target, percentage=percentage)


def daily_totals(
    intakes: Iterable[WaterIntake], days: list[date], tz: tzinfo
) -> list[DailyWaterTotal]:
    """Group intakes into per-day totals for the requested local days.

    Days with no intake are reported with a zero total.
    """
    amounts = {day: 0.0 for day in days}
    counts = {day: 0 for day in days}

    for intake in intakes:
        day = local_day(intake.recorded_at, tz)
        if day in amounts:
            amounts[day] += intake.amount
            counts[day] += 1

    return [
        DailyWaterTotal(day=day, amount=round(amounts[day], 3), entry_count=counts[day])
        for day in days
    ]

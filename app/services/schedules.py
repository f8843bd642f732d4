"""Per-product rescan schedules. Schedules are stored for the dashboard; nothing executes them."""

from datetime import datetime, timedelta, timezone
from typing import Protocol

from app.schemas.scan import ScheduleFrequency, ScheduleOut

FREQUENCY_INTERVALS: dict[str, timedelta] = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
}


class ScheduleStore(Protocol):
    def upsert_schedule(
        self,
        shop_domain: str,
        product_id: str,
        market: str,
        frequency: ScheduleFrequency,
        next_run: datetime,
        last_run: datetime,
    ) -> ScheduleOut: ...


def next_run_after(frequency: ScheduleFrequency, now: datetime) -> datetime:
    if frequency not in FREQUENCY_INTERVALS:
        raise ValueError(f"Unknown schedule frequency: {frequency}")
    return now + FREQUENCY_INTERVALS[frequency]


def save_scan_schedule(
    store: ScheduleStore,
    shop_domain: str,
    product_id: str,
    market: str,
    frequency: ScheduleFrequency,
    now: datetime | None = None,
) -> ScheduleOut:
    """Create or update the schedule for (shop, product); last_run is now."""
    now = now or datetime.now(timezone.utc)
    return store.upsert_schedule(
        shop_domain=shop_domain,
        product_id=product_id,
        market=market,
        frequency=frequency,
        next_run=next_run_after(frequency, now),
        last_run=now,
    )

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def today_in(zone_name: str, now: datetime | None = None) -> date:
    """Calendar date in ``zone_name`` at ``now`` (current UTC instant when omitted)."""
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return instant.astimezone(ZoneInfo(zone_name)).date()

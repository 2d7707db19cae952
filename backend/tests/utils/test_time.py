from datetime import date, datetime, timezone

import pytest
from pickup.utils.time import today_in


def test_today_follows_the_reference_zone() -> None:
    # 23:30 UTC on 1 May is already 2 May in Auckland.
    instant = datetime(2025, 5, 1, 23, 30, tzinfo=timezone.utc)
    assert today_in("UTC", instant) == date(2025, 5, 1)
    assert today_in("Pacific/Auckland", instant) == date(2025, 5, 2)
    assert today_in("America/Los_Angeles", instant) == date(2025, 5, 1)


def test_today_rejects_naive_instant() -> None:
    with pytest.raises(ValueError):
        today_in("UTC", datetime(2025, 5, 1, 12, 0))


def test_today_defaults_to_now() -> None:
    assert isinstance(today_in("UTC"), date)

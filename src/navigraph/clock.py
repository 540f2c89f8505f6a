"""Wall-clock helpers. All timestamps are integer epoch milliseconds."""

from __future__ import annotations

import time
from datetime import datetime, tzinfo
from typing import Callable

from dateutil import tz

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def resolve_timezone(name: str | None) -> tzinfo:
    """Look up an IANA zone name; None or an unknown name gives local time."""
    if name:
        zone = tz.gettz(name)
        if zone is not None:
            return zone
    return tz.tzlocal()


def to_datetime(timestamp_ms: int, zone: tzinfo | None = None) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=zone or tz.tzlocal())


def to_ms(moment: datetime) -> int:
    """Epoch ms for a datetime; naive values are taken as local time."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz.tzlocal())
    return int(moment.timestamp() * 1000)


def work_day(timestamp_ms: int, zone: tzinfo | None = None) -> str:
    """Calendar-day key ``YYYY-MM-DD`` used to spot day-boundary crossings."""
    return to_datetime(timestamp_ms, zone).strftime("%Y-%m-%d")

"""Weekly opening hours -> concrete UTC windows.

Opening hours are stored on the venue as a list of
``{"day_of_week": 0-6, "start_local": "HH:MM", "end_local": "HH:MM"}``
entries, with 0 = Sunday. ``end_local`` may be ``"24:00"`` to mean the
following local midnight.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Literal, Mapping, NamedTuple
from zoneinfo import ZoneInfo

FULL_DAY = ("00:00", "23:59")

UnconfiguredDayPolicy = Literal["open", "closed"]

class OpeningWindow(NamedTuple):
    start_local: str
    end_local: str

def minutes_of_day(hhmm: str) -> int:
    hh, mm = hhmm.split(":")
    return int(hh) * 60 + int(mm)

def weekday_index(day: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return day.isoweekday() % 7

def windows_for_weekday(opening_hours: Iterable[Mapping], weekday: int, policy: UnconfiguredDayPolicy = "open") -> list[OpeningWindow]:
    windows = [
        OpeningWindow(e["start_local"], e["end_local"])
        for e in opening_hours
        if e["day_of_week"] == weekday
    ]
    if not windows:
        return [OpeningWindow(*FULL_DAY)] if policy == "open" else []
    return sorted(windows, key=lambda w: minutes_of_day(w.start_local))

def _local_instant(day: date, hhmm: str, tz: ZoneInfo) -> datetime:
    minutes = minutes_of_day(hhmm)
    # aware + timedelta is wall-clock arithmetic, so the offset is looked up
    # for the resulting local time ("24:00" rolls over to the next midnight)
    local = datetime.combine(day, time(0, 0), tzinfo=tz) + timedelta(minutes=minutes)
    return local.astimezone(timezone.utc)

def resolve_windows(
    tz_name: str,
    opening_hours: Iterable[Mapping],
    date_from: date,
    date_to: date,
    policy: UnconfiguredDayPolicy = "open",
) -> list[tuple[datetime, datetime]]:
    """UTC ``[start, end)`` windows for every local date in ``[date_from, date_to]``, ordered by start."""
    tz = ZoneInfo(tz_name)
    entries = list(opening_hours)
    out: list[tuple[datetime, datetime]] = []
    day = date_from
    while day <= date_to:
        for w in windows_for_weekday(entries, weekday_index(day), policy):
            start = _local_instant(day, w.start_local, tz)
            end = _local_instant(day, w.end_local, tz)
            if end > start:
                out.append((start, end))
        day += timedelta(days=1)
    out.sort()
    return out

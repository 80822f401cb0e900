from datetime import datetime, timedelta
from typing import Iterable, NamedTuple, Sequence

STEP_MINUTES = 15

class BusyInterval(NamedTuple):
    start: datetime
    end: datetime
    kind: str  # booked | held | offline

class Slot(NamedTuple):
    start: datetime
    end: datetime

def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # half-open [a_start, a_end) vs [b_start, b_end)
    return a_start < b_end and a_end > b_start

def is_free(start: datetime, end: datetime, busy: Iterable[BusyInterval]) -> bool:
    return not any(overlaps(start, end, b.start, b.end) for b in busy)

def generate_slots(
    windows: Sequence[tuple[datetime, datetime]],
    busy: Sequence[BusyInterval],
    duration_minutes: int,
    step_minutes: int = STEP_MINUTES,
) -> list[Slot]:
    """Free ``duration_minutes`` candidates inside each window, stepping from the window start.

    A candidate must end at or before its window end; a tail shorter than the
    duration is never offered.
    """
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)
    out: list[Slot] = []
    for w_start, w_end in windows:
        cur = w_start
        while cur + duration <= w_end:
            ce = cur + duration
            if is_free(cur, ce, busy):
                out.append(Slot(cur, ce))
            cur += step
    out.sort(key=lambda s: s.start)
    return out

"""Puzzle calendar: maps UTC calendar days to puzzle numbers.

Every date computation goes through a ``Clock`` so the debug offset is
applied in one place and two calls on the same logical day always agree.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Union

DateLike = Union[date, datetime, str]


def to_utc_date(value: DateLike) -> date:
    """Normalise a date, datetime or ``YYYY-MM-DD`` string to a UTC calendar day.

    Aware datetimes are converted to UTC first; naive datetimes are taken
    as already being UTC.
    """
    if isinstance(value, str):
        # A bare date, or a date followed by an ISO time part
        if len(value) > 10 and value[10] not in ('T', ' '):
            raise ValueError(f"invalid date string {value!r}")
        return date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def puzzle_index_for_date(value: DateLike, epoch: DateLike) -> int:
    delta = (to_utc_date(value) - to_utc_date(epoch)).days
    return max(0, delta)


def date_for_puzzle_index(index: int, epoch: DateLike) -> date:
    if index < 0:
        raise ValueError('puzzle index must be >= 0')
    return to_utc_date(epoch) + timedelta(days=index)


def time_until_next_boundary(now: datetime) -> timedelta:
    """Time left until the next UTC midnight (display only, never used for gating)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    tomorrow = datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), tzinfo=timezone.utc)
    return tomorrow - now


def format_countdown(remaining: timedelta) -> str:
    total_seconds = max(0, int(remaining.total_seconds()))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Clock:
    """Wall clock shifted by a whole number of debug days."""
    epoch: date
    offset_days: int = 0
    source: Callable[[], datetime] = field(default=_utcnow, repr=False)

    def __post_init__(self):
        self.epoch = to_utc_date(self.epoch)

    def now(self) -> datetime:
        current = self.source()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc) + timedelta(days=self.offset_days)

    def today(self) -> date:
        return self.now().date()

    def puzzle_number(self) -> int:
        return puzzle_index_for_date(self.today(), self.epoch)

    def until_next_puzzle(self) -> timedelta:
        return time_until_next_boundary(self.now())

    def with_offset(self, offset_days: int) -> 'Clock':
        return Clock(epoch=self.epoch, offset_days=int(offset_days), source=self.source)

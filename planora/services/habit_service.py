"""
Habit streak engine.

The module-level functions are pure: every result depends only on the
entries passed in and an explicit ``now``. HabitService applies their
decisions through a HabitRepository.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Union

from planora.services.stores import HabitRepository
from planora.utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

TIMEFRAMES = ('day', 'week', 'month', 'year', '7d')

def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)

def day_of(value: DateLike, tz=None) -> date:
    """Calendar day of value; aware datetimes are read in tz, or local time without one."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value

def _entry_days(entries: Iterable, now: datetime) -> set:
    return {day_of(entry.date, now.tzinfo) for entry in entries if entry.date is not None}

def _align(value: DateLike, reference: datetime) -> datetime:
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if reference.tzinfo is not None and value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    if reference.tzinfo is None and value.tzinfo is not None:
        # Naive values are local time
        return value.astimezone().replace(tzinfo=None)
    return value

def current_streak(entries: Iterable, now: datetime) -> int:
    """Consecutive days with an entry, counted back from today."""
    days = _entry_days(entries, now)
    day = day_of(now)
    streak = 0

    while day in days:
        streak += 1
        if day == date.min:
            break
        day -= timedelta(days=1)

    return streak

def longest_streak(entries: Iterable) -> int:
    """Longest run of consecutive days with an entry."""
    days = sorted({day_of(entry.date) for entry in entries if entry.date is not None})
    best = run = 0
    previous = None

    for day in days:
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day

    return best

def is_completed_today(entries: Iterable, now: datetime) -> bool:
    return day_of(now) in _entry_days(entries, now)

def completed_count(entries: Iterable, window_start: DateLike) -> int:
    """Sum of counts for entries on or after window_start."""
    reference = window_start
    if not isinstance(reference, datetime):
        reference = datetime.combine(reference, time.min)
    return sum(
        entry.count for entry in entries
        if entry.date is not None and _align(entry.date, reference) >= reference
    )

def success_rate(entries: Iterable, window_start: DateLike, now: datetime) -> float:
    """Percentage of days from window_start through today with an entry."""
    first = day_of(window_start, now.tzinfo)
    today = day_of(now)
    if first > today:
        return 0.0

    total_days = (today - first).days + 1
    hits = sum(1 for day in _entry_days(entries, now) if first <= day <= today)
    return round(hits / total_days * 100, 1)

def completion_rate(entries_per_habit: Iterable[Iterable], now: datetime) -> float:
    """Percentage of habits completed today."""
    results = [is_completed_today(entries, now) for entries in entries_per_habit]
    if not results:
        return 0.0
    return round(sum(results) / len(results) * 100, 1)

def window_start(timeframe: str, now: datetime) -> datetime:
    """Start of the period a progress count is measured against."""
    today = start_of_day(now)
    if timeframe == 'day':
        return today
    if timeframe == 'week':
        return today - timedelta(days=today.weekday())
    if timeframe == 'month':
        return today.replace(day=1)
    if timeframe == 'year':
        return today.replace(month=1, day=1)
    if timeframe == '7d':
        return today - timedelta(days=7)
    raise ValidationError(f"Timeframe must be one of {', '.join(TIMEFRAMES)}")

@dataclass(frozen=True)
class CreateEntry:
    date: datetime
    count: int
    completed_at: datetime

@dataclass(frozen=True)
class DeleteEntry:
    entry_id: int

def toggle_today(entries: Iterable, now: datetime) -> Union[CreateEntry, DeleteEntry]:
    """Decide whether toggling today adds an entry or removes today's entry."""
    today = day_of(now)
    for entry in entries:
        if entry.date is not None and day_of(entry.date, now.tzinfo) == today:
            return DeleteEntry(entry_id=entry.id)
    return CreateEntry(date=start_of_day(now), count=1, completed_at=now)

class HabitService:
    """Applies streak engine decisions to stored habits."""

    def __init__(self, repository: HabitRepository, clock: Callable[[], datetime] = None):
        self.repository = repository
        self.clock = clock or datetime.now

    def _habit(self, habit_id: int):
        habit = self.repository.get_habit(habit_id)
        if habit is None:
            raise NotFoundError("Habit not found")
        return habit

    def toggle(self, habit_id: int) -> Union[CreateEntry, DeleteEntry]:
        """Toggle today's completion and return the applied instruction."""
        self._habit(habit_id)
        now = self.clock()
        instruction = toggle_today(self.repository.list_entries(habit_id), now)

        if isinstance(instruction, DeleteEntry):
            self.repository.delete_entry(instruction.entry_id)
        else:
            self.repository.create_entry(
                habit_id, instruction.date, instruction.count, instruction.completed_at
            )
        logger.debug("Habit %s toggled: %s", habit_id, instruction)
        return instruction

    def log_completion(self, habit_id: int, count: int = 1):
        """Add completions to today's entry, creating it if needed."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValidationError("Count must be a positive integer")

        self._habit(habit_id)
        now = self.clock()
        return self.repository.upsert_entry(habit_id, start_of_day(now), count, now)

    def stats(self, habit_id: int, timeframe: str = 'week') -> dict:
        """Streak and progress figures for one habit."""
        habit = self._habit(habit_id)
        now = self.clock()
        entries = self.repository.list_entries(habit_id)
        start = window_start(timeframe, now)
        completed = completed_count(entries, start)

        return {
            'habit_id': habit_id,
            'timeframe': timeframe,
            'window_start': start.isoformat(),
            'current_streak': current_streak(entries, now),
            'longest_streak': longest_streak(entries),
            'completed_today': is_completed_today(entries, now),
            'completed_count': completed,
            'target_count': habit.target_count,
            'target_met': completed >= habit.target_count,
            'success_rate': success_rate(entries, start, now),
            'total_entries': len(entries)
        }

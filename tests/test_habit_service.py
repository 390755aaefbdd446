"""Tests for the habit streak engine."""
from datetime import date, datetime, timedelta, timezone

import pytest

from planora.services.habit_service import (
    CreateEntry, DeleteEntry, HabitService, completed_count, completion_rate,
    current_streak, is_completed_today, longest_streak, success_rate,
    toggle_today, window_start
)
from planora.utils.errors import NotFoundError, ValidationError
from fakes import FakeEntry, FakeHabit, InMemoryHabitRepository

NOW = datetime(2026, 3, 11, 10, 0)
TODAY = datetime(2026, 3, 11)

def entries_on(*days_back, count=1):
    return [
        FakeEntry(id=i + 1, date=TODAY - timedelta(days=back), count=count)
        for i, back in enumerate(days_back)
    ]

def test_empty_streak_is_zero():
    assert current_streak([], NOW) == 0

def test_streak_stops_at_first_gap():
    assert current_streak(entries_on(0, 1, 2, 4, 5), NOW) == 3

def test_missing_today_breaks_streak():
    assert current_streak(entries_on(1, 2, 3), NOW) == 0

def test_streak_ignores_time_of_day():
    entries = [FakeEntry(id=1, date=NOW.replace(hour=23, minute=59)),
               FakeEntry(id=2, date=NOW - timedelta(days=1, hours=9))]
    assert current_streak(entries, NOW) == 2

def test_streak_accepts_plain_dates():
    entries = [FakeEntry(id=1, date=date(2026, 3, 11)), FakeEntry(id=2, date=date(2026, 3, 10))]
    assert current_streak(entries, NOW) == 2

def test_long_history_does_not_recurse():
    entries = entries_on(*range(5000))
    assert current_streak(entries, NOW) == 5000

def test_aware_entries_read_in_now_timezone():
    plus_two = timezone(timedelta(hours=2))
    now = datetime(2026, 3, 11, 1, 0, tzinfo=plus_two)
    # 23:30 UTC on the 10th is 01:30 on the 11th at +02:00
    entries = [FakeEntry(id=1, date=datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc))]
    assert current_streak(entries, now) == 1

def test_entries_without_date_are_ignored():
    assert current_streak([FakeEntry(id=1, date=None)], NOW) == 0

def test_is_completed_today():
    assert is_completed_today(entries_on(0), NOW)
    assert not is_completed_today(entries_on(1), NOW)
    assert not is_completed_today([], NOW)

def test_completed_count_sums_counts():
    entries = [
        FakeEntry(id=1, date=TODAY, count=1),
        FakeEntry(id=2, date=TODAY - timedelta(days=1), count=2),
        FakeEntry(id=3, date=TODAY - timedelta(days=2), count=1),
        FakeEntry(id=4, date=TODAY - timedelta(days=10), count=5),
    ]
    assert completed_count(entries, TODAY - timedelta(days=2)) == 4

def test_completed_count_accepts_date_window():
    assert completed_count(entries_on(0, 1, count=3), date(2026, 3, 11)) == 3

def test_completed_count_agrees_with_streak_for_aware_entries():
    # Half past midnight local time, stored as UTC
    entry = FakeEntry(id=1, date=datetime(2026, 3, 11, 0, 30).astimezone(timezone.utc))

    assert is_completed_today([entry], NOW)
    assert current_streak([entry], NOW) == 1
    assert completed_count([entry], TODAY) == 1
    assert completed_count([entry], TODAY + timedelta(days=1)) == 0

def test_toggle_creates_then_deletes():
    entries = entries_on(1)

    instruction = toggle_today(entries, NOW)
    assert instruction == CreateEntry(date=TODAY, count=1, completed_at=NOW)

    entries.append(FakeEntry(id=50, date=instruction.date, count=instruction.count,
                             completed_at=instruction.completed_at))
    assert toggle_today(entries, NOW) == DeleteEntry(entry_id=50)

def test_longest_streak():
    assert longest_streak(entries_on(0, 1, 5, 6, 7, 8, 20)) == 4
    assert longest_streak([]) == 0

@pytest.mark.parametrize('timeframe, expected', [
    ('day', datetime(2026, 3, 11)),
    ('week', datetime(2026, 3, 9)),
    ('month', datetime(2026, 3, 1)),
    ('year', datetime(2026, 1, 1)),
    ('7d', datetime(2026, 3, 4)),
])
def test_window_start(timeframe, expected):
    assert window_start(timeframe, NOW) == expected

def test_window_start_unknown_timeframe():
    with pytest.raises(ValidationError):
        window_start('fortnight', NOW)

def test_success_rate():
    # Monday through Wednesday, two of three days done
    assert success_rate(entries_on(0, 2), datetime(2026, 3, 9), NOW) == 66.7
    assert success_rate(entries_on(0), NOW + timedelta(days=1), NOW) == 0.0

def test_completion_rate():
    assert completion_rate([entries_on(0), entries_on(1), entries_on(0, 1), []], NOW) == 50.0
    assert completion_rate([], NOW) == 0.0

@pytest.fixture
def repository():
    return InMemoryHabitRepository([FakeHabit(id=1, target_count=3, entries=entries_on(1, 2))])

def test_service_toggle_applies_instruction(repository):
    service = HabitService(repository, clock=lambda: NOW)

    assert isinstance(service.toggle(1), CreateEntry)
    assert current_streak(repository.list_entries(1), NOW) == 3

    assert isinstance(service.toggle(1), DeleteEntry)
    assert current_streak(repository.list_entries(1), NOW) == 0

def test_service_log_completion_upserts(repository):
    service = HabitService(repository, clock=lambda: NOW)

    service.log_completion(1)
    entry = service.log_completion(1, 2)

    todays = [e for e in repository.list_entries(1) if e.date == TODAY]
    assert len(todays) == 1
    assert entry.count == 3

@pytest.mark.parametrize('count', [0, -1, True, '2'])
def test_service_rejects_bad_counts(repository, count):
    with pytest.raises(ValidationError):
        HabitService(repository, clock=lambda: NOW).log_completion(1, count)

def test_service_unknown_habit(repository):
    with pytest.raises(NotFoundError):
        HabitService(repository, clock=lambda: NOW).toggle(404)

def test_service_stats(repository):
    service = HabitService(repository, clock=lambda: NOW)
    service.toggle(1)

    stats = service.stats(1, 'week')

    assert stats['current_streak'] == 3
    assert stats['completed_today'] is True
    assert stats['completed_count'] == 3
    assert stats['target_met'] is True
    assert stats['success_rate'] == 100.0
    assert stats['window_start'] == '2026-03-09T00:00:00'

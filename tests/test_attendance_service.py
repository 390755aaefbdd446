"""Tests for the check-in verifier and session window helpers."""
from datetime import datetime, timedelta

import pytest

from planora.services.attendance_service import (
    AttendanceVerifier, is_session_open, merge_into_timetable, next_class, open_sessions
)
from planora.utils.errors import (
    SessionClosedError, SessionNotOpenError, StoreError, ValidationError
)
from fakes import FakeSession, InMemoryAttendanceStore

NOW = datetime(2026, 3, 11, 10, 0)

def make_verifier(store, **kwargs):
    return AttendanceVerifier(store, student_id=7, clock=lambda: NOW, **kwargs)

@pytest.fixture
def open_session():
    return FakeSession(id=1, start=NOW - timedelta(minutes=10), end=NOW + timedelta(hours=1))

@pytest.fixture
def passcode_session():
    return FakeSession(
        id=2, start=NOW - timedelta(minutes=10), end=NOW + timedelta(hours=1),
        requires_passcode=True, passcode='ABCD'
    )

@pytest.mark.parametrize('passcode', [None, '', '   '])
def test_passcode_required_fails_without_store_call(passcode_session, passcode):
    store = InMemoryAttendanceStore([passcode_session])

    with pytest.raises(ValidationError, match='passcode required'):
        make_verifier(store).submit_attendance(passcode_session, passcode)

    assert store.calls == []

def test_passcode_check_precedes_window_check():
    closed = FakeSession(id=3, end=NOW - timedelta(minutes=1), requires_passcode=True, passcode='X')
    store = InMemoryAttendanceStore([closed])

    with pytest.raises(ValidationError):
        make_verifier(store).submit_attendance(closed, '')

def test_no_passcode_needed_reaches_store(open_session):
    store = InMemoryAttendanceStore([open_session])

    assert make_verifier(store).submit_attendance(open_session, None) is True
    assert len(store.calls) == 1
    assert store.calls[0].passcode is None
    assert store.calls[0].idempotency_key == '1:7'
    assert store.calls[0].submitted_at == NOW

def test_correct_passcode_accepted(passcode_session):
    store = InMemoryAttendanceStore([passcode_session])

    assert make_verifier(store).submit_attendance(passcode_session, ' abcd ') is True
    assert store.calls[0].passcode == 'abcd'

def test_wrong_passcode_is_false_not_error(passcode_session):
    store = InMemoryAttendanceStore([passcode_session])

    assert make_verifier(store).submit_attendance(passcode_session, 'WRONG') is False
    assert store.records == {}

def test_resubmission_records_once(passcode_session):
    store = InMemoryAttendanceStore([passcode_session])
    verifier = make_verifier(store)

    assert verifier.submit_attendance(passcode_session, 'ABCD') is True
    assert verifier.submit_attendance(passcode_session, 'ABCD') is True
    assert len(store.records) == 1
    assert len(store.calls) == 2

def test_closed_session_rejected():
    session = FakeSession(id=4, start=NOW - timedelta(hours=2), end=NOW - timedelta(seconds=1))
    store = InMemoryAttendanceStore([session])

    with pytest.raises(SessionClosedError):
        make_verifier(store).submit_attendance(session)
    assert store.calls == []

def test_end_is_inclusive():
    session = FakeSession(id=5, start=NOW - timedelta(hours=1), end=NOW)
    store = InMemoryAttendanceStore([session])

    assert make_verifier(store).submit_attendance(session) is True

def test_early_check_in_rejected_by_default():
    session = FakeSession(id=6, start=NOW + timedelta(minutes=5))
    store = InMemoryAttendanceStore([session])

    with pytest.raises(SessionNotOpenError):
        make_verifier(store).submit_attendance(session)

def test_early_check_in_allowed_by_policy():
    session = FakeSession(id=6, start=NOW + timedelta(minutes=5))
    store = InMemoryAttendanceStore([session])

    assert make_verifier(store, allow_early_check_in=True).submit_attendance(session) is True

def test_open_ended_session_accepts_late_check_in():
    session = FakeSession(id=8, start=NOW - timedelta(days=3))
    store = InMemoryAttendanceStore([session])

    assert make_verifier(store).submit_attendance(session) is True

def test_session_without_id_is_invalid():
    with pytest.raises(ValidationError):
        make_verifier(InMemoryAttendanceStore()).submit_attendance(FakeSession(id=None))

def test_unknown_method_is_invalid(open_session):
    with pytest.raises(ValidationError):
        make_verifier(InMemoryAttendanceStore([open_session])).submit_attendance(
            open_session, method='telepathy'
        )

def test_store_error_propagates(open_session):
    store = InMemoryAttendanceStore([open_session], fail_with=StoreError())

    with pytest.raises(StoreError):
        make_verifier(store).submit_attendance(open_session)

def test_success_callback_runs_on_success_only(passcode_session):
    seen = []
    verifier = make_verifier(InMemoryAttendanceStore([passcode_session]), on_success=seen.append)

    verifier.submit_attendance(passcode_session, 'nope')
    assert seen == []

    verifier.submit_attendance(passcode_session, 'ABCD')
    assert seen == [passcode_session]

def test_verifier_does_not_mutate_session(passcode_session):
    before = FakeSession(**vars(passcode_session))
    make_verifier(InMemoryAttendanceStore([passcode_session])).submit_attendance(passcode_session, 'ABCD')
    assert passcode_session == before

def test_is_session_open():
    assert is_session_open(FakeSession(id=1), NOW)
    assert is_session_open(FakeSession(id=1, start=NOW, end=NOW), NOW)
    assert not is_session_open(FakeSession(id=1, start=NOW + timedelta(seconds=1)), NOW)
    assert not is_session_open(FakeSession(id=1, end=NOW - timedelta(seconds=1)), NOW)

def test_open_sessions_today_sorted():
    later = FakeSession(id=1, start=NOW - timedelta(minutes=5), end=NOW + timedelta(hours=1))
    earlier = FakeSession(id=2, start=NOW - timedelta(hours=1), end=NOW + timedelta(hours=1))
    finished = FakeSession(id=3, start=NOW - timedelta(hours=3), end=NOW - timedelta(hours=2))
    yesterday = FakeSession(id=4, start=NOW - timedelta(days=1), end=NOW + timedelta(hours=1))
    upcoming = FakeSession(id=5, start=NOW + timedelta(hours=1), end=NOW + timedelta(hours=2))
    no_start = FakeSession(id=6)

    result = open_sessions([later, earlier, finished, yesterday, upcoming, no_start], NOW)

    assert [s.id for s in result] == [2, 1]

def test_next_class_within_a_day():
    soon = FakeSession(id=1, start=NOW + timedelta(minutes=30))
    later = FakeSession(id=2, start=NOW + timedelta(hours=3))
    too_far = FakeSession(id=3, start=NOW + timedelta(days=2))
    started = FakeSession(id=4, start=NOW)

    session, seconds = next_class([later, too_far, soon, started], NOW)

    assert session.id == 1
    assert seconds == 1800

def test_next_class_none():
    assert next_class([FakeSession(id=1, start=NOW - timedelta(hours=1))], NOW) is None

def test_merge_into_timetable():
    lecture = FakeSession(
        id=1, course_id=10, start=NOW - timedelta(minutes=5), end=NOW + timedelta(hours=1),
        room='Online https://zoom.us/j/123456789?pwd=abc'
    )
    lab = FakeSession(id=2, course_id=99, start=NOW + timedelta(days=1), end=NOW + timedelta(days=1, hours=2))
    incomplete = FakeSession(id=3, start=NOW)

    blocks = merge_into_timetable([lecture, lab, incomplete], {10: 'Algorithms'}, NOW)

    assert [b.session_id for b in blocks] == [1, 2]
    assert blocks[0].title == 'Algorithms'
    assert blocks[0].is_open is True
    assert blocks[0].day_of_week == 3
    assert blocks[0].links[0].meeting_id == '123456789'
    assert blocks[1].title == 'Class'
    assert blocks[1].is_open is False
    assert blocks[1].to_dict()['day_of_week'] == 4

"""Tests for the check-in state machine."""
from datetime import datetime, timedelta

import pytest

from planora.services.attendance_service import AttendanceVerifier
from planora.services.checkin_flow import CheckInFlow, CheckInState
from planora.utils.errors import SessionClosedError, ValidationError, WrongSessionError
from fakes import FakeSession, InMemoryAttendanceStore

NOW = datetime(2026, 3, 11, 10, 0)

def make_flow(session, callbacks=None):
    store = InMemoryAttendanceStore([session])
    verifier = AttendanceVerifier(store, student_id=3, clock=lambda: NOW)
    flow = CheckInFlow(
        session, verifier,
        on_success=callbacks.append if callbacks is not None else None
    )
    return flow, store

@pytest.fixture
def session():
    return FakeSession(
        id=12, start=NOW - timedelta(minutes=1), end=NOW + timedelta(hours=1),
        requires_passcode=True, passcode='ABCD'
    )

def test_starts_idle(session):
    flow, _ = make_flow(session)
    assert flow.state == CheckInState.IDLE

def test_success_is_terminal_and_fires_once(session):
    callbacks = []
    flow, store = make_flow(session, callbacks)

    assert flow.submit('ABCD') is True
    assert flow.state == CheckInState.SUCCEEDED
    assert flow.submit('ABCD') is True

    assert callbacks == [session]
    assert len(store.calls) == 1

def test_failure_can_be_retried(session):
    callbacks = []
    flow, store = make_flow(session, callbacks)

    assert flow.submit('WRONG') is False
    assert flow.state == CheckInState.FAILED
    assert flow.submit('WRONG') is False
    assert flow.submit('ABCD') is True

    assert flow.state == CheckInState.SUCCEEDED
    assert len(store.calls) == 3
    assert callbacks == [session]

def test_errors_propagate_and_leave_flow_failed(session):
    flow, store = make_flow(session)

    with pytest.raises(ValidationError):
        flow.submit('')

    assert flow.state == CheckInState.FAILED
    assert isinstance(flow.last_error, ValidationError)
    assert store.calls == []

    flow.reset()
    assert flow.state == CheckInState.IDLE

def test_closed_session_fails():
    closed = FakeSession(id=1, start=NOW - timedelta(hours=2), end=NOW - timedelta(hours=1))
    flow, _ = make_flow(closed)

    with pytest.raises(SessionClosedError):
        flow.submit()
    assert flow.state == CheckInState.FAILED

def test_scan_with_passcode_auto_submits(session):
    flow, store = make_flow(session)

    assert flow.handle_scan('{"sessionId":12,"passcode":"ABCD"}') is True
    assert flow.succeeded
    assert store.calls[0].method == 'scan'

def test_scan_without_passcode_waits_for_input(session):
    flow, store = make_flow(session)

    assert flow.handle_scan('12') is False
    assert flow.state == CheckInState.IDLE
    assert store.calls == []

    assert flow.submit('ABCD', method='scan') is True

def test_scan_auto_submits_when_no_passcode_needed():
    open_session = FakeSession(id=5, start=NOW - timedelta(minutes=1))
    flow, _ = make_flow(open_session)

    assert flow.handle_scan('https://lms.example.edu/att?sessid=5') is True

def test_scan_for_other_session(session):
    flow, store = make_flow(session)

    with pytest.raises(WrongSessionError):
        flow.handle_scan('{"sessionId":99,"passcode":"ABCD"}')
    assert store.calls == []

def test_unreadable_scan(session):
    flow, _ = make_flow(session)

    with pytest.raises(ValidationError, match='Invalid QR code format'):
        flow.handle_scan('not json')

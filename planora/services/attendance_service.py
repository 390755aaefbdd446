"""Attendance check-in verification and session window queries."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from planora.services.stores import AttendanceStore, CheckInRequest
from planora.utils.conference_links import ConferenceLink, detect_links
from planora.utils.errors import SessionClosedError, SessionNotOpenError, ValidationError

logger = logging.getLogger(__name__)

METHOD_PASSCODE = 'passcode'
METHOD_SCAN = 'scan'
SUBMIT_METHODS = (METHOD_PASSCODE, METHOD_SCAN)

def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)

def is_session_open(session, now: datetime) -> bool:
    """Check whether now falls inside the session window."""
    if session.start is not None and now < session.start:
        return False
    if session.end is not None and now > session.end:
        return False
    return True

def check_window(session, now: datetime, allow_early: bool = False) -> None:
    """Raise when the session window has closed or has not opened yet."""
    if session.end is not None and now > session.end:
        raise SessionClosedError()
    if not allow_early and session.start is not None and now < session.start:
        raise SessionNotOpenError()

def open_sessions(sessions: Iterable, now: datetime) -> list:
    """Sessions that started today and are open at now, earliest first."""
    day_start = _start_of_day(now)
    day_end = day_start + timedelta(days=1)

    result = [
        session for session in sessions
        if session.start is not None
        and day_start <= session.start <= day_end
        and is_session_open(session, now)
    ]
    return sorted(result, key=lambda session: session.start)

def next_class(sessions: Iterable, now: datetime) -> Optional[Tuple[object, float]]:
    """The next session starting within a day, with seconds until it starts."""
    horizon = now + timedelta(days=1)
    upcoming = [
        session for session in sessions
        if session.start is not None and now < session.start <= horizon
    ]
    if not upcoming:
        return None

    session = min(upcoming, key=lambda s: s.start)
    return session, (session.start - now).total_seconds()

@dataclass
class TimetableBlock:
    """A session placed on the weekly timetable."""
    session_id: int
    title: str
    start: datetime
    end: datetime
    day_of_week: int  # ISO weekday, Monday is 1
    location: Optional[str]
    course_id: Optional[int]
    is_open: bool
    links: List[ConferenceLink] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'session_id': self.session_id,
            'title': self.title,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'day_of_week': self.day_of_week,
            'location': self.location,
            'course_id': self.course_id,
            'is_open': self.is_open,
            'links': [link.to_dict() for link in self.links]
        }

def merge_into_timetable(sessions: Iterable, course_titles: Dict[int, str],
                         now: datetime) -> List[TimetableBlock]:
    """Build timetable blocks for sessions with a complete window."""
    blocks = []
    for session in sessions:
        if session.start is None or session.end is None:
            continue
        blocks.append(TimetableBlock(
            session_id=session.id,
            title=course_titles.get(session.course_id) or 'Class',
            start=session.start,
            end=session.end,
            day_of_week=session.start.isoweekday(),
            location=session.room,
            course_id=session.course_id,
            is_open=is_session_open(session, now),
            links=detect_links(session.room)
        ))
    return blocks

class AttendanceVerifier:
    """
    Validates a student's check-in attempt before handing it to the store.

    Validation runs in a fixed order: passcode presence, then window closed,
    then window not yet open. Only a request that passes all three reaches
    the store, which checks the passcode and records attendance at most once
    per session and student.
    """

    def __init__(
        self,
        store: AttendanceStore,
        student_id: int,
        clock: Callable[[], datetime] = None,
        allow_early_check_in: bool = False,
        on_success: Callable[[object], None] = None
    ):
        self.store = store
        self.student_id = student_id
        self.clock = clock or datetime.now
        self.allow_early_check_in = allow_early_check_in
        self.on_success = on_success

    def submit_attendance(self, session, passcode: Optional[str] = None,
                          method: str = METHOD_PASSCODE) -> bool:
        """Validate and submit a check-in; returns the store's verdict."""
        if session is None or session.id is None:
            raise ValidationError("session is required")
        if method not in SUBMIT_METHODS:
            raise ValidationError(f"Unknown check-in method: {method}")

        passcode = passcode.strip() if isinstance(passcode, str) else None
        if session.requires_passcode and not passcode:
            raise ValidationError("passcode required")

        now = self.clock()
        check_window(session, now, allow_early=self.allow_early_check_in)

        request = CheckInRequest(
            session_id=session.id,
            student_id=self.student_id,
            passcode=passcode or None,
            method=method,
            submitted_at=now
        )
        success = self.store.submit(request)

        if success:
            logger.info("Check-in accepted for %s", request.idempotency_key)
            if self.on_success is not None:
                self.on_success(session)
        else:
            logger.info("Check-in refused for %s", request.idempotency_key)
        return success

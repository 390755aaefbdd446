"""
Repository interfaces over the persisted entities.

The check-in verifier and the habit engine only talk to these interfaces, so
tests can swap in in-memory fakes while the API uses the SQLAlchemy versions.
"""
import hmac
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from planora import db
from planora.models.attendance import AttendanceRecord
from planora.models.attendance_session import AttendanceSession
from planora.models.habit import Habit, HabitEntry
from planora.utils.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CheckInRequest:
    """A verified check-in handed to the attendance store."""
    session_id: int
    student_id: int
    passcode: Optional[str]
    method: str
    submitted_at: datetime

    @property
    def idempotency_key(self) -> str:
        return f"{self.session_id}:{self.student_id}"

class AttendanceStore(ABC):
    """Authoritative passcode check and idempotent attendance recording."""

    @abstractmethod
    def submit(self, request: CheckInRequest) -> bool:
        """Record attendance; True if recorded now or already present."""

    @abstractmethod
    def get_session(self, session_id: int):
        """Return the session or None."""

    @abstractmethod
    def list_sessions(self, window_start: datetime, window_end: datetime) -> list:
        """Sessions whose start falls inside the window, ordered by start."""

def passcodes_match(expected: Optional[str], supplied: Optional[str]) -> bool:
    """Compare passcodes ignoring case and surrounding whitespace."""
    if not expected or not supplied:
        return False
    return hmac.compare_digest(
        expected.strip().upper().encode(),
        supplied.strip().upper().encode()
    )

class SQLAlchemyAttendanceStore(AttendanceStore):
    """Attendance store backed by the application database."""

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        return db.session.get(AttendanceSession, session_id)

    def list_sessions(self, window_start: datetime, window_end: datetime) -> List[AttendanceSession]:
        return (
            AttendanceSession.query
            .filter(AttendanceSession.start >= window_start)
            .filter(AttendanceSession.start <= window_end)
            .order_by(AttendanceSession.start.asc())
            .all()
        )

    def submit(self, request: CheckInRequest) -> bool:
        try:
            return self._record(request)
        except IntegrityError:
            # A concurrent submission for the same pair won the insert
            db.session.rollback()
            logger.info("Check-in %s recorded concurrently", request.idempotency_key)
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to record check-in %s: %s", request.idempotency_key, e)
            raise StoreError() from e

    def _record(self, request: CheckInRequest) -> bool:
        session = self.get_session(request.session_id)
        if session is None:
            raise NotFoundError("Attendance session not found")

        existing = AttendanceRecord.query.filter_by(
            session_id=request.session_id,
            student_id=request.student_id
        ).first()
        if existing:
            logger.info("Check-in %s already recorded", request.idempotency_key)
            return True

        if session.requires_passcode and not passcodes_match(session.passcode, request.passcode):
            logger.info("Check-in %s rejected: passcode mismatch", request.idempotency_key)
            return False

        db.session.add(AttendanceRecord(
            session_id=request.session_id,
            student_id=request.student_id,
            method=request.method,
            checked_in_at=request.submitted_at
        ))
        db.session.commit()

        logger.info("Recorded check-in %s via %s", request.idempotency_key, request.method)
        return True

class HabitRepository(ABC):
    """Typed access to habits and their entries."""

    @abstractmethod
    def get_habit(self, habit_id: int):
        """Return the habit or None."""

    @abstractmethod
    def list_entries(self, habit_id: int) -> list:
        """All entries of a habit."""

    @abstractmethod
    def create_entry(self, habit_id: int, date: datetime, count: int,
                     completed_at: Optional[datetime]):
        """Insert a new entry."""

    @abstractmethod
    def delete_entry(self, entry_id: int) -> None:
        """Remove an entry."""

    @abstractmethod
    def upsert_entry(self, habit_id: int, date: datetime, count: int,
                     completed_at: Optional[datetime]):
        """Add count to the entry for date, creating it when missing."""

class SQLAlchemyHabitRepository(HabitRepository):
    """Habit repository backed by the application database."""

    def get_habit(self, habit_id: int) -> Optional[Habit]:
        return db.session.get(Habit, habit_id)

    def list_entries(self, habit_id: int) -> List[HabitEntry]:
        return (
            HabitEntry.query
            .filter_by(habit_id=habit_id)
            .order_by(HabitEntry.date.asc())
            .all()
        )

    def create_entry(self, habit_id, date, count, completed_at):
        entry = HabitEntry(habit_id=habit_id, date=date, count=count, completed_at=completed_at)
        return self._commit(entry)

    def delete_entry(self, entry_id: int) -> None:
        entry = db.session.get(HabitEntry, entry_id)
        if entry is None:
            raise NotFoundError("Habit entry not found")
        try:
            db.session.delete(entry)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError("Habit entry could not be deleted") from e

    def upsert_entry(self, habit_id, date, count, completed_at):
        entry = HabitEntry.query.filter_by(habit_id=habit_id, date=date).first()
        if entry is None:
            entry = HabitEntry(habit_id=habit_id, date=date, count=count, completed_at=completed_at)
        else:
            entry.count += count
            entry.completed_at = completed_at or entry.completed_at
        return self._commit(entry)

    def _commit(self, entry: HabitEntry) -> HabitEntry:
        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to save habit entry: %s", e)
            raise StoreError("Habit entry could not be saved") from e
        return entry

"""Attendance record created by a successful check-in."""
from datetime import datetime
from planora import db
from planora.models.base import BaseModel

class AttendanceRecord(BaseModel):
    """One successful check-in per session and student."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )

    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    method = db.Column(db.String(20), default='passcode', nullable=False)  # passcode, scan
    checked_in_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    def __repr__(self):
        return f'<AttendanceRecord {self.session_id}-{self.student_id}>'

"""Scheduled attendance session."""
from planora import db
from planora.models.base import BaseModel

class AttendanceSession(BaseModel):
    """Session students check into with a passcode or a scanned code."""

    __tablename__ = 'attendance_sessions'

    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=True)
    start = db.Column(db.DateTime, nullable=True, index=True)
    end = db.Column(db.DateTime, nullable=True)
    room = db.Column(db.String(500), nullable=True)
    requires_passcode = db.Column(db.Boolean, default=False, nullable=False)
    passcode = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(30), default='Open', nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic',
                              cascade='all, delete-orphan')

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary; the passcode never leaves the server."""
        return super().to_dict(exclude=(exclude or []) + ['passcode'])

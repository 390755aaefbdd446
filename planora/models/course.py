"""Course model."""
from planora import db
from planora.models.base import BaseModel

class Course(BaseModel):
    """A course a student is enrolled in."""

    __tablename__ = 'courses'

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50), nullable=True)
    lms_id = db.Column(db.String(64), unique=True, nullable=True, index=True)

    sessions = db.relationship('AttendanceSession', backref='course', lazy='dynamic')

    def __repr__(self):
        return f'<Course {self.name}>'

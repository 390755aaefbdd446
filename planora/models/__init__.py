"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .course import Course
from .attendance_session import AttendanceSession
from .attendance import AttendanceRecord
from .habit import Habit, HabitEntry

__all__ = [
    'BaseModel', 'User', 'UserRole', 'Course',
    'AttendanceSession', 'AttendanceRecord',
    'Habit', 'HabitEntry'
]

"""Database seeding service for sample data."""
from datetime import datetime, timedelta

from planora import db
from planora.models.attendance_session import AttendanceSession
from planora.models.course import Course
from planora.models.habit import Habit, HabitEntry
from planora.models.user import User, UserRole

class SeedService:
    """Service to seed database with sample data."""

    @staticmethod
    def seed_all(now: datetime = None):
        """Seed all sample data."""
        now = now or datetime.now()
        teacher = SeedService.seed_users()
        courses = SeedService.seed_courses()
        SeedService.seed_sessions(teacher, courses, now)
        SeedService.seed_habits(now)

    @staticmethod
    def _user(email, name, role, password):
        user = User.query.filter_by(email=email).first()
        if not user:
            user = User(email=email, name=name, role=role)
            user.set_password(password)
            db.session.add(user)
        return user

    @staticmethod
    def seed_users():
        """Seed one teacher and one student."""
        teacher = SeedService._user('teacher@planora.app', 'Dr. Ada Lovelace', UserRole.TEACHER, 'teacher123')
        SeedService._user('student@planora.app', 'Sam Student', UserRole.STUDENT, 'student123')
        db.session.commit()
        return teacher

    @staticmethod
    def seed_courses():
        """Seed sample courses."""
        courses = []
        for name, code in [('Algorithms', 'CS201'), ('Linear Algebra', 'MA210'), ('Databases', 'CS305')]:
            course = Course.query.filter_by(code=code).first()
            if not course:
                course = Course(name=name, code=code)
                db.session.add(course)
            courses.append(course)
        db.session.commit()
        return courses

    @staticmethod
    def seed_sessions(teacher, courses, now):
        """Seed a session open right now and one later today per course."""
        for offset, course in enumerate(courses):
            start = now - timedelta(minutes=30) + timedelta(hours=offset * 2)
            db.session.add(AttendanceSession(
                course_id=course.id,
                start=start,
                end=start + timedelta(hours=1, minutes=30),
                room='Room 1.0{} / https://zoom.us/j/12345678{}'.format(offset + 1, offset),
                requires_passcode=offset == 0,
                passcode='ABCD' if offset == 0 else None,
                created_by=teacher.id
            ))
        db.session.commit()

    @staticmethod
    def seed_habits(now):
        """Seed habits with a few days of history for the student."""
        student = User.query.filter_by(email='student@planora.app').first()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        for name, color, days in [('Read 20 pages', '#4F46E5', 5), ('Workout', '#16A34A', 2)]:
            habit = Habit(owner_id=student.id, name=name, color=color)
            db.session.add(habit)
            db.session.flush()
            for back in range(days):
                day = today - timedelta(days=back)
                db.session.add(HabitEntry(habit_id=habit.id, date=day, completed_at=day, count=1))
        db.session.commit()

"""Habit and its daily completion entries."""
from planora import db
from planora.models.base import BaseModel

class Habit(BaseModel):
    """A habit with a completion target per period."""

    __tablename__ = 'habits'

    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    color = db.Column(db.String(9), nullable=True)
    frequency = db.Column(db.String(10), default='Daily', nullable=False)
    target_count = db.Column(db.Integer, default=1, nullable=False)

    # Habit exclusively owns its entries
    entries = db.relationship('HabitEntry', backref='habit', lazy='select',
                              cascade='all, delete-orphan', order_by='HabitEntry.date')

    def __repr__(self):
        return f'<Habit {self.name}>'

class HabitEntry(BaseModel):
    """Completions logged for one habit on one calendar day."""

    __tablename__ = 'habit_entries'
    __table_args__ = (
        db.UniqueConstraint('habit_id', 'date', name='uq_habit_entry_day'),
    )

    habit_id = db.Column(db.Integer, db.ForeignKey('habits.id'), nullable=False, index=True)
    date = db.Column(db.DateTime, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    count = db.Column(db.Integer, default=1, nullable=False)

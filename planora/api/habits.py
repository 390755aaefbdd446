"""Habit tracking API endpoints."""
from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from planora.models.habit import Habit
from planora.services.habit_service import (
    CreateEntry, HabitService, completion_rate, current_streak, is_completed_today
)
from planora.services.stores import SQLAlchemyHabitRepository
from planora.utils.errors import NotFoundError
from planora.utils.helpers import get_clock, isoformat, success_response
from planora.utils.validators import Validator, ensure_valid

habits_bp = Blueprint('habits', __name__)

def _service() -> HabitService:
    return HabitService(SQLAlchemyHabitRepository(), clock=get_clock())

def _own_habit(habit_id: int) -> Habit:
    """Load a habit owned by the current user."""
    habit = Habit.get_by_id(habit_id)
    if habit is None or habit.owner_id != int(get_jwt_identity()):
        raise NotFoundError("Habit not found")
    return habit

def _habit_payload(habit: Habit, now) -> dict:
    data = habit.to_dict()
    data['current_streak'] = current_streak(habit.entries, now)
    data['completed_today'] = is_completed_today(habit.entries, now)
    return data

@habits_bp.route('', methods=['GET'])
@jwt_required()
def list_habits():
    """Current user's habits with streak information."""
    now = get_clock()()
    habits = (
        Habit.query
        .filter_by(owner_id=int(get_jwt_identity()))
        .order_by(Habit.name.asc())
        .all()
    )

    return success_response(data={
        'habits': [_habit_payload(habit, now) for habit in habits],
        'total': len(habits)
    })

@habits_bp.route('', methods=['POST'])
@jwt_required()
def create_habit():
    """Create a habit."""
    data = request.get_json(silent=True) or {}
    ensure_valid(Validator.validate_habit(data))

    habit = Habit(
        owner_id=int(get_jwt_identity()),
        name=data['name'].strip(),
        color=data.get('color'),
        frequency=data.get('frequency', 'Daily'),
        target_count=data.get('target_count', 1)
    )
    habit.save()

    return success_response(
        data=_habit_payload(habit, get_clock()()),
        message="Habit created",
        status_code=201
    )

@habits_bp.route('/summary', methods=['GET'])
@jwt_required()
def habits_summary():
    """How many habits are done today, plus the streak leaderboard."""
    now = get_clock()()
    habits = Habit.query.filter_by(owner_id=int(get_jwt_identity())).all()

    streaks = sorted(
        ({'habit_id': h.id, 'name': h.name, 'current_streak': current_streak(h.entries, now)}
         for h in habits),
        key=lambda item: item['current_streak'],
        reverse=True
    )

    return success_response(data={
        'total_habits': len(habits),
        'completed_today': sum(1 for h in habits if is_completed_today(h.entries, now)),
        'completion_rate': completion_rate([h.entries for h in habits], now),
        'top_streaks': streaks[:3]
    })

@habits_bp.route('/<int:habit_id>', methods=['GET'])
@jwt_required()
def get_habit(habit_id):
    """Habit details with its most recent entries."""
    habit = _own_habit(habit_id)
    data = _habit_payload(habit, get_clock()())

    recent = sorted(habit.entries, key=lambda entry: entry.date, reverse=True)[:10]
    data['recent_entries'] = [
        {
            'id': entry.id,
            'date': isoformat(entry.date),
            'completed_at': isoformat(entry.completed_at),
            'count': entry.count
        }
        for entry in recent
    ]
    return success_response(data=data)

@habits_bp.route('/<int:habit_id>', methods=['DELETE'])
@jwt_required()
def delete_habit(habit_id):
    """Delete a habit and all of its entries."""
    habit = _own_habit(habit_id)
    habit.delete()
    current_app.logger.info('Habit %s deleted', habit_id)
    return success_response(message="Habit deleted")

@habits_bp.route('/<int:habit_id>/toggle', methods=['POST'])
@jwt_required()
def toggle_habit(habit_id):
    """Mark today complete, or undo today's completion."""
    _own_habit(habit_id)
    instruction = _service().toggle(habit_id)
    completed = isinstance(instruction, CreateEntry)

    return success_response(
        data={'habit_id': habit_id, 'completed_today': completed},
        message="Marked complete" if completed else "Completion removed"
    )

@habits_bp.route('/<int:habit_id>/log', methods=['POST'])
@jwt_required()
def log_habit(habit_id):
    """Log one or more completions for today."""
    _own_habit(habit_id)
    data = request.get_json(silent=True) or {}

    entry = _service().log_completion(habit_id, data.get('count', 1))
    return success_response(data={
        'habit_id': habit_id,
        'date': isoformat(entry.date),
        'count': entry.count
    }, message="Completion logged")

@habits_bp.route('/<int:habit_id>/stats', methods=['GET'])
@jwt_required()
def habit_stats(habit_id):
    """Streak and progress for a timeframe (day, week, month, year, 7d)."""
    _own_habit(habit_id)
    timeframe = request.args.get('timeframe') or current_app.config.get('HABIT_DEFAULT_TIMEFRAME', 'week')
    return success_response(data=_service().stats(habit_id, timeframe))

"""Custom decorators for authorization."""
from functools import wraps
from flask_jwt_extended import get_jwt_identity
from planora import db
from planora.models.user import User, UserRole
from planora.utils.helpers import error_response

def current_user() -> User:
    """Load the user behind the current JWT identity."""
    return db.session.get(User, int(get_jwt_identity()))

def teacher_required(f):
    """Decorator to require teacher role or higher."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()

        if not user:
            return error_response("User not found", 404)

        if not user.is_teacher():
            return error_response("Teacher access required", 403)

        return f(*args, **kwargs)
    return decorated_function

def student_required(f):
    """Decorator to require student role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()

        if not user:
            return error_response("User not found", 404)

        if user.role != UserRole.STUDENT:
            return error_response("Student access required", 403)

        return f(*args, **kwargs)
    return decorated_function

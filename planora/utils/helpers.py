"""Helper functions for the application."""
from datetime import datetime
from typing import Any, Callable, Optional

from flask import current_app, jsonify

from planora.utils.errors import ValidationError

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400):
    """Return consistent error response."""
    return jsonify({
        'error': True,
        'message': message,
        'status_code': status_code
    }), status_code

def get_clock() -> Callable[[], datetime]:
    """Return the clock configured for the current app."""
    return current_app.config.get('CLOCK') or datetime.now

def parse_datetime(value: Optional[str], field: str) -> Optional[datetime]:
    """Parse an ISO-8601 request value, raising ValidationError on bad input."""
    if value in (None, ''):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid datetime for {field}")
    # Stored datetimes are naive local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed

def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize an optional datetime."""
    return value.isoformat() if value else None

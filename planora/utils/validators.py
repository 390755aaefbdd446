"""Validation utilities for the application."""
import re
from typing import Dict, List, Any

from planora.utils.errors import ValidationError

HABIT_FREQUENCIES = ('Daily', 'Weekly', 'Monthly')
HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_name(name: str) -> Dict[str, Any]:
        """Validate a user or habit name."""
        errors = []

        if not name or not name.strip():
            errors.append("Name is required")
        elif len(name.strip()) < 2:
            errors.append("Name must be at least 2 characters long")
        elif len(name.strip()) > 100:
            errors.append("Name is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field.title()} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_habit(data: Dict) -> Dict[str, Any]:
        """Validate habit creation payload."""
        errors = list(Validator.validate_name(data.get('name')).get('errors'))

        frequency = data.get('frequency', 'Daily')
        if frequency not in HABIT_FREQUENCIES:
            errors.append(f"Frequency must be one of {', '.join(HABIT_FREQUENCIES)}")

        target_count = data.get('target_count', 1)
        if isinstance(target_count, bool) or not isinstance(target_count, int) or target_count < 1:
            errors.append("Target count must be a positive integer")

        color = data.get('color')
        if color is not None and not HEX_COLOR.match(color):
            errors.append("Color must be a hex value like #4F46E5")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_session_window(start, end) -> Dict[str, Any]:
        """Validate that an attendance window ends after it starts."""
        errors = []

        if start is not None and end is not None and end < start:
            errors.append("Session end must not be before its start")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

def ensure_valid(result: Dict[str, Any]) -> None:
    """Raise ValidationError for a failed Validator result."""
    if not result["is_valid"]:
        raise ValidationError("; ".join(result["errors"]))

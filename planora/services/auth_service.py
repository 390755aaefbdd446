"""Authentication service for user management."""
from datetime import datetime
from typing import Optional, Tuple

from flask_jwt_extended import create_access_token, create_refresh_token
from sqlalchemy.exc import SQLAlchemyError

from planora import db
from planora.models.user import User, UserRole
from planora.utils.validators import Validator

class AuthService:
    @staticmethod
    def _tokens(user: User) -> dict:
        # JWT subjects must be strings
        identity = str(user.id)
        return {
            "access_token": create_access_token(identity=identity),
            "refresh_token": create_refresh_token(identity=identity),
        }

    @staticmethod
    def login(email: str, password: str) -> Tuple[Optional[dict], Optional[str]]:
        """Authenticate user and return tokens."""
        if not email or not password:
            return None, "Email and password are required"

        if not Validator.validate_email(email):
            return None, "Invalid email format"

        user = User.query.filter_by(email=email.lower().strip()).first()

        if not user:
            return None, "Invalid email or password"

        if not user.check_password(password):
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            user.save()
            return None, "Invalid email or password"

        if not user.is_active:
            return None, "Account is deactivated"

        user.failed_login_attempts = 0
        user.last_login = datetime.now()
        user.save()

        result = AuthService._tokens(user)
        result["user"] = user.to_dict()
        return result, None

    @staticmethod
    def register(email: str, password: str, name: str, role: str = "student") -> Tuple[Optional[dict], Optional[str]]:
        """Register new user."""
        if not all([email, password, name]):
            return None, "Email, password and name are required"

        if not Validator.validate_email(email):
            return None, "Invalid email format"

        for check in (Validator.validate_password(password), Validator.validate_name(name)):
            if not check["is_valid"]:
                return None, check["errors"][0]

        email = email.lower().strip()
        if User.query.filter_by(email=email).first():
            return None, "Email already exists"

        try:
            user_role = UserRole((role or "student").lower())
        except ValueError:
            user_role = UserRole.STUDENT
        # Admins are only created from the CLI
        if user_role == UserRole.ADMIN:
            user_role = UserRole.STUDENT

        user = User(email=email, name=name.strip(), role=user_role)
        user.set_password(password)
        try:
            user.save()
        except SQLAlchemyError:
            db.session.rollback()
            return None, "Registration failed"

        return user.to_dict(), None

    @staticmethod
    def get_user_by_id(user_id) -> Optional[User]:
        """Get user by ID."""
        return db.session.get(User, int(user_id))

    @staticmethod
    def refresh_token(user_id) -> Tuple[Optional[dict], Optional[str]]:
        """Generate new access token."""
        user = AuthService.get_user_by_id(user_id)
        if not user or not user.is_active:
            return None, "User not found or inactive"

        return {
            "access_token": create_access_token(identity=str(user.id)),
            "user": user.to_dict()
        }, None

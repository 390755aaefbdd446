"""Shared model columns and persistence helpers."""
from datetime import datetime
from typing import Any, Dict, Optional

from planora import db

class BaseModel(db.Model):
    """Integer primary key, local-time timestamps and save/delete helpers."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    def save(self) -> 'BaseModel':
        db.session.add(self)
        db.session.commit()
        return self

    def delete(self) -> None:
        db.session.delete(self)
        db.session.commit()

    def to_dict(self, exclude: list = None) -> Dict[str, Any]:
        """Column values keyed by name, datetimes as ISO strings."""
        exclude = set(exclude or [])
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            result[column.name] = value.isoformat() if isinstance(value, datetime) else value

        return result

    @classmethod
    def get_by_id(cls, id: int) -> Optional['BaseModel']:
        return db.session.get(cls, id)

    @classmethod
    def get_or_404(cls, id: int) -> 'BaseModel':
        """Load by primary key or abort with 404."""
        return db.get_or_404(cls, id)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.id}>'

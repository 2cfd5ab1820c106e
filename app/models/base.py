from app.extensions import db
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import uuid


def utcnow():
    return datetime.now(timezone.utc)


def enum_column(enum_cls, name, **kwargs):
    """Enum column persisted by value, matching the database enum type."""
    return db.Column(
        db.Enum(enum_cls, name=name, values_callable=lambda e: [member.value for member in e]),
        **kwargs,
    )


class BaseModel(db.Model):
    """Base model with common fields and methods"""

    __abstract__ = True

    # column -> StateMachine, checked by the status transition hook
    __state_machines__ = {}

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    @classmethod
    def table_name(cls) -> str:
        return cls.__tablename__

    def to_dict(self):
        """Convert model to dictionary"""
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            elif isinstance(value, Enum):
                result[column.name] = value.value
            elif isinstance(value, Decimal):
                result[column.name] = float(value)
            else:
                result[column.name] = value
        return result


class SoftDeleteMixin:
    """Mixin for soft delete functionality"""

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

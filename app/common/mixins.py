"""
Common mixins for owner-scoped models
"""
from sqlalchemy import Column, DateTime, Uuid, ForeignKey
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from uuid import uuid4


class IdMixin:
    """UUID primary key generated by the application"""

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)


class OwnerMixin:
    """Mixin for per-user records; every query on these models is scoped by owner_id"""

    @declared_attr
    def owner_id(cls):
        return Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SoftDeleteMixin:
    """Mixin for soft delete functionality"""

    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def not_deleted(cls):
        """Criterio SQL para excluir registros eliminados."""
        return cls.deleted_at.is_(None)

    def soft_delete(self):
        self.deleted_at = func.now()

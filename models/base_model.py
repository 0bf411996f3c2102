#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Soft-Connect API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- save() that goes through DBStorage
- SoftDeleteMixin with soft_delete() / restore()

Notes:
- Timestamps are naive UTC. SQLite drops tzinfo on the way in, so we never
  hand it aware values; use utcnow() / as_naive_utc() when comparing.
- Soft-deletable models list the mixin first:
    class Post(SoftDeleteMixin, BaseModel, Base): ...
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
import models

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime read back from the DB to naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    - save() wired to DBStorage
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        Timestamps are filled on insert unless passed explicitly (e.g. in tests).
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id}) {self.__dict__}"

    def save(self):
        """Touch updated_at and persist the instance using DBStorage."""
        self.updated_at = utcnow()
        models.storage.new(self)
        models.storage.save()


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp. Soft-deleted rows stay in the table and
    are filtered out by the queries that serve them.
    """

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def restore(self):
        """Clear deleted_at and commit."""
        self.deleted_at = None
        models.storage.new(self)
        models.storage.save()

    def soft_delete(self):
        """Set deleted_at and commit."""
        self.deleted_at = utcnow()
        models.storage.new(self)
        models.storage.save()


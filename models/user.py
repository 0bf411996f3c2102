from enum import Enum

from sqlalchemy import Column, String, Index
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel, SoftDeleteMixin


class Role(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "users"

    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    # Stored stripped + lower-cased; soft-deleted rows keep their email reserved
    email = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SAEnum(Role, name="user_role", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=Role.STUDENT,
    )
    status = Column(
        SAEnum(UserStatus, name="user_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=UserStatus.ACTIVE,
    )

    # Hard delete removes the ledger rows through the ORM as well as the FK,
    # so SQLite without PRAGMA foreign_keys behaves the same as Postgres.
    tokens = relationship("Token", back_populates="user", cascade="all, delete-orphan")
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    answers = relationship("Answer", back_populates="author", cascade="all, delete-orphan")
    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_status", "status"),
    )

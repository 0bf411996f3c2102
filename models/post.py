from enum import Enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import BaseModel, Base, SoftDeleteMixin


class PostStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    DELETED = "deleted"


class Post(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "posts"

    title = Column(String(255), nullable=False)  # 10..255 chars (validated in schema)
    description = Column(Text, nullable=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Denormalized counters, kept in step by the posts/answers blueprints
    views = Column(Integer, nullable=False, default=0)
    likes_count = Column(Integer, nullable=False, default=0)
    answers_count = Column(Integer, nullable=False, default=0)

    status = Column(
        SAEnum(
            PostStatus,
            name="post_status",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=PostStatus.ACTIVE,
    )
    is_solved = Column(Boolean, nullable=False, default=False)

    author = relationship("User", back_populates="posts")
    answers = relationship("Answer", back_populates="post", cascade="all, delete-orphan")
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("views >= 0", name="ck_posts_views_nonnegative"),
        CheckConstraint("likes_count >= 0", name="ck_posts_likes_nonnegative"),
        CheckConstraint("answers_count >= 0", name="ck_posts_answers_nonnegative"),
        Index("ix_posts_author_id", "author_id"),
        Index("ix_posts_status_created", "status", "created_at"),
    )

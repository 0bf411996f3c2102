from sqlalchemy import Column, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin


class Answer(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "answers"

    content = Column(Text, nullable=False)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    post = relationship("Post", back_populates="answers")
    author = relationship("User", back_populates="answers")
    likes = relationship("Like", back_populates="answer", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_answers_post_id", "post_id"),
        Index("idx_answers_author_id", "author_id"),
        Index("idx_answers_created_at", "created_at"),
    )

    @property
    def likes_count(self) -> int:
        return len(self.likes)

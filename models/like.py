from sqlalchemy import Column, String, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Like(BaseModel, Base):
    """A user's like on either a post or an answer (never both). Hard rows."""
    __tablename__ = "likes"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True)
    answer_id = Column(String(36), ForeignKey("answers.id", ondelete="CASCADE"), nullable=True, index=True)

    user = relationship("User", back_populates="likes")
    post = relationship("Post", back_populates="likes")
    answer = relationship("Answer", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="unique_like_per_user_post"),
        UniqueConstraint("answer_id", "user_id", name="unique_like_per_user_answer"),
        CheckConstraint(
            "(post_id IS NULL) <> (answer_id IS NULL)",
            name="ck_likes_single_target",
        ),
    )

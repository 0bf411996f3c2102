"""
Token ledger: every access/refresh (and reset/verification) token issued
is stored here so it can be revoked server-side.

A row is valid only while:
- used is False
- now < expires_at
- the JWT signature verifies and its "type" claim equals token_type
Rows are marked used on logout (or refresh rotation) and kept as an audit trail.
"""
from enum import Enum

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel, SoftDeleteMixin


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    RESET = "reset"
    VERIFICATION = "verification"


class Token(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "tokens"

    token = Column(String(512), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_type = Column(
        SAEnum(
            TokenType,
            name="token_type",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="tokens")

    __table_args__ = (
        Index("ix_tokens_user_id", "user_id"),
        Index("ix_tokens_expires_at", "expires_at"),
        Index("ix_tokens_used", "used"),
    )

    def __repr__(self):
        return f"<Token {self.token_type} user={self.user_id} used={self.used}>"

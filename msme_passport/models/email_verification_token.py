"""Single-use email verification tokens. Only the SHA-256 of the raw token is stored."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from msme_passport.database import Base, new_id


class EmailVerificationToken(Base):
    __tablename__ = "email_verification_tokens"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship(
        "User",
        backref=backref("email_verification_tokens", cascade="all, delete-orphan", passive_deletes=True),
    )

"""Append-only audit log. No updates or deletes - every record is permanent."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from msme_passport.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # SET NULL so deleting a business or invitation keeps its history; message/meta preserve names
    business_id = Column(String(36), ForeignKey("business_profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    invitation_id = Column(String(36), ForeignKey("collaboration_invitations.id", ondelete="SET NULL"), nullable=True, index=True)

    # category: status_change | payment | passport | collaboration | failed_attempt
    category = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    meta = Column(JSON, nullable=True)

    actor_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_email = Column(String(255), nullable=True)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

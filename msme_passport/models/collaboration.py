"""Collaboration: invitations from a business owner and the grants they produce."""
import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Index, UniqueConstraint, text
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from msme_passport.database import Base, new_id


class InvitationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    expired = "expired"


COLLABORATOR_ROLE = "collaborator"


class CollaborationInvitation(Base):
    __tablename__ = "collaboration_invitations"
    # At most one pending invitation per (business, invitee email)
    __table_args__ = (
        Index(
            "uq_collaboration_invitations_pending",
            "business_id",
            "invitee_email",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("business_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    inviter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    invitee_email = Column(String(255), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=InvitationStatus.pending.value)
    message = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    business = relationship(
        "BusinessProfile",
        backref=backref("collaboration_invitations", cascade="all, delete-orphan", passive_deletes=True),
    )
    inviter = relationship("User")


class BusinessCollaboration(Base):
    __tablename__ = "business_collaborations"
    __table_args__ = (
        UniqueConstraint("business_id", "collaborator_id", name="uq_business_collaborations_business_collaborator"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("business_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    collaborator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=InvitationStatus.accepted.value)
    role = Column(String(20), nullable=False, default=COLLABORATOR_ROLE)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    business = relationship(
        "BusinessProfile",
        backref=backref("collaborations", cascade="all, delete-orphan", passive_deletes=True),
    )
    collaborator = relationship("User", foreign_keys=[collaborator_id])

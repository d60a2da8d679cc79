"""Collaboration invitation schemas."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, field_validator


class InvitationCreate(BaseModel):
    business_id: str
    invitee_email: EmailStr
    message: str | None = None

    @field_validator("invitee_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class InvitationRespond(BaseModel):
    action: Literal["accept", "reject"]


class InvitationResponse(BaseModel):
    id: str
    business_id: str
    business_name: str | None = None
    inviter_id: str
    inviter_name: str | None = None
    inviter_email: str | None = None
    invitee_email: str
    status: str
    message: str | None = None
    expires_at: datetime
    created_at: datetime | None = None

    @classmethod
    def from_invitation(cls, invitation) -> "InvitationResponse":
        return cls(
            id=invitation.id,
            business_id=invitation.business_id,
            business_name=invitation.business.business_name if invitation.business else None,
            inviter_id=invitation.inviter_id,
            inviter_name=invitation.inviter.full_name if invitation.inviter else None,
            inviter_email=invitation.inviter.email if invitation.inviter else None,
            invitee_email=invitation.invitee_email,
            status=invitation.status,
            message=invitation.message,
            expires_at=invitation.expires_at,
            created_at=invitation.created_at,
        )


class CollaboratorResponse(BaseModel):
    id: str
    business_id: str
    owner_id: str
    collaborator_id: str
    collaborator_name: str | None = None
    collaborator_email: str | None = None
    status: str
    role: str
    created_at: datetime | None = None

    @classmethod
    def from_collaboration(cls, collaboration) -> "CollaboratorResponse":
        user = collaboration.collaborator
        return cls(
            id=collaboration.id,
            business_id=collaboration.business_id,
            owner_id=collaboration.owner_id,
            collaborator_id=collaboration.collaborator_id,
            collaborator_name=user.full_name if user else None,
            collaborator_email=user.email if user else None,
            status=collaboration.status,
            role=collaboration.role,
            created_at=collaboration.created_at,
        )

"""Daily housekeeping: expire stale collaboration invitations and purge used-up verification tokens."""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from msme_passport.database import SessionLocal
from msme_passport.models.collaboration import CollaborationInvitation, InvitationStatus
from msme_passport.models.email_verification_token import EmailVerificationToken

log = logging.getLogger("uvicorn.error")


def expire_stale_invitations(db: Session, now: datetime) -> int:
    """Mark pending invitations past expires_at as expired. Returns how many were updated."""
    updated = (
        db.query(CollaborationInvitation)
        .filter(
            CollaborationInvitation.status == InvitationStatus.pending.value,
            CollaborationInvitation.expires_at < now,
        )
        .update({CollaborationInvitation.status: InvitationStatus.expired.value}, synchronize_session=False)
    )
    return updated


def purge_expired_tokens(db: Session, now: datetime) -> int:
    deleted = (
        db.query(EmailVerificationToken)
        .filter(EmailVerificationToken.expires_at < now)
        .delete(synchronize_session=False)
    )
    return deleted


def run_maintenance_job() -> None:
    """Scheduler entry point. Opens its own session."""
    db: Session = SessionLocal()
    try:
        now = datetime.now(timezone.utc)
        expired = expire_stale_invitations(db, now)
        purged = purge_expired_tokens(db, now)
        db.commit()
        if expired or purged:
            log.info("[Maintenance] Expired %d invitation(s), purged %d verification token(s).", expired, purged)
    finally:
        db.close()

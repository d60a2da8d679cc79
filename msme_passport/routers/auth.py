"""Signup, login, email ownership verification and password management."""
import html
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from msme_passport.config import get_settings
from msme_passport.database import get_db
from msme_passport.dependencies import get_current_user, get_now
from msme_passport.models.email_verification_token import EmailVerificationToken
from msme_passport.models.user import User
from msme_passport.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ResendVerificationRequest,
    SignupRequest,
    SignupResponse,
    Token,
)
from msme_passport.schemas.user import UserResponse
from msme_passport.services.audit_log import CATEGORY_FAILED_ATTEMPT, create_log, request_context
from msme_passport.services.auth import create_access_token, get_password_hash, verify_password
from msme_passport.services.notifications import send_verification_email
from msme_passport.services.tokens import compute_expiry, generate_raw_token, hash_token, is_expired

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])

EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
RESEND_MESSAGE = "If an account with that email exists and is not yet verified, a new verification link has been sent."


def _issue_verification_token(db: Session, user: User, now: datetime) -> str:
    """Store the hash of a fresh token (replacing older ones) and return the raw value."""
    db.query(EmailVerificationToken).filter(EmailVerificationToken.user_id == user.id).delete(synchronize_session=False)
    raw = generate_raw_token()
    db.add(
        EmailVerificationToken(
            user_id=user.id,
            token_hash=hash_token(raw),
            expires_at=compute_expiry(now, hours=get_settings().email_token_expire_hours),
        )
    )
    return raw


def _verification_link(raw_token: str) -> str:
    return f"{get_settings().server_base_url.rstrip('/')}/auth/verify?token={raw_token}"


def _send_verification(user: User, raw_token: str) -> None:
    sent = send_verification_email(user.email, _verification_link(raw_token))
    log.info("[Auth] Verification email sent=%s for %s", sent, user.email)


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(data: SignupRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    raw = _issue_verification_token(db, user, now)
    db.commit()
    db.refresh(user)
    # Delivery is best-effort; the account exists either way and the link can be resent
    _send_verification(user, raw)
    return SignupResponse(id=user.id, email=user.email)


@router.post("/login", response_model=Token)
def login(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        create_log(
            db,
            CATEGORY_FAILED_ATTEMPT,
            "Login failed",
            f"Failed login attempt for email: {data.email}.",
            actor_email=data.email,
            meta={"reason": "invalid_email_or_password"},
            **request_context(request),
        )
        db.commit()
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.email_verified:
        raise HTTPException(
            status_code=403,
            detail={
                "message": "Please verify your email first. Check your inbox or request a new verification link.",
                "error": EMAIL_NOT_VERIFIED,
            },
        )
    token = create_access_token(user.id, user.email)
    return Token(access_token=token, user=UserResponse.model_validate(user))


def _verify_page(title: str, body: str, status_code: int) -> HTMLResponse:
    login_url = html.escape(f"{get_settings().app_base_url.rstrip('/')}/login")
    content = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)} - MSME Passport</title></head>
<body style="font-family: sans-serif; max-width: 480px; margin: 4rem auto; text-align: center;">
<h1>{html.escape(title)}</h1>
<p>{html.escape(body)}</p>
<p><a href="{login_url}">Go to login</a></p>
</body>
</html>"""
    return HTMLResponse(content=content, status_code=status_code)


@router.get("/verify", response_class=HTMLResponse)
def verify_email(token: str | None = None, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    """Opened from the email link. Consuming a token deletes it."""
    if not token:
        return _verify_page("Missing token", "The verification link is incomplete.", 400)
    record = db.query(EmailVerificationToken).filter(EmailVerificationToken.token_hash == hash_token(token)).first()
    if not record:
        return _verify_page("Invalid link", "This verification link is invalid or has already been used.", 400)
    if is_expired(record.expires_at, now):
        db.delete(record)
        db.commit()
        return _verify_page("Link expired", "This verification link has expired. Request a new one from the login page.", 400)
    user = db.query(User).filter(User.id == record.user_id).first()
    if user:
        user.email_verified = True
    db.delete(record)
    db.commit()
    log.info("[Auth] Email verified for user %s", record.user_id)
    return _verify_page("Email verified", "Your email address has been verified. You can now sign in.", 200)


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(data: ResendVerificationRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    """Same answer whether or not the account exists."""
    user = db.query(User).filter(User.email == data.email).first()
    if user and not user.email_verified:
        raw = _issue_verification_token(db, user, now)
        db.commit()
        _send_verification(user, raw)
    return MessageResponse(message=RESEND_MESSAGE)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    current_user.hashed_password = get_password_hash(data.new_password)
    db.commit()
    return MessageResponse(message="Password updated")

"""MSME Passport - FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from msme_passport.config import get_settings
from msme_passport.database import Base, SessionLocal, engine
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from msme_passport.models import (  # noqa: F401
    User, MainAffiliate, SecondaryAffiliate, BusinessSecondaryAffiliate, BusinessProfile,
    BusinessDocument, CollaborationInvitation, BusinessCollaboration, EmailVerificationToken, AuditLog,
)
from msme_passport.routers import admin, affiliates, auth, businesses, collaborations, users, verify
from msme_passport.seed import seed_affiliates

log = logging.getLogger("uvicorn.error")

settings = get_settings()
app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(affiliates.router)
app.include_router(businesses.router)
app.include_router(collaborations.router)
app.include_router(verify.router)
app.include_router(admin.router)

scheduler = None


def _log_mail_configuration() -> None:
    if settings.mailgun_api_key and settings.mailgun_domain:
        from_addr = settings.mailgun_from_email or ""
        from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
        send_domain = settings.mailgun_domain.lower()
        if from_domain and from_domain != send_domain:
            log.warning("[Mailgun] from=%s does not match domain=%s. Emails will be sent as noreply@%s.", from_addr, send_domain, send_domain)
        else:
            log.info("[Mailgun] App using domain=%s from=%s", settings.mailgun_domain, from_addr or "(none)")
    elif settings.sendgrid_api_key:
        log.info("[SendGrid] App using from=%s", settings.sendgrid_from_email)
    else:
        log.warning("[Email] Not configured - emails will be skipped; set MAILGUN_API_KEY and MAILGUN_DOMAIN in .env and restart")


def init_db() -> None:
    """Create tables and seed the chambers."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_affiliates(db)
    finally:
        db.close()


@app.on_event("startup")
def startup():
    global scheduler
    _log_mail_configuration()
    try:
        init_db()
    except SQLAlchemyError as e:
        log.warning("Database startup failed (tables/seed skipped). Check DATABASE_URL and network. Error: %s", e)

    if settings.maintenance_cron_enabled:
        from apscheduler.schedulers.background import BackgroundScheduler
        from msme_passport.services.maintenance import run_maintenance_job

        scheduler = BackgroundScheduler()
        scheduler.add_job(run_maintenance_job, "cron", hour=3, minute=0)
        scheduler.start()
        log.info("[Maintenance] Daily job scheduled at 03:00")


@app.on_event("shutdown")
def shutdown():
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}

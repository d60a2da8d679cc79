"""Raw/hashed single-use tokens and expiry arithmetic."""
import hashlib
import secrets
from datetime import datetime, timedelta, timezone


def generate_raw_token(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def compute_expiry(now: datetime, *, hours: int = 0, days: int = 0) -> datetime:
    return now + timedelta(hours=hours, days=days)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return False
    return as_utc(expires_at) < as_utc(now)

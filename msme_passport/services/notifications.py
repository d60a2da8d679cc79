"""Email notifications (Mailgun preferred, SendGrid fallback). Best-effort: never raises."""
import logging
from html import escape

import httpx

from msme_passport.config import get_settings

log = logging.getLogger("uvicorn.error")

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send via Mailgun or SendGrid. Returns True if a provider accepted the message."""
    settings = get_settings()
    if settings.mailgun_api_key and settings.mailgun_domain:
        return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)
    if settings.sendgrid_api_key:
        return _send_email_sendgrid(to_email, subject, html_content, text_content=text_content, settings=settings)
    log.warning(
        "[Email] NOT SENT: to=%s subject=%s. Set MAILGUN_API_KEY and MAILGUN_DOMAIN (or SENDGRID_API_KEY) in .env.",
        to_email,
        subject,
    )
    return False


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).rstrip("/")
    domain = settings.mailgun_domain.lower()
    from_addr = settings.mailgun_from_email
    if "@" not in from_addr or from_addr.split("@")[-1].lower() != domain:
        # Mailgun only delivers when the sender matches the sending domain
        from_addr = f"noreply@{domain}"
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    auth = ("api", settings.mailgun_api_key)
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=auth, data=data)
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                log.info("[Mailgun] 401 with US endpoint. Retrying with EU endpoint...")
                r = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=auth, data=data)
    except httpx.HTTPError as e:
        log.warning("[Mailgun] Request failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False
    if 200 <= r.status_code < 300:
        log.info("[Mailgun] API success: to=%s status=%s", to_email, r.status_code)
        return True
    log.warning("[Mailgun] API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
    return False


def _send_email_sendgrid(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Mail

    message = Mail(
        from_email=(settings.sendgrid_from_email, settings.sendgrid_from_name),
        to_emails=to_email,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content or "",
    )
    try:
        SendGridAPIClient(settings.sendgrid_api_key).send(message)
    except Exception as e:
        # The SDK raises python_http_client errors as well as transport errors
        log.warning("[SendGrid] Send failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False
    log.info("[SendGrid] Sent: to=%s", to_email)
    return True

def send_verification_email(to_email: str, link: str) -> bool:
    subject = "[MSME Passport] Verify your email address"
    text = f"Welcome to MSME Passport. Confirm your email address by opening this link: {link} (valid for 24 hours)."
    html = f"""
    <p>Hello,</p>
    <p>Welcome to <strong>MSME Passport</strong>. Please confirm your email address to activate your account.</p>
    <p><a href="{escape(link)}">Verify my email</a></p>
    <p>This link expires in 24 hours. If you did not sign up, you can ignore this email.</p>
    <p>- MSME Passport</p>
    """
    return send_email(to_email, subject, html, text_content=text)


def send_collaboration_invitation_email(
    to_email: str,
    inviter_name: str,
    business_name: str,
    message: str | None = None,
) -> bool:
    subject = f"[MSME Passport] Invitation to collaborate on {business_name}"
    note = f"<p><em>{escape(message)}</em></p>" if message else ""
    text = f"{inviter_name} invited you to co-manage {business_name} on MSME Passport. Sign in to accept or decline."
    html = f"""
    <p>Hello,</p>
    <p><strong>{escape(inviter_name)}</strong> invited you to co-manage <strong>{escape(business_name)}</strong> on MSME Passport.</p>
    {note}
    <p>Sign in to accept or decline. The invitation expires in 7 days.</p>
    <p>- MSME Passport</p>
    """
    return send_email(to_email, subject, html, text_content=text)


def send_business_verified_email(to_email: str, business_name: str) -> bool:
    subject = f"[MSME Passport] {business_name} is verified"
    text = f"{business_name} has been verified. You can now generate and share its MSME passport."
    html = f"""
    <p>Hello,</p>
    <p><strong>{escape(business_name)}</strong> has been verified by our admin team.</p>
    <p>You can now generate and share its MSME passport.</p>
    <p>- MSME Passport</p>
    """
    return send_email(to_email, subject, html, text_content=text)


def send_business_rejected_email(to_email: str, business_name: str, reason: str) -> bool:
    subject = f"[MSME Passport] {business_name} needs attention"
    text = f"{business_name} was not approved. Reason: {reason}. Review the profile and resubmit."
    html = f"""
    <p>Hello,</p>
    <p><strong>{escape(business_name)}</strong> was not approved.</p>
    <p><strong>Reason:</strong> {escape(reason)}</p>
    <p>Review &amp; resubmit the business profile from your dashboard.</p>
    <p>- MSME Passport</p>
    """
    return send_email(to_email, subject, html, text_content=text)

"""
Send a test email through the configured provider (Mailgun, else SendGrid).
Usage: python scripts/send_test_email.py <to_email>
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from msme_passport.config import get_settings
from msme_passport.services.notifications import send_email


def main():
    to_email = (sys.argv[1] if len(sys.argv) > 1 else "").strip()
    if not to_email:
        print("Usage: python scripts/send_test_email.py <to_email>")
        sys.exit(1)

    settings = get_settings()
    if settings.mailgun_api_key and settings.mailgun_domain:
        print(f"Provider: Mailgun (domain={settings.mailgun_domain}, base={settings.mailgun_base_url})")
    elif settings.sendgrid_api_key:
        print(f"Provider: SendGrid (from={settings.sendgrid_from_email})")
    else:
        print("No email provider configured. Set MAILGUN_API_KEY and MAILGUN_DOMAIN (or SENDGRID_API_KEY) in .env")
        sys.exit(1)

    subject = "[MSME Passport] Test email"
    text = "This is a test from MSME Passport. If you received this, outgoing email is configured correctly."
    html = """
    <p>This is a <strong>test email</strong> from MSME Passport.</p>
    <p>If you received this, outgoing email is configured correctly.</p>
    <p>- MSME Passport</p>
    """
    if send_email(to_email, subject, html, text_content=text):
        print("Sent. Check the inbox (and spam) for", to_email)
    else:
        print("Failed: the provider rejected the message. See the log lines above.")
        print("  - Mailgun needs the private API key, not the domain name.")
        print("  - For EU Mailgun accounts set MAILGUN_BASE_URL=https://api.eu.mailgun.net")
        sys.exit(1)


if __name__ == "__main__":
    main()

from urllib.parse import parse_qs

import httpx
import pytest

from msme_passport.config import Settings
from msme_passport.services import notifications


@pytest.fixture
def mailgun(monkeypatch):
    """Configure Mailgun and route its HTTP calls through a mock transport."""
    settings = Settings(
        mailgun_api_key="key-test",
        mailgun_domain="mg.kedaikopi.com.my",
        mailgun_from_email="hello@kedaikopi.com.my",
        sendgrid_api_key="",
    )
    monkeypatch.setattr(notifications, "get_settings", lambda: settings)
    requests = []
    responses = []

    def handler(request):
        requests.append(request)
        if not responses:
            return httpx.Response(200, json={"id": "<1@mg>"})
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    real_client = httpx.Client
    monkeypatch.setattr(httpx, "Client", lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw))
    return requests, responses


def test_unconfigured_provider_skips_send(monkeypatch):
    monkeypatch.setattr(notifications, "get_settings", lambda: Settings(mailgun_api_key="", sendgrid_api_key=""))
    assert notifications.send_email("siti@kedaikopi.com.my", "Hi", "<p>Hi</p>") is False


def test_mailgun_send(mailgun):
    requests, _ = mailgun
    assert notifications.send_verification_email("siti@kedaikopi.com.my", "http://testserver/auth/verify?token=abc")
    (request,) = requests
    assert request.url == "https://api.mailgun.net/v3/mg.kedaikopi.com.my/messages"
    form = parse_qs(request.content.decode())
    assert form["to"] == ["siti@kedaikopi.com.my"]
    # sender outside the sending domain is replaced
    assert form["from"] == ["MSME Passport <noreply@mg.kedaikopi.com.my>"]
    assert "token=abc" in form["text"][0]


def test_mailgun_retries_eu_endpoint_on_401(mailgun):
    requests, responses = mailgun
    responses.append(httpx.Response(401, text="Forbidden"))
    assert notifications.send_business_verified_email("siti@kedaikopi.com.my", "Kedai Kopi Siti") is True
    assert [r.url.host for r in requests] == ["api.mailgun.net", "api.eu.mailgun.net"]


def test_mailgun_failure_returns_false(mailgun):
    _, responses = mailgun
    responses.append(httpx.Response(400, text="bad request"))
    assert notifications.send_business_rejected_email("siti@kedaikopi.com.my", "Kedai Kopi Siti", "Blurry") is False


def test_transport_error_returns_false(mailgun):
    _, responses = mailgun
    responses.append(httpx.ConnectError("connection refused"))
    assert notifications.send_email("siti@kedaikopi.com.my", "Hi", "<p>Hi</p>") is False


@pytest.fixture
def captured(monkeypatch):
    sent = []

    def _send(to_email, subject, html_content, text_content=None):
        sent.append({"html": html_content, "text": text_content})
        return True

    monkeypatch.setattr(notifications, "send_email", _send)
    return sent


def test_invitation_email_escapes_user_text(captured):
    notifications.send_collaboration_invitation_email(
        "ali@tokoali.com.my",
        "Siti <i>Rahman</i>",
        "Kedai <b>Kopi</b>",
        '<a href="https://phish.example">Click to accept</a>',
    )
    html = captured[-1]["html"]
    assert "<a href" not in html
    assert "<b>" not in html and "<i>" not in html
    assert "&lt;a href=&quot;https://phish.example&quot;&gt;Click to accept&lt;/a&gt;" in html
    assert "<strong>Kedai &lt;b&gt;Kopi&lt;/b&gt;</strong>" in html
    # plain text carries the values as typed
    assert "Kedai <b>Kopi</b>" in captured[-1]["text"]


def test_review_emails_escape_business_name_and_reason(captured):
    notifications.send_business_verified_email("siti@kedaikopi.com.my", "<script>x</script>")
    assert "<script>" not in captured[-1]["html"]
    notifications.send_business_rejected_email("siti@kedaikopi.com.my", "Kedai Kopi", '<img src="x">')
    assert "<img" not in captured[-1]["html"]
    assert "&lt;img src=&quot;x&quot;&gt;" in captured[-1]["html"]

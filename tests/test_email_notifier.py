import asyncio

import aiosmtplib
import pytest

from app.core.config import settings
from app.notifications import EmailNotifier
from app.notifications import templates


def _configured(**changes):
    update = {
        "smtp_host": "smtp.example.com",
        "smtp_username": "mailer",
        "smtp_password": "secret",
        "smtp_from_email": "admissions@uni.edu",
        "email_timeout_seconds": 0.05,
    }
    update.update(changes)
    return settings.model_copy(update=update)


@pytest.mark.asyncio
async def test_unconfigured_notifier_reports_failure(monkeypatch) -> None:
    calls = []

    async def fake_send(*args, **kwargs):
        calls.append(args)

    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    notifier = EmailNotifier(settings.model_copy(update={"smtp_host": None}))
    result = await notifier.send_approval("a@x.com", "Asha", "STU00001", "ABCD1234")
    assert result.success is False
    assert result.error == "SMTP configuration incomplete"
    assert calls == []


@pytest.mark.asyncio
async def test_approval_email_is_sent(monkeypatch) -> None:
    sent = []

    async def fake_send(message, **kwargs):
        sent.append((message, kwargs))

    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    notifier = EmailNotifier(_configured())
    result = await notifier.send_approval("a@x.com", "Asha", "STU00001", "ABCD1234")

    assert result.success is True
    assert result.message_id
    message, kwargs = sent[0]
    assert message["To"] == "a@x.com"
    assert kwargs["hostname"] == "smtp.example.com"
    body = message.get_body(preferencelist=("plain",)).get_content()
    assert "STU00001" in body
    assert "ABCD1234" in body


@pytest.mark.asyncio
async def test_smtp_error_is_returned(monkeypatch) -> None:
    async def fake_send(message, **kwargs):
        raise aiosmtplib.SMTPException("relay denied")

    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    result = await EmailNotifier(_configured()).send_rejection("a@x.com", "Asha", "incomplete")
    assert result.success is False
    assert "relay denied" in result.error


@pytest.mark.asyncio
async def test_slow_server_times_out(monkeypatch) -> None:
    async def fake_send(message, **kwargs):
        await asyncio.sleep(10)

    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    result = await EmailNotifier(_configured()).send_approval("a@x.com", "Asha", "STU00001", "ABCD1234")
    assert result.success is False
    assert "timed out" in result.error


def test_rejection_template_escapes_html() -> None:
    subject, text, html = templates.rejection_email("<b>Asha</b>", "score < cutoff")
    assert "&lt;b&gt;Asha&lt;/b&gt;" in html
    assert "score &lt; cutoff" in html
    assert "score < cutoff" in text

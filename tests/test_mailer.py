"""Tests for the SMTP mailer."""

from __future__ import annotations

from unittest.mock import patch

from inkwell.services.mailer import Mailer


def _enabled_mailer(**overrides) -> Mailer:
    m = Mailer()
    m.enabled = True
    m.host = "smtp.example.com"
    m.port = 587
    m.user = None
    m.passwd = None
    m.use_ssl = False
    m.use_starttls = False
    for key, value in overrides.items():
        setattr(m, key, value)
    return m


def test_build_message_has_text_and_html_parts():
    msg = Mailer().build_message(
        "Hello", "reader@example.com", "plain body", "<p>html body</p>"
    )
    assert msg["To"] == "reader@example.com"
    assert msg["Subject"] == "Hello"
    assert msg.is_multipart()
    types = [part.get_content_type() for part in msg.iter_parts()]
    assert types == ["text/plain", "text/html"]


def test_build_message_text_only():
    msg = Mailer().build_message("Hello", "reader@example.com", "plain body")
    assert not msg.is_multipart()
    assert msg.get_content().strip() == "plain body"


def test_disabled_mailer_is_noop():
    m = _enabled_mailer(enabled=False)
    with patch("inkwell.services.mailer.smtplib.SMTP") as smtp_cls:
        m.send("Hi", "reader@example.com", "body")
    smtp_cls.assert_not_called()


def test_send_plain_smtp_with_login():
    m = _enabled_mailer(user="bot", passwd="secret", use_starttls=True)
    with patch("inkwell.services.mailer.smtplib.SMTP") as smtp_cls:
        m.send("Hi", "reader@example.com", "body")

    smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10)
    smtp = smtp_cls.return_value.__enter__.return_value
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("bot", "secret")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "reader@example.com"


def test_send_over_ssl():
    m = _enabled_mailer(use_ssl=True, port=465)
    with patch("inkwell.services.mailer.smtplib.SMTP_SSL") as ssl_cls:
        m.send("Hi", "reader@example.com", "body")

    assert ssl_cls.call_args.args == ("smtp.example.com", 465)
    smtp = ssl_cls.return_value.__enter__.return_value
    smtp.login.assert_not_called()
    smtp.send_message.assert_called_once()

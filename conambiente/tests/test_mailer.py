# conambiente/tests/test_mailer.py
import smtplib

import pytest

from conambiente.notifier import mailer as mailer_module
from conambiente.notifier.mailer import Mailer


class RecordingSMTP:
    """Sesión SMTP falsa: registra las llamadas y puede fallar en login o starttls."""

    instances = []
    fail_on = None

    def __init__(self, host, port, timeout=None, context=None):
        self.calls = ["connect"]
        self.closed = False
        RecordingSMTP.instances.append(self)

    def starttls(self, context=None):
        self.calls.append("starttls")
        if self.fail_on == "starttls":
            raise smtplib.SMTPNotSupportedError("STARTTLS no disponible")

    def login(self, user, password):
        self.calls.append("login")
        if self.fail_on == "login":
            raise smtplib.SMTPAuthenticationError(535, b"auth failed")

    def close(self):
        self.closed = True


@pytest.fixture()
def smtp_cls(monkeypatch):
    RecordingSMTP.instances = []
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", RecordingSMTP)
    monkeypatch.setattr(mailer_module.smtplib, "SMTP_SSL", RecordingSMTP)
    return RecordingSMTP


def test_connect_logs_in_over_ssl(smtp_cls):
    m = Mailer(host="smtp.example.com", port=465, user="web@conambiente.com", password="x", secure=True)
    smtp = m._connect()
    assert smtp.calls == ["connect", "login"]
    assert smtp.closed is False


def test_failed_login_closes_connection(smtp_cls, monkeypatch):
    monkeypatch.setattr(smtp_cls, "fail_on", "login")
    m = Mailer(host="smtp.example.com", port=465, user="web@conambiente.com", password="malo", secure=True)
    with pytest.raises(smtplib.SMTPAuthenticationError):
        m._connect()
    assert smtp_cls.instances[-1].closed is True


def test_failed_starttls_closes_connection(smtp_cls, monkeypatch):
    monkeypatch.setattr(smtp_cls, "fail_on", "starttls")
    m = Mailer(host="smtp.example.com", port=587, user="web@conambiente.com", password="x", secure=False)
    with pytest.raises(smtplib.SMTPNotSupportedError):
        m._connect()
    smtp = smtp_cls.instances[-1]
    assert smtp.calls == ["connect", "starttls"]
    assert smtp.closed is True

# conambiente/tests/conftest.py
import smtplib

import mongomock
import pytest

from conambiente.notifier.mailer import Mailer
from conambiente.notifier.newsletter import Newsletter
from conambiente.utils.settings import Settings


class FakeMailer(Mailer):
    """Registra los envíos en memoria; `fail_for` simula rechazos del servidor SMTP."""

    def __init__(self):
        super().__init__(host="localhost", port=465, user="web@conambiente.com", password="x")
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, html, text=None, attachments=(), from_name=None):
        if to in self.fail_for or "*" in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({to: (550, b"rejected")})
        self.sent.append({
            "to": to,
            "subject": subject,
            "html": html,
            "text": text,
            "attachments": [a.filename for a in attachments],
            "from_name": from_name,
        })

    def verify(self):
        return True


class DummyScheduler:
    """Guarda los jobs en vez de ejecutarlos; los tests deciden cuándo correrlos."""

    def __init__(self):
        self.jobs = []

    def add_job(self, func, *a, args=None, **k):
        self.jobs.append((func, list(args or [])))

    def run_all(self):
        results = [func(*args) for func, args in self.jobs]
        self.jobs.clear()
        return results

    def start(self): pass
    def shutdown(self, wait=False): pass


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        jwt_secret="test-secret",
        admin_email="admin@conambiente.com",
        admin_password="s3cret",
        mongo_uri="mongodb://localhost:27017/test",
        mail_user="web@conambiente.com",
        mail_pass="x",
        mail_to_contact="contacto@conambiente.com",
        mail_to_pqr="pqr@conambiente.com",
        mail_to_work="talento@conambiente.com",
        public_base_url="https://conambiente.com",
        uploads_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture()
def db():
    from conambiente.storage import repository as repo
    database = mongomock.MongoClient().conambiente_test
    repo.use_database(database)
    yield database
    repo.close()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def scheduler():
    return DummyScheduler()


@pytest.fixture()
def app(monkeypatch, settings, db, mailer, scheduler):
    from conambiente.api import deps
    from conambiente.api import main as api_main
    from conambiente.storage import repository as repo

    # Mongo en memoria en vez de la conexión real
    monkeypatch.setattr(api_main, "connect_database", lambda: repo.use_database(db), raising=True)

    monkeypatch.setattr(deps, "settings", settings, raising=True)
    monkeypatch.setattr(deps, "mailer", mailer, raising=True)
    monkeypatch.setattr(deps, "scheduler", scheduler, raising=True)
    newsletter = Newsletter(mailer, repo.get_active_subscribers, settings.public_base_url)
    monkeypatch.setattr(deps, "newsletter", newsletter, raising=True)
    return api_main.app


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient
    # Usa contexto para ejecutar el lifespan con los patches aplicados
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_headers(settings):
    from conambiente.api.auth import issue_token
    return {"Authorization": f"Bearer {issue_token(settings)}"}

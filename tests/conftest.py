import os

#configure before anything from pulse is imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ADMIN_KEY"] = "test-admin-key"
os.environ["JWT_SECRET"] = "test-secret-that-is-at-least-32-bytes"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["EMAIL_HOST"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from pulse.data.database import build_session_factory, init_models
from pulse.data.models import BandModel, WatchModel
from pulse.main import create_app
from pulse.services import mailer

ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}

ADDRESS = {
    "full_name": "Jamie Runner",
    "line1": "1 Infinite Loop",
    "city": "Cupertino",
    "state": "CA",
    "postal_code": "95014",
    "country": "US",
    "email": "jamie@example.com",
}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_models(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def client(engine):
    app = create_app(engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_band(db):
    def _make(**overrides) -> BandModel:
        values = dict(
            name="Nike Sport Loop",
            description="Lightweight, breathable, and adjustable",
            price=Decimal("49.99"),
            color="Midnight Fog",
            material="Fluoroelastomer",
            stock=5,
            features=["Sweat-resistant"],
            compatibilities=["Series 4+", "All sizes"],
        )
        values.update(overrides)
        band = BandModel(**values)
        db.add(band)
        db.commit()
        return band

    return _make


@pytest.fixture
def make_watch(db):
    def _make(**overrides) -> WatchModel:
        values = dict(
            name="Apple Watch Series 8",
            description="Advanced health features",
            price=Decimal("399.00"),
            stock=10,
            sizes=["41mm", "45mm"],
            colors=["Midnight", "Starlight"],
            features=["ECG"],
            release_year=2022,
        )
        values.update(overrides)
        watch = WatchModel(**values)
        db.add(watch)
        db.commit()
        return watch

    return _make


@pytest.fixture
def sent_emails(monkeypatch):
    """Captures every e-mail the Celery tasks try to deliver."""
    outbox = []

    def fake_send(to, subject, html, reply_to=None):
        outbox.append({"to": to, "subject": subject, "html": html, "reply_to": reply_to})
        return True

    monkeypatch.setattr(mailer, "send_email", fake_send)
    return outbox

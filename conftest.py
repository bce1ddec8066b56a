"""
Fixtures compartidos por los tests de todos los módulos.

La base de datos es SQLite en memoria; el esquema se crea y se destruye
en cada test. Las tareas de Celery y el cliente de OpenAI se reemplazan
por dobles que registran las llamadas.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

from types import SimpleNamespace
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.database import Base, SessionLocal, engine
from app.modules.auth.models import User, Membership
from app.modules.auth.utils import hash_password, create_access_token
from app.modules.email import tasks as email_tasks
from app.modules.ai import service as ai_service

DEFAULT_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Captura los correos encolados en lugar de enviarlos a Celery."""
    sent = []

    def capture(kind):
        def delay(**kwargs):
            sent.append({"kind": kind, **kwargs})
        return delay

    monkeypatch.setattr(email_tasks.send_invitation_email_task, "delay", capture("invitation"))
    monkeypatch.setattr(email_tasks.send_password_reset_email_task, "delay", capture("password_reset"))
    return sent


class FakeCompletions:
    def __init__(self):
        self.responses = []
        self.error = None
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if self.responses else "{}"
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    """Doble del cliente de OpenAI: devuelve las respuestas JSON encoladas."""

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai(monkeypatch):
    fake = FakeOpenAI()
    monkeypatch.setattr(ai_service, "get_openai_client", lambda: fake)
    return fake


class Account(SimpleNamespace):
    """Usuario de prueba con sus headers de autenticación."""

    @property
    def headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "X-Tenant-ID": str(self.tenant_id)
        }


def issue_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email, "user_name": user.username})


def add_member(db, tenant_id: UUID, role: str, email: str, username: str) -> Account:
    user = User(
        email=email,
        password=hash_password(DEFAULT_PASSWORD),
        username=username,
        is_active=True,
        onboarding_completed=True
    )
    db.add(user)
    db.flush()
    db.add(Membership(user_id=user.id, tenant_id=tenant_id, role=role))
    db.commit()
    return Account(user_id=user.id, tenant_id=tenant_id, username=username, email=email, token=issue_token(user))


def signup(client: TestClient, email: str, username: str, organization_name: str) -> Account:
    response = client.post("/auth/signup", json={
        "email": email,
        "password": DEFAULT_PASSWORD,
        "username": username,
        "organization_name": organization_name
    })
    assert response.status_code == 201, response.text
    data = response.json()
    return Account(
        user_id=UUID(data["user"]["id"]),
        tenant_id=UUID(data["active_tenant_id"]),
        username=username,
        email=email,
        token=data["access_token"]
    )


@pytest.fixture
def owner(client) -> Account:
    return signup(client, "owner@kade.lk", "Nimal", "Kade Electronics")


@pytest.fixture
def admin(db_session, owner) -> Account:
    return add_member(db_session, owner.tenant_id, "admin", "admin@kade.lk", "Kamala")


@pytest.fixture
def staff(db_session, owner) -> Account:
    return add_member(db_session, owner.tenant_id, "staff", "staff@kade.lk", "Sunil")


@pytest.fixture
def other_owner(client) -> Account:
    """Owner de otra organización, para verificar el aislamiento por tenant."""
    return signup(client, "other@shop.lk", "Ruwan", "Other Shop")


@pytest.fixture
def make_member(db_session, owner):
    """Crear miembros adicionales en la organización del owner."""
    def factory(role: str, email: str, username: str) -> Account:
        return add_member(db_session, owner.tenant_id, role, email, username)
    return factory

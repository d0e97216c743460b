import pytest
from fastapi.testclient import TestClient

from kennedy.api.main import app
from kennedy.assistant.service import AssistantReply, get_generator_dep
from kennedy.db.connect import get_session_dep, get_session_factory_dep
from kennedy.drive.client import get_storage_dep


class StubGenerator:
    def __init__(self):
        self.calls = []
        self.reply = AssistantReply(content="Respuesta generada", provider="test")

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.reply


@pytest.fixture
def client(session_factory, fake_storage, monkeypatch):
    monkeypatch.delenv("KENNEDY_JWT_SECRET", raising=False)
    monkeypatch.delenv("SUPABASE_JWT_SECRET", raising=False)
    monkeypatch.setenv("KENNEDY_AUTH_DISABLED", "1")

    generator = StubGenerator()

    def override_get_session():
        with session_factory() as session:
            yield session

    app.dependency_overrides[get_session_dep] = override_get_session
    app.dependency_overrides[get_session_factory_dep] = lambda: session_factory
    app.dependency_overrides[get_storage_dep] = lambda: fake_storage
    app.dependency_overrides[get_generator_dep] = lambda: generator

    with TestClient(app) as client:
        client.session_factory = session_factory  # type: ignore[attr-defined]
        client.storage = fake_storage  # type: ignore[attr-defined]
        client.generator = generator  # type: ignore[attr-defined]
        yield client

    app.dependency_overrides.clear()

import os
import sys
from pathlib import Path

# Must be set before importing backend.app.config so a local .env can't leak in.
os.environ["DISABLE_DOTENV"] = "1"
os.environ.setdefault("AI_API_KEY", "")
os.environ.setdefault("EMBEDDING_DIM", "64")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeMeta:
    def __init__(self, model: str = "fake-model"):
        self.model = model
        self.latency_ms = 1
        self.status_code = 200
        self.retries = 0


class FakeCompletionClient:
    """
    Stand-in for CompletionClient.

    `responder(function_name, user_text)` returns the function-call arguments or
    raises an AIClientError subclass. Every call is recorded in `calls`.
    """

    def __init__(self, responder=None):
        self.responder = responder
        self.calls: list[dict] = []

    async def call_function(self, **kwargs):
        self.calls.append(kwargs)
        if self.responder is None:
            raise AssertionError("unexpected completion call")
        return self.responder(kwargs["function_name"], kwargs["user_text"]), FakeMeta(kwargs.get("model", ""))

    def calls_for(self, function_name: str) -> list[dict]:
        return [c for c in self.calls if c["function_name"] == function_name]


@pytest.fixture()
def engine(tmp_path: Path):
    eng = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'test.sqlite3'}",
        connect_args={"check_same_thread": False},
    )
    from backend.app.database import Base
    from backend.app.models import embedding, profile  # noqa: F401

    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def fake_ai():
    return FakeCompletionClient()


@pytest.fixture()
def client(engine, fake_ai):
    from backend.app.database import get_db
    from backend.app.main import app
    from backend.app.services.ai_client import get_completion_client

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: fake_ai
    # Not used as a context manager: startup (init_db against the real DATABASE_URL) is skipped.
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_profile(db_session):
    from backend.app.models.profile import Profile

    def _make(user_id: str, **fields) -> Profile:
        fields.setdefault("full_name", user_id.title())
        p = Profile(user_id=user_id, **fields)
        db_session.add(p)
        db_session.commit()
        db_session.refresh(p)
        return p

    return _make

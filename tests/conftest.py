from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient
from oauth_login import oauth_external
from oauth_login.config import Settings
from oauth_login.database import Base, build_session_factory, init_db
from oauth_login.main import create_app
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

TEST_SECRET_KEY = "test-secret-key-for-session-signing-0123456789"


class DummyResponse:
    def __init__(self, status_code: int, payload: Any = None, *, invalid_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("invalid json")
        return self._payload


class FakeGitHub:
    """Stands in for ``httpx.post``/``httpx.get`` and records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.token_response: DummyResponse | Exception = DummyResponse(
            200, {"access_token": "gh-access-token", "token_type": "bearer"}
        )
        self.user_response: DummyResponse | Exception = DummyResponse(
            200,
            {
                "id": 42,
                "login": "ada",
                "name": "Ada",
                "email": "ada@example.com",
                "avatar_url": "https://avatars.example.com/42",
            },
        )
        self.emails_response: DummyResponse | Exception = DummyResponse(200, [])

    def set_user(self, **payload: Any) -> None:
        self.user_response = DummyResponse(200, payload)

    @staticmethod
    def _reply(response: DummyResponse | Exception) -> DummyResponse:
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url: str, **_kwargs: Any) -> DummyResponse:
        self.calls.append(("POST", url))
        return self._reply(self.token_response)

    def get(self, url: str, **_kwargs: Any) -> DummyResponse:
        self.calls.append(("GET", url))
        if url.endswith("/user/emails"):
            return self._reply(self.emails_response)
        return self._reply(self.user_response)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite://",
        secret_key=TEST_SECRET_KEY,
        github_client_id="github-client-id",
        github_client_secret="github-client-secret",
        github_redirect_url=None,
        client_app_url="http://localhost:5173",
        metrics_enabled=False,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    db = build_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app) -> TestClient:
    # https so the Secure cookies round-trip through the client's jar
    return TestClient(app, base_url="https://testserver")


@pytest.fixture
def fake_github(monkeypatch) -> FakeGitHub:
    fake = FakeGitHub()
    monkeypatch.setattr(oauth_external.httpx, "post", fake.post)
    monkeypatch.setattr(oauth_external.httpx, "get", fake.get)
    return fake


@pytest.fixture
def start_login(client):
    def _start(provider: str = "github") -> str:
        response = client.get(f"/auth/{provider}", follow_redirects=False)
        assert response.status_code == 307
        return parse_qs(urlparse(response.headers["location"]).query)["state"][0]

    return _start


@pytest.fixture
def network_error() -> httpx.HTTPError:
    return httpx.ConnectError("connection refused")


@pytest.fixture
def dummy_response() -> type[DummyResponse]:
    return DummyResponse

"""Shared test fixtures and utilities."""
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from userfeed.config import Settings
from userfeed.core.database import build_engine, dispose_engine, ensure_users_table
from userfeed.core.dependencies import get_http_client
from userfeed.main import create_app


def make_person(first: str, last: str, email: str) -> dict:
    return {
        "gender": "female",
        "name": {"title": "Ms", "first": first, "last": last},
        "email": email,
        "picture": {
            "large": f"https://randomuser.me/api/portraits/women/{first.lower()}.jpg",
            "thumbnail": f"https://randomuser.me/api/portraits/thumb/women/{first.lower()}.jpg",
        },
    }


FAKE_PEOPLE = [
    make_person("A", "B", "a@x"),
    make_person("C", "D", "c@x"),
    make_person("E", "F", "e@x"),
]


class FakeRandomUser:
    """Stands in for randomuser.me and records every request it receives."""

    def __init__(self, people=None):
        self.people = list(people) if people is not None else list(FAKE_PEOPLE)
        self.status_code = 200
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "Uh oh, something has gone wrong."})
        requested = int(request.url.params.get("results", len(self.people)))
        return httpx.Response(
            200,
            json={"results": self.people[:requested], "info": {"results": requested, "page": 1}},
        )


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "ENVIRONMENT": "test",
        "DATABASE_URL": f"sqlite:///{tmp_path / 'userfeed.sqlite3'}",
        "LOG_LEVEL": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def build_client(settings: Settings, upstream: FakeRandomUser) -> TestClient:
    app = create_app(settings)

    async def fake_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http:
            yield http

    app.dependency_overrides[get_http_client] = fake_http_client
    return TestClient(app)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def upstream():
    return FakeRandomUser()


@pytest.fixture
def client(settings, upstream):
    with build_client(settings, upstream) as c:
        yield c


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    ensure_users_table(engine)
    yield engine
    dispose_engine(engine)

"""Pytest fixtures: per-test SQLite database, API client and fake Redis."""
import os

# Set test env BEFORE any imports that use config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from vampyr import rate_limit
from vampyr.auth import create_access_token
from vampyr.database import Base, get_db
from vampyr.main import app
from vampyr.models import Player, User


class FakeRedis:
    """Enough of the redis client for INCR/EXPIRE/TTL counters."""

    def __init__(self) -> None:
        self.values: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    def incr(self, key: str) -> int:
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def expire(self, key: str, seconds: int) -> None:
        self.ttls[key] = seconds

    def ttl(self, key: str) -> int:
        return self.ttls.get(key, -1)


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'link.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def make_user(db):
    def _make_user(username: str) -> User:
        user = User(id=uuid4(), username=username, name=username.title())
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture()
def make_player(db):
    def _make_player(nickname: str) -> Player:
        player = Player(nickname=nickname)
        db.add(player)
        db.commit()
        return player

    return _make_player


@pytest.fixture()
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limit, "_get_redis", lambda: fake)
    return fake


@pytest.fixture()
def client(session_factory, fake_redis):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token({"sub": str(user.id), "ver": user.token_version or 0})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers

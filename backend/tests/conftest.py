"""
Shared fixtures: in-memory database, recording broadcaster, stub scorer
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from prompt_battle.core.config import settings
from prompt_battle.core.database import Base, get_db, import_models
from prompt_battle.core.errors import ScoringError
from prompt_battle.api.deps import get_connection_manager, get_scoring_service, get_phase_timer
from prompt_battle.schemas.battle_schemas import Evaluation
from prompt_battle.services.scoring_service import ScoringService
from prompt_battle.services.websocket_service import ConnectionManager

from main import app

IMAGE_URLS = [
    "https://example.com/cat.jpg",
    "https://example.com/dog.jpg",
]


class RecordingManager(ConnectionManager):
    """Keeps every broadcast so tests can assert the event sequence"""

    def __init__(self):
        super().__init__()
        self.events = []

    async def broadcast(self, room_id, event, payload=None):
        self.events.append((room_id, event, payload or {}))
        await super().broadcast(room_id, event, payload)

    def names(self, room_id=None):
        return [event for rid, event, _ in self.events if room_id is None or rid == room_id]

    def payloads(self, event):
        return [payload for _, name, payload in self.events if name == event]


class StubScoringService(ScoringService):
    """Scores prompts by a lookup on their text, no network"""

    def __init__(self):
        super().__init__(api_key="test")
        self.scores = {}
        self.default_score = 50
        self.error = None
        self.crash = None
        self.calls = []

    async def score(self, image_url, prompts):
        self.calls.append((image_url, prompts))
        if self.error:
            raise ScoringError(self.error)
        if self.crash:
            raise self.crash
        return [
            Evaluation(
                user_id=p["user_id"],
                prompt_id=p["id"],
                score=self.scores.get(p["prompt_text"], self.default_score),
                reason=f"feedback for {p['prompt_text']}"
            )
            for p in prompts
        ]


@pytest.fixture(autouse=True)
def fast_intermission(monkeypatch):
    monkeypatch.setattr(settings, "INTERMISSION_DELAY_MS", 0)
    monkeypatch.setattr(settings, "SERVER_PHASE_TIMER", False)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    import_models()
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def manager():
    return RecordingManager()


@pytest.fixture()
def scorer():
    return StubScoringService()


@pytest.fixture()
def client(session_factory, manager, scorer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_connection_manager] = lambda: manager
    app.dependency_overrides[get_scoring_service] = lambda: scorer
    app.dependency_overrides[get_phase_timer] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def images(client):
    response = client.post("/api/images/import", json={"urls": IMAGE_URLS})
    assert response.status_code == 200
    return IMAGE_URLS


def create_user(client, name="Player"):
    response = client.post("/api/users", json={"name": name})
    assert response.status_code == 200
    return response.json()["id"]


def create_room(client, host_id, total_rounds=3, title="Test room"):
    response = client.post("/api/room/create", json={
        "title": title,
        "user_id": host_id,
        "total_rounds": total_rounds,
    })
    assert response.status_code == 200
    return response.json()["roomId"]


def join(client, room_id, user_id):
    response = client.post(f"/api/room/{room_id}/join", json={"user_id": user_id})
    assert response.status_code == 200
    return response.json()


def advance(client, room_id, user_id):
    return client.post("/api/battle/advance-round", json={"room_id": room_id, "user_id": user_id})


def submit(client, room_id, round_id, user_id, text):
    return client.post("/api/battle/submit-prompt", json={
        "room_id": room_id,
        "round_id": round_id,
        "user_id": user_id,
        "prompt_text": text,
    })


def score(client, room_id, round_id, image_url):
    return client.post("/api/battle/score-prompts", json={
        "room_id": room_id,
        "round_id": round_id,
        "image_url": image_url,
    })


@pytest.fixture()
def game(client, images):
    """A room with a host and two joined players"""
    host = create_user(client, "Host")
    alice = create_user(client, "Alice")
    bob = create_user(client, "Bob")
    room_id = create_room(client, host, total_rounds=2)
    join(client, room_id, alice)
    join(client, room_id, bob)
    return {"room_id": room_id, "host": host, "alice": alice, "bob": bob}

import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import copy
import re
import secrets

import pytest
from fastapi.testclient import TestClient
import fakeredis.aioredis as fakeredis

import event_api.controllers.events as events_controller
import event_api.controllers.health as health_controller
import event_api.lifespan as lifespan
import event_api.main as main
import event_api.populate as populate_module
from event_api.models.events import omit_identifier, to_entity, validate_document


class FakeEventStore:
    """In-memory stand-in for ``event_api.db`` with the same semantics."""

    def __init__(self):
        self.events: dict[str, dict] = {}
        self.users: dict[str, dict] = {}

    def add_user(self, user_id: str, name: str, image_url: str | None = None, **extra):
        self.users[user_id] = {"name": name, "imageUrl": image_url, **extra}

    def add_event(self, **fields) -> str:
        event_id = secrets.token_hex(12)
        self.events[event_id] = validate_document(fields)
        return event_id

    def _entity(self, event_id: str) -> dict:
        return to_entity(event_id, copy.deepcopy(self.events[event_id]))

    async def events_find(self, *, name_pattern=None, host=None, participant=None, favorited_by=None):
        found = []
        for event_id, doc in self.events.items():
            if name_pattern is not None and not re.search(name_pattern, doc["name"], re.IGNORECASE):
                continue
            if host is not None and doc.get("host") != host:
                continue
            if participant is not None and not any(
                p.get("user") == participant for p in doc.get("participants", [])
            ):
                continue
            if favorited_by is not None and favorited_by not in doc.get("favoritesBy", []):
                continue
            found.append(self._entity(event_id))
        return found

    async def events_find_by_id(self, event_id):
        if event_id not in self.events:
            return None
        return self._entity(event_id)

    async def events_create(self, fields):
        doc = validate_document(fields)
        event_id = secrets.token_hex(12)
        self.events[event_id] = doc
        return self._entity(event_id)

    async def events_find_one_and_update(self, event_id, update):
        existing = self.events.get(event_id, {})
        self.events[event_id] = validate_document({**existing, **omit_identifier(update)})
        return self._entity(event_id)

    async def events_modify(self, event_id, mutate):
        if event_id not in self.events:
            return None
        self.events[event_id] = validate_document(mutate(copy.deepcopy(self.events[event_id])))
        return self._entity(event_id)

    async def events_remove(self, event_id):
        return self.events.pop(event_id, None) is not None

    async def users_fetch_projections(self, user_ids):
        return {
            user_id: {"_id": user_id, "name": doc["name"], "imageUrl": doc["imageUrl"]}
            for user_id, doc in self.users.items()
            if user_id in user_ids
        }

    async def ping(self):
        return True


@pytest.fixture
def store(monkeypatch):
    fake = FakeEventStore()
    monkeypatch.setattr(events_controller, "db", fake)
    monkeypatch.setattr(populate_module, "db", fake)
    monkeypatch.setattr(health_controller, "db", fake)
    return fake


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def client(monkeypatch, store, fake_redis):
    async def fake_init_redis():
        return fake_redis

    async def fake_init_database():
        return True

    monkeypatch.setattr(lifespan, "init_redis", fake_init_redis)
    monkeypatch.setattr(lifespan, "init_database", fake_init_database)

    with TestClient(main.app) as c:
        yield c

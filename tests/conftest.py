"""
Pytest fixtures: the FastAPI app wired to an in-memory Supabase double.
"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from fake_supabase import FakeSupabase
from questboard.dependencies.auth import service_supabase_client, user_supabase_client
from questboard.main import app

ALICE_USER = "user-alice"
BOB_USER = "user-bob"
ALICE = "profile-alice"
BOB = "profile-bob"


@pytest.fixture
def db():
    return FakeSupabase({
        "profiles": [
            {
                "id": ALICE, "user_id": ALICE_USER, "username": "alice", "email": "alice@example.com",
                "display_name": "Alice", "is_public": True, "branch": "CSE", "year": 2, "section": 1,
            },
            {
                "id": BOB, "user_id": BOB_USER, "username": "bob", "email": "bob@example.com",
                "display_name": "Bob", "is_public": True, "branch": "IT", "year": 3, "section": 2,
            },
        ],
        "quests": [],
        "kpis": [],
        "follows": [],
        "profile_likes": [],
        "post_likes": [],
        "posts": [],
    })


@pytest.fixture
def session():
    """Mutable holder for the user the next request is made as."""
    return SimpleNamespace(user_id=ALICE_USER, email="alice@example.com")


@pytest.fixture
def client(db, session):
    def fake_user_client():
        return {
            "supabase": db,
            "user_id": session.user_id,
            "user": SimpleNamespace(id=session.user_id, email=session.email),
            "token": "test-token",
        }

    app.dependency_overrides[user_supabase_client] = fake_user_client
    app.dependency_overrides[service_supabase_client] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db):
    app.dependency_overrides[service_supabase_client] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_quest(db, profile_id=ALICE, **fields):
    quest = {"profile_id": profile_id, "title": "Read more", "description": None, "status": "active", "progress": 0}
    quest.update(fields)
    return db.table("quests").insert(quest).execute().data[0]


def add_kpi(db, quest_id, name="Pages read", value=0, target=None, unit=None):
    row = {"quest_id": quest_id, "name": name, "value": value, "target": target, "unit": unit}
    return db.table("kpis").insert(row).execute().data[0]

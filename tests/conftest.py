import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import get_current_user_id
from app.database.supabase_client import get_supabase
from app.modules.auth.service import clear_auth_cache
from tests.fake_supabase import FakeSupabase


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def current_user():
    """Mutable identity the API sees; tests switch users with login_as"""
    return {"id": None, "email": None, "user_metadata": {}}


@pytest.fixture
def client(db, current_user):
    def _current_user():
        assert current_user["id"], "call login_as() first"
        return dict(current_user)

    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_current_user_id] = _current_user
    clear_auth_cache()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(current_user):
    def _login(user: dict):
        current_user.update({"id": user["id"], "email": user["email"]})
        return user
    return _login


@pytest.fixture
def make_user(db):
    def _make(full_name: str, email: str = None) -> dict:
        email = email or f"{full_name.split()[0].lower()}@example.com"
        return db.table("users").insert({"email": email, "full_name": full_name}).execute().data[0]
    return _make


@pytest.fixture
def people(make_user):
    return {
        "you": make_user("Demo User", "demo@example.com"),
        "john": make_user("John Doe"),
        "jane": make_user("Jane Smith"),
        "mike": make_user("Mike Johnson"),
    }

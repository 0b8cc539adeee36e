from fastapi.testclient import TestClient

from app.config import settings
from app.main import app


def test_health_has_security_headers():
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_ready_depends_on_supabase_settings(monkeypatch):
    monkeypatch.setattr(settings, "supabase_url", "")
    with TestClient(app) as client:
        assert client.get("/ready").status_code == 503

    monkeypatch.setattr(settings, "supabase_url", "https://project.supabase.co")
    monkeypatch.setattr(settings, "supabase_key", "anon-key")
    with TestClient(app) as client:
        assert client.get("/ready").json() == {"status": "ready"}


def test_settings_cors_origins(monkeypatch):
    monkeypatch.setattr(settings, "cors_origins", "https://a.example, ,https://b.example")
    assert settings.get_cors_origins_list() == ["https://a.example", "https://b.example"]

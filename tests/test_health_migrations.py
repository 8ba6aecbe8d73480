from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_health_root():
    r = client.get("/")
    assert r.status_code == 200
    assert r.json().get("ok") is True


def test_health_migrations_basic():
    r = client.get("/health/migrations")
    assert r.status_code == 200
    b = r.json()
    assert "code_heads" in b and isinstance(b["code_heads"], list)
    assert "db_version" in b


def test_health_provider_reports_config():
    r = client.get("/health/provider")
    assert r.status_code == 200
    b = r.json()
    assert b["ok"] is b["api_key_configured"]
    assert b["model"]

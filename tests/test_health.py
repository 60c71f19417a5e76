import pytest

from app.core.config import settings
from app.main import production_problems, validate_production_settings


def test_health_endpoint(client):
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["integrations"]["redis"] is False
    assert data["integrations"]["supabase"] is False
    assert data["integrations"]["delivery_mode"] == "direct"


def test_ready_endpoint_on_memory_stores(client):
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "redis": "memory"}


def test_ready_endpoint_redis_down(client, monkeypatch):
    async def failing_ping():
        raise ConnectionError("redis unreachable")

    monkeypatch.setattr(client.app.state.runtime, "ping_redis", failing_ping)
    response = client.get("/ready")
    assert response.status_code == 503
    assert response.json()["redis"] == "disconnected"


def test_production_requires_app_secret_and_supabase(monkeypatch):
    monkeypatch.setattr(settings, "app_env", "production")
    monkeypatch.setattr(settings, "whatsapp_app_secret", None)
    monkeypatch.setattr(settings, "supabase_url", None)

    with pytest.raises(RuntimeError) as exc_info:
        validate_production_settings()

    error_message = str(exc_info.value)
    assert "Production environment validation failed" in error_message
    assert "WHATSAPP_APP_SECRET is required in production" in error_message
    assert "SUPABASE_SERVICE_ROLE_KEY" in error_message
    assert "SUPABASE_URL" in error_message


def test_production_passes_with_required_settings(monkeypatch):
    monkeypatch.setattr(settings, "app_env", "production")
    monkeypatch.setattr(settings, "whatsapp_app_secret", "secret")
    monkeypatch.setattr(settings, "supabase_url", "https://example.supabase.co")
    monkeypatch.setattr(settings, "supabase_service_role_key", "service-role")
    validate_production_settings()


def test_dev_skips_production_checks(monkeypatch):
    monkeypatch.setattr(settings, "whatsapp_app_secret", None)
    validate_production_settings()


def test_production_problems_lists_each_gap():
    cfg = settings.model_copy(update={"whatsapp_app_secret": "s", "supabase_url": None})
    problems = production_problems(cfg)
    assert len(problems) == 1
    assert problems[0].startswith("SUPABASE_URL")

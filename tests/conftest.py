import os

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
# Force dev mode for default test app; production validation tests override settings
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("WHATSAPP_VERIFY_TOKEN", "test_token")
os.environ.setdefault("WHATSAPP_ACCESS_TOKEN", "test_token")
os.environ.setdefault("WHATSAPP_PHONE_NUMBER_ID", "test_id")
# Note: WHATSAPP_APP_SECRET not set by default - allows tests without signature verification
os.environ.setdefault("WHATSAPP_DRY_RUN", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")  # Disable rate limiting in tests
os.environ["REDIS_URL"] = ""  # In-memory stores
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)
os.environ["DELIVERY_MODE"] = "direct"

from app.core.config import settings  # noqa: E402
from app.main import app  # noqa: E402
from app.services.conversation.engine import ConversationEngine  # noqa: E402
from app.services.leads.persistence import LeadPersistenceGateway  # noqa: E402
from app.services.leads.routing import SupplierRouter  # noqa: E402
from app.services.stores.cooldown_store import InMemoryCooldownStore  # noqa: E402
from app.services.stores.session_store import InMemorySessionStore  # noqa: E402
from tests.helpers.fakes import (  # noqa: E402
    FakeClock,
    FakeLeadRepository,
    FakeSupplierDirectory,
    RecordingGateway,
)


@pytest.fixture(autouse=True)
def isolated_backup(tmp_path, monkeypatch):
    """Keep the lead backup file out of the real temp dir."""
    monkeypatch.setattr(settings, "lead_backup_path", str(tmp_path / "leads_backup.jsonl"))
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def lead_repository():
    return FakeLeadRepository()


@pytest.fixture
def directory():
    return FakeSupplierDirectory()


@pytest.fixture
def engine(clock, gateway, lead_repository, directory, tmp_path):
    """Conversation engine on in-memory stores with a shared fake clock."""
    persistence = LeadPersistenceGateway(
        lead_repository,
        gateway,
        backup_path=tmp_path / "leads_backup.jsonl",
        admin_phone=None,
    )
    return ConversationEngine(
        sessions=InMemorySessionStore(clock=clock),
        cooldowns=InMemoryCooldownStore(clock=clock),
        gateway=gateway,
        persistence=persistence,
        router=SupplierRouter(directory, gateway),
        directory=directory,
        settings=settings,
    )


@pytest.fixture(scope="function")
def client():
    """Test client with startup/shutdown events (runtime on in-memory stores)."""
    with TestClient(app) as test_client:
        yield test_client

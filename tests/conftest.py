"""Fixtures compartidas para los tests del relay Pretix → FCM."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pretix_push.clients.fcm_client import get_fcm_client
from pretix_push.core.config import get_settings
from pretix_push.main import app

RELAY_ENV_VARS = [
    "FCM_SERVICE_ACCOUNT_PATH",
    "FCM_PROJECT_ID",
    "FCM_TOPIC",
    "PORT",
    "PRETIX_WEBHOOK_SECRET",
    "ENFORCE_WEBHOOK_SIGNATURE",
    "DEBUG",
    "ENV",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "LOG_FILE_PATH",
    "LOG_JSON",
]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Cada test arranca con variables limpias y sin configuración cacheada."""
    for var in RELAY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_fcm_client():
    """Cliente FCM falso: registra los envíos y devuelve un message id fijo."""
    client = MagicMock()
    client.send = AsyncMock(return_value="projects/test-project/messages/0:1700000000000000%abc")
    return client


@pytest.fixture
def client(fake_fcm_client):
    """TestClient sin lifespan (no inicializa Firebase) con el cliente FCM falso."""
    app.dependency_overrides[get_fcm_client] = lambda: fake_fcm_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def pretix_order_placed():
    """Webhook de Pretix para un pedido que requiere aprobación."""
    return {
        "notification_id": 123,
        "organizer": "democon",
        "event": "democon2025",
        "code": "ABC12",
        "action": "pretix.event.order.placed.require_approval",
        "status": "n",
        "total": "42.00",
        "email": "attendee@example.com",
    }

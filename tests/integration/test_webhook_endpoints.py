"""
Tests de integración para los endpoints HTTP del relay.

Usan la aplicación FastAPI completa (middleware, handlers de excepciones
y routers) con un cliente FCM falso en lugar de Firebase.
"""

import base64
import hashlib
import hmac
import json

import pytest

from pretix_push.utils.error_handler import PushDeliveryException

pytestmark = pytest.mark.integration


class TestPretixWebhookEndpoint:
    """Tests para POST /webhook."""

    def test_valid_webhook_sends_topic_notification(self, client, fake_fcm_client, pretix_order_placed):
        """Un webhook válido debe responder 200 y enviar al topic por defecto."""
        response = client.post("/webhook", json=pretix_order_placed)

        assert response.status_code == 200
        assert response.text == "Webhook processed successfully"
        assert response.headers["content-type"].startswith("text/plain")

        fake_fcm_client.send.assert_awaited_once()
        notification = fake_fcm_client.send.await_args.args[0]
        assert notification.topic == "pretix-orders"
        assert notification.title == "Order Require Approval"
        assert notification.body == "Order ABC12 from democon2025 - n (Total: 42.00)"
        assert notification.data["order_code"] == "ABC12"
        assert notification.data["notification_id"] == "123"

    def test_configured_topic_is_used(self, client, fake_fcm_client, pretix_order_placed, monkeypatch):
        """FCM_TOPIC debe definir el topic de destino."""
        monkeypatch.setenv("FCM_TOPIC", "staff-orders")

        response = client.post("/webhook", json=pretix_order_placed)

        assert response.status_code == 200
        assert fake_fcm_client.send.await_args.args[0].topic == "staff-orders"

    @pytest.mark.parametrize(
        "action, expected_title",
        [
            ("order.placed.require_approval", "Order Require Approval"),
            ("pretix.event.order.paid", "Order Paid"),
            ("pretix.event.order.canceled", "Order Canceled"),
            ("pretix.event.order.payment.provider_changed", "Order Provider Changed"),
        ],
    )
    def test_title_is_derived_from_action(self, client, fake_fcm_client, action, expected_title):
        """El título debe ser 'Order' más el último segmento de la acción."""
        response = client.post("/webhook", json={"code": "ABC12", "event": "democon2025", "action": action})

        assert response.status_code == 200
        assert fake_fcm_client.send.await_args.args[0].title == expected_title

    def test_minimal_payload_is_accepted(self, client, fake_fcm_client):
        """Un objeto JSON sin campos opcionales sigue siendo válido."""
        response = client.post("/webhook", content=b"{}")

        assert response.status_code == 200
        fake_fcm_client.send.assert_awaited_once()

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"this is not json",
            b'{"notification_id": 123, "code": "ABC',
            b'{"notification_id": "abc"}',
        ],
    )
    def test_unparseable_body_returns_400(self, client, fake_fcm_client, body):
        """Body ilegible o truncado debe dar 400 sin llamar a FCM."""
        response = client.post("/webhook", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        payload = response.json()
        assert payload["error"] is True
        assert payload["error_type"] == "validation_error"
        assert payload["message"] == "Error parsing payload"
        fake_fcm_client.send.assert_not_called()

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    def test_non_post_returns_405(self, client, fake_fcm_client, method):
        """Métodos distintos de POST deben dar 405 sin procesar el body."""
        response = client.request(method, "/webhook", content=b"not even json")

        assert response.status_code == 405
        assert response.json()["message"] == "Only POST method allowed"
        fake_fcm_client.send.assert_not_called()

    def test_send_failure_returns_500(self, client, fake_fcm_client, pretix_order_placed):
        """Un fallo de FCM debe devolverse como 500."""
        fake_fcm_client.send.side_effect = PushDeliveryException(
            "Error sending FCM message: quota exceeded",
            target="pretix-orders",
            provider_error="quota exceeded",
        )

        response = client.post("/webhook", json=pretix_order_placed)

        assert response.status_code == 500
        payload = response.json()
        assert payload["error_type"] == "push_delivery_error"
        assert payload["message"] == "Error processing webhook"
        assert payload["error_code"] == "FCM_SEND_FAILED"
        fake_fcm_client.send.assert_awaited_once()

    def test_request_id_is_echoed(self, client, pretix_order_placed):
        """El X-Request-ID entrante debe devolverse en la respuesta."""
        response = client.post("/webhook", json=pretix_order_placed, headers={"X-Request-ID": "pretix-42"})

        assert response.headers["X-Request-ID"] == "pretix-42"
        assert "X-Process-Time" in response.headers

    def test_error_body_carries_generated_request_id(self, client):
        """Sin X-Request-ID entrante, el error debe llevar el id generado."""
        response = client.post("/webhook", content=b"nope")

        assert response.status_code == 400
        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json()["request_id"] == request_id

    def test_error_body_carries_incoming_request_id(self, client):
        """Con X-Request-ID entrante, el error debe devolver ese mismo id."""
        response = client.post("/webhook", content=b"nope", headers={"X-Request-ID": "pretix-43"})

        assert response.json()["request_id"] == "pretix-43"


class TestWebhookSignatureEnforcement:
    """Tests para la validación opcional de webhooks."""

    SECRET = "s3cret"

    @pytest.fixture(autouse=True)
    def enforce_signature(self, clean_settings, monkeypatch):
        monkeypatch.setenv("ENFORCE_WEBHOOK_SIGNATURE", "true")
        monkeypatch.setenv("PRETIX_WEBHOOK_SECRET", self.SECRET)

    def test_unsigned_webhook_is_rejected(self, client, fake_fcm_client, pretix_order_placed):
        """Sin firma ni secreto debe dar 401 sin llamar a FCM."""
        response = client.post("/webhook", json=pretix_order_placed)

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_WEBHOOK_SIGNATURE"
        fake_fcm_client.send.assert_not_called()

    def test_signed_webhook_is_accepted(self, client, fake_fcm_client, pretix_order_placed):
        """Una firma HMAC válida del body debe aceptarse."""
        body = json.dumps(pretix_order_placed).encode()
        signature = base64.b64encode(hmac.new(self.SECRET.encode(), body, hashlib.sha256).digest()).decode()

        response = client.post(
            "/webhook",
            content=body,
            headers={"Content-Type": "application/json", "X-Pretix-Signature": signature},
        )

        assert response.status_code == 200
        fake_fcm_client.send.assert_awaited_once()

    def test_payload_secret_is_accepted(self, client, fake_fcm_client, pretix_order_placed):
        """El campo secret del payload sirve como alternativa."""
        response = client.post("/webhook", json={**pretix_order_placed, "secret": self.SECRET})

        assert response.status_code == 200

    def test_malformed_body_is_still_400(self, client, fake_fcm_client):
        """El parseo ocurre antes de la verificación: un body roto sigue siendo 400."""
        response = client.post("/webhook", content=b"{broken")

        assert response.status_code == 400


class TestHealthEndpoint:
    """Tests para GET /health."""

    def test_health_returns_ok(self, client):
        """Debe responder 200 'OK' siempre."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"

    def test_health_after_failed_webhook(self, client, fake_fcm_client, pretix_order_placed):
        """Un fallo previo no afecta al health check."""
        fake_fcm_client.send.side_effect = PushDeliveryException("boom", provider_error="boom")
        assert client.post("/webhook", json=pretix_order_placed).status_code == 500

        response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH", "OPTIONS"])
    def test_health_accepts_any_method(self, client, method):
        """Cualquier método debe recibir 200 'OK'."""
        response = client.request(method, "/health", content=b"ignored")

        assert response.status_code == 200
        assert response.text == "OK"

    def test_health_head(self, client):
        """HEAD también debe responder 200."""
        response = client.head("/health")

        assert response.status_code == 200


class TestTestFCMEndpoint:
    """Tests para POST /test-fcm."""

    def test_sends_to_device_token(self, client, fake_fcm_client):
        """Debe enviar al token con título y mensaje por defecto."""
        response = client.post("/test-fcm", json={"token": "device-token-1234567890"})

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message_id": "projects/test-project/messages/0:1700000000000000%abc",
            "message": "Test message sent successfully",
        }

        notification = fake_fcm_client.send.await_args.args[0]
        assert notification.token == "device-token-1234567890"
        assert notification.topic is None
        assert notification.title == "Test FCM Message"
        assert notification.body == "This is a test message from your webhook service"
        assert notification.data["test"] == "true"
        assert notification.data["source"] == "webhook-test-endpoint"
        assert notification.data["timestamp"].isdigit()

    def test_custom_title_and_message(self, client, fake_fcm_client):
        """Debe respetar título y mensaje enviados."""
        response = client.post("/test-fcm", json={"token": "device-token", "title": "Hola", "message": "Mundo"})

        assert response.status_code == 200
        notification = fake_fcm_client.send.await_args.args[0]
        assert notification.title == "Hola"
        assert notification.body == "Mundo"

    @pytest.mark.parametrize("payload", [{"token": ""}, {}, {"title": "sin token"}])
    def test_missing_token_returns_400(self, client, fake_fcm_client, payload):
        """Token vacío o ausente debe dar 400 sin llamar a FCM."""
        response = client.post("/test-fcm", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Device token is required"
        fake_fcm_client.send.assert_not_called()

    def test_invalid_json_returns_400(self, client, fake_fcm_client):
        """JSON inválido debe dar 400."""
        response = client.post("/test-fcm", content=b"token=abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid JSON payload"
        fake_fcm_client.send.assert_not_called()

    def test_get_returns_405(self, client, fake_fcm_client):
        """GET debe dar 405."""
        response = client.get("/test-fcm")

        assert response.status_code == 405
        fake_fcm_client.send.assert_not_called()

    def test_send_failure_returns_500(self, client, fake_fcm_client):
        """Un fallo de FCM debe devolverse como 500 con el error del proveedor."""
        fake_fcm_client.send.side_effect = PushDeliveryException(
            "Error sending FCM message: Requested entity was not found.",
            target="device-tok...",
            provider_error="Requested entity was not found.",
        )

        response = client.post("/test-fcm", json={"token": "device-token-1234567890"})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to send message: Requested entity was not found."


class TestInfoEndpoints:
    """Tests para los endpoints informativos."""

    def test_root_lists_endpoints(self, client):
        """La raíz debe listar los endpoints disponibles."""
        response = client.get("/")

        assert response.status_code == 200
        paths = {endpoint["path"] for endpoint in response.json()["endpoints"]}
        assert paths == {"/webhook", "/health", "/test-fcm"}

    def test_version(self, client):
        """Debe incluir la versión del paquete."""
        response = client.get("/version")

        assert response.status_code == 200
        assert response.json()["version"]

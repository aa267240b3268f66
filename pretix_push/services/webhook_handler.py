"""
Manejador de webhooks de Pretix.

Este módulo traduce el payload de un webhook de Pretix a una notificación push
(título, cuerpo y datos) y valida opcionalmente la firma del request.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import ValidationError

from pretix_push.api.v1.schemas.pretix_schemas import PretixWebhook, TestFCMRequest
from pretix_push.utils.error_handler import (
    ErrorCode,
    ValidationException,
    WebhookSignatureException,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Pretix-Signature"

DEFAULT_TEST_TITLE = "Test FCM Message"
DEFAULT_TEST_MESSAGE = "This is a test message from your webhook service"
TEST_SOURCE = "webhook-test-endpoint"


@dataclass(frozen=True)
class PushNotification:
    """
    Notificación lista para enviarse a FCM.

    Exactamente uno de topic o token define el destino.
    """

    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    topic: Optional[str] = None
    token: Optional[str] = None

    def __post_init__(self):
        if bool(self.topic) == bool(self.token):
            raise ValueError("PushNotification requires exactly one of topic or token")


def format_action(action: str) -> str:
    """
    Convierte un código de acción de Pretix en una frase legible.

    Toma el último segmento separado por puntos, reemplaza guiones bajos
    por espacios y capitaliza cada palabra.

    Args:
        action: Código de acción (ej: "pretix.event.order.placed.require_approval")

    Returns:
        str: Frase legible (ej: "Require Approval")
    """
    last_part = action.split(".")[-1].replace("_", " ")
    words = [word[:1].upper() + word[1:].lower() for word in last_part.split()]
    return " ".join(words)


def parse_webhook_payload(body: bytes) -> PretixWebhook:
    """
    Decodifica el body crudo de un webhook de Pretix.

    Args:
        body: Body del request en bytes

    Returns:
        PretixWebhook: Payload validado

    Raises:
        ValidationException: Si el body está vacío, no es JSON o tiene tipos inválidos
    """
    try:
        return PretixWebhook.model_validate_json(body)
    except ValidationError as e:
        # Solo tipo y ubicación: el input puede traer emails o el secreto
        errors = [
            (err["type"], ".".join(str(part) for part in err["loc"]))
            for err in e.errors(include_url=False, include_input=False)
        ]
        logger.error(
            "Error parsing webhook payload: "
            + ", ".join(f"{error_type} at {location or 'body'}" for error_type, location in errors)
        )
        field_name = (errors[0][1] or None) if errors else None
        raise ValidationException(
            "Error parsing payload",
            field=field_name,
            error_code=ErrorCode.INVALID_PAYLOAD,
        ) from e


def parse_test_request(body: bytes) -> TestFCMRequest:
    """
    Decodifica y valida el body del endpoint de prueba.

    Raises:
        ValidationException: Si el JSON es inválido o falta el token
    """
    try:
        request = TestFCMRequest.model_validate_json(body)
    except ValidationError as e:
        raise ValidationException("Invalid JSON payload", error_code=ErrorCode.INVALID_PAYLOAD) from e

    if not request.token:
        raise ValidationException(
            "Device token is required",
            field="token",
            error_code=ErrorCode.MISSING_REQUIRED_FIELD,
        )

    return request


def build_order_notification(webhook: PretixWebhook, topic: str) -> PushNotification:
    """
    Construye la notificación de broadcast para un webhook de pedido.

    Args:
        webhook: Payload del webhook
        topic: Topic FCM de destino

    Returns:
        PushNotification: Notificación con título, cuerpo y datos
    """
    title = f"Order {format_action(webhook.action)}".rstrip()

    body = f"Order {webhook.code} from {webhook.event}"
    if webhook.status:
        body += f" - {webhook.status}"
    if webhook.total:
        body += f" (Total: {webhook.total})"

    data = {
        "notification_id": str(webhook.notification_id),
        "organizer": webhook.organizer,
        "event": webhook.event,
        "action": webhook.action,
        "order_code": webhook.code,
        "status": webhook.status,
        "total": webhook.total,
        "email": webhook.email,
    }

    return PushNotification(title=title, body=body, data=data, topic=topic)


def build_test_notification(request: TestFCMRequest, now: Optional[float] = None) -> PushNotification:
    """
    Construye el mensaje de prueba dirigido a un único dispositivo.

    Args:
        request: Request validado del endpoint de prueba
        now: Timestamp Unix a usar (por defecto la hora actual)

    Returns:
        PushNotification: Notificación dirigida al token
    """
    timestamp = int(now if now is not None else time.time())

    return PushNotification(
        title=request.title or DEFAULT_TEST_TITLE,
        body=request.message or DEFAULT_TEST_MESSAGE,
        data={
            "test": "true",
            "timestamp": str(timestamp),
            "source": TEST_SOURCE,
        },
        token=request.token,
    )


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verifica la firma HMAC-SHA256 (base64) del body del webhook.

    Args:
        payload: Payload del webhook en bytes
        signature: Firma recibida en el header
        secret: Secreto compartido configurado

    Returns:
        bool: True si la firma es válida
    """
    if not signature:
        return False

    expected_signature = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()

    try:
        received_signature = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Webhook signature is not valid base64")
        return False

    # Comparación segura contra timing attacks
    return hmac.compare_digest(expected_signature, received_signature)


def verify_shared_secret(webhook: PretixWebhook, secret: str) -> bool:
    """Compara el campo secret del payload con el secreto configurado."""
    if not webhook.secret:
        return False
    return hmac.compare_digest(webhook.secret.encode("utf-8"), secret.encode("utf-8"))


def authenticate_webhook(payload: bytes, webhook: PretixWebhook, signature: Optional[str], secret: str) -> None:
    """
    Acepta el webhook si la firma del header o el secreto del payload coinciden.

    Raises:
        WebhookSignatureException: Si ninguna de las dos verificaciones pasa
    """
    if verify_webhook_signature(payload, signature, secret):
        return
    if verify_shared_secret(webhook, secret):
        return

    logger.warning(
        f"Rejected webhook with invalid signature: organizer={webhook.organizer}, "
        f"event={webhook.event}, order={webhook.code}"
    )
    raise WebhookSignatureException()

"""
Modelos Pydantic para los webhooks de Pretix y el endpoint de prueba de FCM.

Pretix envía un payload plano con el código del pedido en el nivel superior.
Según el tipo de acción pueden faltar campos opcionales como status, email o total.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class PretixWebhook(BaseModel):
    """
    Payload de un webhook de Pretix.

    Vive solo durante el request: no se persiste ni se deduplica.
    Los campos ausentes o nulos toman su valor cero.
    """

    model_config = ConfigDict(extra="ignore")

    notification_id: int = 0
    organizer: str = ""
    event: str = ""
    code: str = ""
    action: str = ""

    # Campos presentes solo en algunos tipos de webhook
    status: str = ""
    email: str = ""
    total: str = ""
    secret: str = ""

    @field_validator("notification_id", mode="before")
    @classmethod
    def null_notification_id(cls, v: Any) -> Any:
        """Un notification_id nulo equivale a 0."""
        return 0 if v is None else v

    @field_validator("organizer", "event", "code", "action", "status", "email", "secret", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """Convierte null en cadena vacía."""
        return "" if v is None else v

    @field_validator("total", mode="before")
    @classmethod
    def total_as_text(cls, v: Any) -> Any:
        """Pretix puede enviar el total como número; se conserva como texto."""
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class TestFCMRequest(BaseModel):
    """Request para enviar un mensaje de prueba a un único dispositivo."""

    model_config = ConfigDict(extra="ignore")

    token: str = ""
    title: str = ""
    message: str = ""

    @field_validator("token", "title", "message", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class TestFCMResponse(BaseModel):
    """Respuesta exitosa del endpoint /test-fcm."""

    status: str = "success"
    message_id: str
    message: str = "Test message sent successfully"

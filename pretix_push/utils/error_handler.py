"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas del relay
y proporciona utilidades para manejo consistente de errores.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de webhook
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_WEBHOOK_SIGNATURE = "INVALID_WEBHOOK_SIGNATURE"

    # Errores de FCM
    FCM_NOT_INITIALIZED = "FCM_NOT_INITIALIZED"
    FCM_SEND_FAILED = "FCM_SEND_FAILED"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP asociado
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para payloads ilegibles o campos inválidos (HTTP 400).
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            error_code: Código de error concreto
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            **kwargs,
        )
        self.field = field
        self.details.update({"field": field})


class WebhookSignatureException(AppException):
    """
    Excepción para webhooks cuya firma o secreto no coincide (HTTP 401).
    """

    def __init__(self, message: str = "Invalid webhook signature", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            status_code=401,
            **kwargs,
        )


class PushDeliveryException(AppException):
    """
    Excepción para fallos al enviar mensajes a Firebase Cloud Messaging.
    """

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        provider_error: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de envío.

        Args:
            message: Mensaje de error
            target: Topic o token (truncado) del destino
            provider_error: Error original reportado por FCM
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.FCM_SEND_FAILED,
            status_code=500,
            **kwargs,
        )
        self.target = target
        self.provider_error = provider_error

        self.details.update({"target": target, "provider_error": provider_error})


class ConfigurationException(AppException):
    """
    Excepción para configuración inválida detectada durante el startup.
    """

    def __init__(self, message: str, missing_settings: Optional[list] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            **kwargs,
        )
        self.missing_settings = missing_settings or []
        self.details.update({"missing_settings": self.missing_settings})


def mask_token(token: str, visible: int = 10) -> str:
    """
    Acorta un device token para que no aparezca completo en los logs.

    Args:
        token: Token FCM del dispositivo
        visible: Cantidad de caracteres visibles

    Returns:
        str: Prefijo del token seguido de "..."
    """
    return f"{token[:visible]}..."

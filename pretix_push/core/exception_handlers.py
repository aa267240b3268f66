"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Este módulo define los manejadores de excepciones personalizados y globales,
proporcionando respuestas JSON consistentes y logging apropiado para cada tipo de error.
Ningún error se reintenta ni se encola: todos se devuelven al llamador.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pretix_push.core.config import get_settings
from pretix_push.core.logging_config import request_id_var
from pretix_push.utils.error_handler import (
    AppException,
    PushDeliveryException,
    ValidationException,
    WebhookSignatureException,
)

logger = logging.getLogger(__name__)


def build_error_content(
    request: Request,
    error_type: str,
    message: str,
    error_code: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Arma el cuerpo JSON estándar de error.

    Args:
        request: Request que causó el error
        error_type: Categoría del error
        message: Mensaje para el cliente
        error_code: Código estandarizado (si aplica)
        **extra: Campos adicionales

    Returns:
        Dict: Contenido de la respuesta
    """
    content = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "path": str(request.url.path),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id_var.get() or request.headers.get("X-Request-ID"),
    }
    if error_code:
        content["error_code"] = error_code
    content.update(extra)
    return content


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para excepciones personalizadas de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    logger.error(
        f"App Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"URL: {request.url} - "
        f"Details: {exc.details}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(
            request,
            "application_error",
            exc.message,
            exc.error_code.value,
            details=exc.details if get_settings().DEBUG else None,
        ),
    )


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """
    Manejador para payloads ilegibles o inválidos (400).
    """
    logger.warning(f"Validation Exception: {exc.message} - Field: {exc.field} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(
            request,
            "validation_error",
            exc.message,
            exc.error_code.value,
            field=exc.field,
        ),
    )


async def webhook_signature_exception_handler(request: Request, exc: WebhookSignatureException) -> JSONResponse:
    """
    Manejador para webhooks con firma o secreto inválido (401).
    """
    logger.warning(f"Webhook Signature Exception: {exc.message} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, "authentication_error", exc.message, exc.error_code.value),
    )


async def push_delivery_exception_handler(request: Request, exc: PushDeliveryException) -> JSONResponse:
    """
    Manejador para fallos de envío a FCM (500).

    Args:
        request: Request de FastAPI
        exc: Excepción de envío

    Returns:
        JSONResponse: Respuesta JSON con el error de entrega
    """
    logger.error(
        f"Push Delivery Exception: {exc.message} - "
        f"Target: {exc.target} - "
        f"Provider error: {exc.provider_error} - "
        f"URL: {request.url}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(
            request,
            "push_delivery_error",
            exc.message,
            exc.error_code.value,
            provider_error=exc.provider_error if get_settings().DEBUG else None,
        ),
    )


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de Starlette (404, 405, ...).

    Args:
        request: Request de FastAPI
        exc: StarletteHTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    message = exc.detail
    if exc.status_code == 405:
        allowed = {key.lower(): value for key, value in (exc.headers or {}).items()}.get("allow", "")
        if allowed == "POST":
            message = "Only POST method allowed"

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, "http_error", message, status_code=exc.status_code),
        headers=exc.headers,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    logger.error(
        f"Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url} - "
        f"Traceback: {traceback.format_exc()}"
    )

    # Respuesta genérica (sin exponer detalles internos)
    error_message = "Internal server error occurred"
    if get_settings().DEBUG:
        error_message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(
        status_code=500,
        content=build_error_content(request, "internal_server_error", error_message),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(WebhookSignatureException, webhook_signature_exception_handler)
    app.add_exception_handler(PushDeliveryException, push_delivery_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    # Manejadores HTTP estándar (cubre también fastapi.HTTPException)
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")

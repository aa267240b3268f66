"""
Endpoints para webhooks de Pretix y pruebas de FCM.

Este módulo define los endpoints que reciben webhooks de Pretix, los traducen
a notificaciones push y las reenvían a Firebase Cloud Messaging.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from pretix_push.api.v1.schemas.pretix_schemas import TestFCMResponse
from pretix_push.clients.fcm_client import FCMClient, get_fcm_client
from pretix_push.core.config import get_settings
from pretix_push.core.logging_config import log_webhook_received
from pretix_push.services.webhook_handler import (
    SIGNATURE_HEADER,
    authenticate_webhook,
    build_order_notification,
    build_test_notification,
    parse_test_request,
    parse_webhook_payload,
)
from pretix_push.utils.error_handler import PushDeliveryException, mask_token

logger = logging.getLogger(__name__)

# Crear router
router = APIRouter()


@router.post("/webhook", status_code=status.HTTP_200_OK, response_class=PlainTextResponse)
async def receive_pretix_webhook(request: Request, fcm_client: FCMClient = Depends(get_fcm_client)) -> PlainTextResponse:
    """
    Endpoint principal para recibir webhooks de Pretix.

    Decodifica el payload, deriva título y cuerpo y los envía al topic configurado.
    El envío es síncrono: un fallo de FCM se devuelve como 500 al llamador.

    Args:
        request: Request HTTP con el webhook
        fcm_client: Cliente FCM compartido

    Returns:
        PlainTextResponse: Confirmación en texto plano
    """
    settings = get_settings()

    body = await request.body()
    webhook = parse_webhook_payload(body)

    log_webhook_received(
        webhook.action,
        webhook.organizer,
        event=webhook.event,
        order_code=webhook.code,
        order_status=webhook.status,
    )
    logger.info(
        f"Received webhook: organizer={webhook.organizer}, event={webhook.event}, "
        f"action={webhook.action}, order={webhook.code}, status={webhook.status}"
    )

    if settings.ENFORCE_WEBHOOK_SIGNATURE:
        authenticate_webhook(
            body,
            webhook,
            request.headers.get(SIGNATURE_HEADER),
            settings.PRETIX_WEBHOOK_SECRET or "",
        )

    notification = build_order_notification(webhook, settings.FCM_TOPIC)
    try:
        message_id = await fcm_client.send(notification)
    except PushDeliveryException as e:
        logger.error(f"Error sending FCM notification: {e.provider_error}")
        raise PushDeliveryException(
            "Error processing webhook",
            target=e.target,
            provider_error=e.provider_error,
        ) from e

    logger.info(f"FCM message sent successfully: {message_id}")
    return PlainTextResponse("Webhook processed successfully", status_code=200)


@router.post("/test-fcm", status_code=status.HTTP_200_OK, response_model=TestFCMResponse)
async def send_test_message(request: Request, fcm_client: FCMClient = Depends(get_fcm_client)) -> TestFCMResponse:
    """
    Envía un mensaje de prueba directo a un dispositivo.

    Body: {"token": "...", "title": "...", "message": "..."}; título y mensaje son opcionales.

    Args:
        request: Request HTTP con el token del dispositivo
        fcm_client: Cliente FCM compartido

    Returns:
        TestFCMResponse: Estado y message_id devuelto por FCM
    """
    test_request = parse_test_request(await request.body())
    notification = build_test_notification(test_request)

    try:
        message_id = await fcm_client.send(notification)
    except PushDeliveryException as e:
        logger.error(f"Error sending test FCM message: {e.provider_error}")
        raise PushDeliveryException(
            f"Failed to send message: {e.provider_error}",
            target=e.target,
            provider_error=e.provider_error,
        ) from e

    logger.info(
        f"Test FCM message sent successfully to token: {mask_token(test_request.token)}, "
        f"response: {message_id}"
    )
    return TestFCMResponse(message_id=message_id)

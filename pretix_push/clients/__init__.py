"""
Clientes de servicios externos.

- FCMClient: envío de notificaciones push vía Firebase Cloud Messaging
"""

from pretix_push.clients.fcm_client import (
    FCMClient,
    close_fcm_client,
    get_fcm_client,
    initialize_fcm_client,
)

__all__ = [
    "FCMClient",
    "get_fcm_client",
    "initialize_fcm_client",
    "close_fcm_client",
]

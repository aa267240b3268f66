"""
Firebase Cloud Messaging client.

A single client handle is created at startup from the service account
credentials and shared read-only by every request. The Firebase Admin SDK
send call is blocking, so it runs in a worker thread.
"""

import asyncio
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from pretix_push.core.config import Settings
from pretix_push.services.webhook_handler import PushNotification
from pretix_push.utils.error_handler import (
    AppException,
    ConfigurationException,
    ErrorCode,
    PushDeliveryException,
    mask_token,
)

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "pretix-push-relay"

# Global client instance
_fcm_client: Optional["FCMClient"] = None


class FCMClient:
    """
    Thin wrapper around the Firebase Admin messaging API.
    """

    def __init__(self, credentials_path: str, project_id: str, app_name: str = FIREBASE_APP_NAME):
        """
        Initialize the FCM client (no network or file access yet).

        Args:
            credentials_path: Path to the service account JSON file
            project_id: Firebase/Google Cloud project id
            app_name: Name of the firebase_admin App to register
        """
        self.credentials_path = credentials_path
        self.project_id = project_id
        self.app_name = app_name
        self.app: Optional[firebase_admin.App] = None

    def initialize(self) -> None:
        """
        Load the credentials and register the Firebase app.

        Raises:
            ConfigurationException: If the credentials cannot be loaded
        """
        try:
            cred = credentials.Certificate(self.credentials_path)
            self.app = firebase_admin.initialize_app(
                cred,
                {"projectId": self.project_id},
                name=self.app_name,
            )
        except (OSError, ValueError) as e:
            raise ConfigurationException(f"Error initializing firebase app: {e}") from e

        logger.info(f"Initialized FCM client for project {self.project_id}")

    def is_initialized(self) -> bool:
        """Check whether the Firebase app has been registered."""
        return self.app is not None

    @staticmethod
    def build_message(notification: PushNotification) -> messaging.Message:
        """
        Convert a PushNotification into a firebase_admin Message.

        Args:
            notification: Notification with exactly one target

        Returns:
            messaging.Message: Message ready for messaging.send
        """
        return messaging.Message(
            notification=messaging.Notification(title=notification.title, body=notification.body),
            data=dict(notification.data),
            topic=notification.topic,
            token=notification.token,
        )

    async def send(self, notification: PushNotification) -> str:
        """
        Send a notification to its topic or device token.

        Args:
            notification: Notification to deliver

        Returns:
            str: Message id returned by FCM

        Raises:
            AppException: If the client was never initialized
            PushDeliveryException: If FCM rejects the message
        """
        if self.app is None:
            raise AppException(
                "FCM client not initialized",
                error_code=ErrorCode.FCM_NOT_INITIALIZED,
                status_code=503,
            )

        target = notification.topic or mask_token(notification.token or "")
        message = self.build_message(notification)

        try:
            message_id = await asyncio.to_thread(messaging.send, message, app=self.app)
        except (FirebaseError, ValueError) as e:
            logger.error(f"Error sending FCM message to {target}: {e}")
            raise PushDeliveryException(
                f"Error sending FCM message: {e}",
                target=target,
                provider_error=str(e),
            ) from e

        logger.debug(f"FCM accepted message {message_id} for {target}")
        return message_id

    def close(self) -> None:
        """Release the Firebase app."""
        if self.app is not None:
            firebase_admin.delete_app(self.app)
            self.app = None
            logger.info("FCM client closed")


def initialize_fcm_client(settings: Settings) -> FCMClient:
    """
    Create and register the global FCM client.

    Args:
        settings: Application settings with FCM credentials

    Returns:
        FCMClient: Initialized client
    """
    global _fcm_client

    missing = settings.missing_required_settings()
    if missing:
        raise ConfigurationException(
            f"Missing required configuration: {', '.join(missing)}",
            missing_settings=missing,
        )

    client = FCMClient(settings.FCM_SERVICE_ACCOUNT_PATH, settings.FCM_PROJECT_ID)
    client.initialize()
    _fcm_client = client
    return client


def get_fcm_client() -> FCMClient:
    """
    Get the global FCM client instance.

    Used as a FastAPI dependency by the webhook endpoints.

    Raises:
        AppException: If startup did not initialize the client
    """
    if _fcm_client is None:
        raise AppException(
            "FCM client not initialized",
            error_code=ErrorCode.FCM_NOT_INITIALIZED,
            status_code=503,
        )
    return _fcm_client


def close_fcm_client() -> None:
    """Close and forget the global FCM client."""
    global _fcm_client
    if _fcm_client is not None:
        _fcm_client.close()
        _fcm_client = None

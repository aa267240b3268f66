"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown de la aplicación:
logging, verificación de configuración e inicialización del cliente FCM.
Una configuración inválida detiene el proceso antes de aceptar tráfico.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pretix_push.clients.fcm_client import close_fcm_client, initialize_fcm_client
from pretix_push.core.config import Settings, get_settings
from pretix_push.core.logging_config import setup_logging
from pretix_push.utils.error_handler import ConfigurationException

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = [
    ("POST", "/webhook", "Pretix webhook handler"),
    ("GET", "/health", "Health check"),
    ("POST", "/test-fcm", "Test FCM with device token"),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    settings = get_settings()

    # === STARTUP ===
    try:
        startup_configure_logging(settings)
        logger.info(f"🚀 Iniciando {settings.APP_NAME}...")

        startup_verify_configuration(settings)
        startup_initialize_fcm(settings)

        log_available_endpoints(settings)
        logger.info("🎉 Aplicación iniciada correctamente")

    except Exception as e:
        logger.critical(f"❌ Error durante el startup: {e}")
        close_fcm_client()
        sys.exit(1)

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")

    try:
        close_fcm_client()
        logger.info("👋 Aplicación cerrada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el shutdown: {e}")


# === FUNCIONES DE STARTUP ===


def startup_configure_logging(settings: Settings) -> None:
    """Configura el sistema de logging."""
    try:
        setup_logging(settings)
    except Exception as e:
        print(f"Error configurando logging: {e}", file=sys.stderr)
        raise


def startup_verify_configuration(settings: Settings) -> None:
    """
    Verifica que la configuración obligatoria esté presente.

    Raises:
        ConfigurationException: Si faltan variables requeridas
    """
    missing_vars = settings.missing_required_settings()
    if missing_vars:
        for var in missing_vars:
            logger.error(f"{var} environment variable is required")
        raise ConfigurationException(
            f"Variables de configuración faltantes: {missing_vars}",
            missing_settings=missing_vars,
        )

    if not settings.PRETIX_WEBHOOK_SECRET:
        logger.warning("⚠️ PRETIX_WEBHOOK_SECRET no configurado - el endpoint /webhook no está autenticado")
    elif not settings.ENFORCE_WEBHOOK_SIGNATURE:
        logger.warning("⚠️ PRETIX_WEBHOOK_SECRET configurado pero ENFORCE_WEBHOOK_SIGNATURE=false")

    logger.info("✅ Configuración verificada")


def startup_initialize_fcm(settings: Settings) -> None:
    """Inicializa el cliente compartido de Firebase Cloud Messaging."""
    try:
        client = initialize_fcm_client(settings)
    except ConfigurationException as e:
        logger.error(f"Failed to initialize FCM: {e.message}")
        raise

    logger.info(f"✅ Cliente FCM inicializado ({client.project_id}) - Topic: {settings.FCM_TOPIC}")


def log_available_endpoints(settings: Settings) -> None:
    """Registra el puerto y los endpoints disponibles."""
    logger.info(f"Server starting on port {settings.PORT}")
    logger.info("Available endpoints:")
    for method, path, description in AVAILABLE_ENDPOINTS:
        logger.info(f"  {method:<4} {path} - {description}")

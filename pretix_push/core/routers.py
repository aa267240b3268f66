"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo se encarga de registrar los routers de la API
y los endpoints base (raíz, health y versión).
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from pretix_push.api.v1.endpoints.webhooks import router as webhooks_router
from pretix_push.core.config import get_settings
from pretix_push.core.lifespan import AVAILABLE_ENDPOINTS
from pretix_push.version import version_info

logger = logging.getLogger(__name__)

HEALTH_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        """
        Endpoint raíz que proporciona información básica del relay.

        Returns:
            Dict con información de la API
        """
        settings = get_settings()
        return {
            "message": settings.APP_NAME,
            "description": "Relay de webhooks de Pretix hacia Firebase Cloud Messaging",
            "version": settings.APP_VERSION,
            "status": "running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": [
                {"method": method, "path": path, "description": description}
                for method, path, description in AVAILABLE_ENDPOINTS
            ],
        }


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea el endpoint de health check.

    Args:
        app: Instancia de FastAPI
    """

    @app.api_route(
        "/health",
        methods=HEALTH_METHODS,
        tags=["Health"],
        summary="Health Check",
        response_class=PlainTextResponse,
    )
    async def health_check():
        """
        Health check trivial: responde OK con cualquier método mientras el
        proceso esté sirviendo. No consulta a FCM.
        """
        return PlainTextResponse("OK", status_code=200)


def create_info_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints informativos adicionales.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/version", tags=["Info"], summary="Version Info")
    async def get_version_info():
        """Retorna información de versión y build."""
        settings = get_settings()
        return {
            **version_info(),
            "name": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
        }


def configure_api_v1_routers(app: FastAPI) -> None:
    """
    Configura los routers de la API v1.

    Los paths de webhook se montan en la raíz porque Pretix
    se configura con la URL completa del endpoint.

    Args:
        app: Instancia de FastAPI
    """
    app.include_router(
        webhooks_router,
        tags=["Webhooks"],
        responses={
            400: {"description": "Unreadable or invalid payload"},
            405: {"description": "Only POST method allowed"},
            500: {"description": "Push notification could not be sent"},
        },
    )
    logger.info("✅ Router de webhooks configurado")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    create_info_endpoints(app)

    configure_api_v1_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")

"""
Pretix Push Relay - FastAPI Application Entry Point

Relay sin estado que recibe webhooks de pedidos de Pretix y los reenvía
como notificaciones push a Firebase Cloud Messaging, ya sea por topic
(broadcast) o a un único dispositivo (endpoint de prueba).

Versión: Definida en pyproject.toml (ver pretix_push.version.VERSION)
"""

import logging

import uvicorn
from fastapi import FastAPI

from pretix_push.core.config import get_settings
from pretix_push.core.exception_handlers import configure_exception_handlers
from pretix_push.core.lifespan import lifespan
from pretix_push.core.middleware import configure_all_middleware
from pretix_push.core.routers import configure_all_routers

logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    settings = get_settings()
    docs_enabled = settings.DEBUG or settings.ENABLE_DOCS

    app = FastAPI(
        title=settings.APP_NAME,
        description="Relay de webhooks de Pretix hacia Firebase Cloud Messaging",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    # El orden es importante para el correcto funcionamiento
    # 1. Middleware
    configure_all_middleware(app)

    # 2. Manejadores de excepciones
    configure_exception_handlers(app)

    # 3. Routers y endpoints
    configure_all_routers(app)

    logger.info("✅ Aplicación FastAPI creada y configurada")
    return app


# Instancia principal que usa el servidor ASGI
app = create_application()


def run() -> None:
    """
    Ejecuta el servidor con uvicorn usando HOST y PORT de la configuración.

    Para producción también se puede usar:
    uvicorn pretix_push.main:app --host 0.0.0.0 --port 8080
    """
    settings = get_settings()

    uvicorn_config = {
        "app": "pretix_push.main:app",
        "host": settings.HOST,
        "port": settings.PORT,
        "reload": settings.DEBUG,
        "log_level": settings.LOG_LEVEL.lower(),
        "access_log": True,
        "workers": 1 if settings.DEBUG else settings.WORKERS,
    }

    try:
        uvicorn.run(**uvicorn_config)
    except KeyboardInterrupt:
        logger.info("🛑 Aplicación detenida por el usuario")


if __name__ == "__main__":
    run()

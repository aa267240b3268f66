"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
del relay usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from pretix_push.version import VERSION

DEFAULT_FCM_TOPIC = "pretix-orders"


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    (o un archivo .env) con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Pretix Push Relay"
    APP_VERSION: str = VERSION
    ENVIRONMENT: str = Field(default="development", validation_alias=AliasChoices("ENV", "ENVIRONMENT"))
    DEBUG: bool = False

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    WORKERS: int = 1

    # === CONFIGURACIÓN DE FIREBASE CLOUD MESSAGING ===
    FCM_SERVICE_ACCOUNT_PATH: Optional[str] = None
    FCM_PROJECT_ID: Optional[str] = None
    FCM_TOPIC: str = DEFAULT_FCM_TOPIC

    # === CONFIGURACIÓN DE SEGURIDAD DE WEBHOOKS ===
    PRETIX_WEBHOOK_SECRET: Optional[str] = None
    ENFORCE_WEBHOOK_SIGNATURE: bool = False

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: Optional[str] = None
    LOG_MAX_SIZE_MB: int = 10
    LOG_BACKUP_COUNT: int = 5
    LOG_JSON: bool = False
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # === CONFIGURACIÓN DE DOCUMENTACIÓN ===
    ENABLE_DOCS: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("FCM_TOPIC")
    @classmethod
    def validate_fcm_topic(cls, v):
        """Usa el topic por defecto si la variable está vacía."""
        v = v.strip()
        return v or DEFAULT_FCM_TOPIC

    @field_validator("FCM_SERVICE_ACCOUNT_PATH", "FCM_PROJECT_ID", "PRETIX_WEBHOOK_SECRET", mode="before")
    @classmethod
    def empty_string_as_none(cls, v):
        """Una variable definida pero vacía cuenta como ausente."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    def missing_required_settings(self) -> List[str]:
        """
        Lista las variables obligatorias que no están configuradas.

        Returns:
            List[str]: Nombres de las variables faltantes
        """
        missing = []
        if not self.FCM_SERVICE_ACCOUNT_PATH:
            missing.append("FCM_SERVICE_ACCOUNT_PATH")
        if not self.FCM_PROJECT_ID:
            missing.append("FCM_PROJECT_ID")
        if self.ENFORCE_WEBHOOK_SIGNATURE and not self.PRETIX_WEBHOOK_SECRET:
            missing.append("PRETIX_WEBHOOK_SECRET")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene la configuración de la aplicación (singleton con cache).

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()

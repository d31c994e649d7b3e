"""Main application settings and configuration management.

This module composes all the application settings from the different modules
(app, database, redis, auth, recovery, email) into a single `Settings` class.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for the outer layers of the
application (routes, dependency factories, lifecycle). Domain services never
read it directly; they receive a `RecoveryPolicy` built from it.

Environment Support:
- Development: Uses .env, email test mode enabled
- Test: Uses .env.test, email test mode enabled
- Staging: Uses .env.staging, SMTP credentials required
- Production: Uses .env.production, SMTP credentials required
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings, RecoverySettings
from .database import DatabaseSettings
from .email import EmailSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class Settings(
    AppSettings, DatabaseSettings, RedisSettings, AuthSettings, RecoverySettings, EmailSettings
):
    """The main settings class that aggregates all application configurations.

    Security Note:
        - SECRET_KEY, database and SMTP passwords are SecretStr or never logged.
    Usage:
        - Access settings via the singleton instance `settings` from the
          adapter and infrastructure layers.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="allow"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env in ("development", "test"):
            self.EMAIL_TEST_MODE = True

        if env == "development":
            self.DEBUG = True

        logger.info(f"Application running in {env} environment")
        logger.info(f"Email test mode: {self.EMAIL_TEST_MODE}")

    def validate_required_fields(self) -> None:
        """Validates that the variables needed outside of tests are set.

        Raises:
            ValueError: If required fields are missing in staging/production.
        """
        required_fields = ["PROJECT_NAME", "DATABASE_URL", "REDIS_URL", "SECRET_KEY"]

        missing_fields = [field for field in required_fields if not getattr(self, field, None)]
        if missing_fields:
            error_msg = f"Missing required environment variables: {', '.join(missing_fields)}"
            if self.APP_ENV in ("development", "test"):
                logger.warning(error_msg)
            else:
                logger.error(error_msg)
                raise ValueError(error_msg)

        try:
            self.validate_smtp_config()
        except ValueError as e:
            # Email is best-effort; the protocol keeps working without it
            logger.error(f"Email configuration error: {e}")


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production",
    }

    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        settings_instance = Settings(_env_file=env_file)
    elif Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
        settings_instance = Settings()
    else:
        logger.warning(f"No .env file found, using environment variables only (environment: {env})")
        settings_instance = Settings()

    return settings_instance


settings = create_settings()
settings.validate_required_fields()

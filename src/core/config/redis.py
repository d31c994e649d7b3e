"""
Redis settings for the shared rate-limit counters.
"""
from typing import Literal

from pydantic import Field, field_validator, ValidationInfo, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import logging

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines settings for the Redis connection and the public endpoint limit.

    Security Note:
        - REDIS_PASSWORD must be set in production to prevent unauthorized access.
    Performance Note:
        - Counters are fixed-window keys updated by a single Lua script, so
          one round trip is made per limited request.
    """
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = ""

    # Public endpoint limiting, keyed by client IP
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_BACKEND: Literal["redis", "memory"] = "redis"
    PUBLIC_RATE_LIMIT_REQUESTS: int = Field(default=10, ge=1)
    PUBLIC_RATE_LIMIT_WINDOW_SECONDS: int = Field(default=60, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided Redis URL.
        """
        if v:
            return v

        values = info.data
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        redis_password = values.get("REDIS_PASSWORD")
        secret = redis_password.get_secret_value() if redis_password else ""
        password = f":{secret}@" if secret else ""

        url = f"{protocol}://{password}{values.get('REDIS_HOST')}:{values.get('REDIS_PORT')}/0"
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url

    @field_validator("REDIS_PASSWORD")
    @classmethod
    def validate_redis_password(cls, value: SecretStr, info: ValidationInfo) -> SecretStr:
        """
        Ensures REDIS_PASSWORD is set for staging/production environments.

        Raises:
            ValueError: If password is not set in staging/production.
        """
        app_env = info.data.get('APP_ENV', 'development')
        if app_env in ['staging', 'production'] and not value.get_secret_value():
            logger.error(f"REDIS_PASSWORD must be set in {app_env} environment.")
            raise ValueError("REDIS_PASSWORD must be set in staging/production environments")
        return value

    @property
    def PUBLIC_RATE_LIMIT_WINDOW_MS(self) -> int:
        return self.PUBLIC_RATE_LIMIT_WINDOW_SECONDS * 1000

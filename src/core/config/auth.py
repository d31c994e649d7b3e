"""Administrator authentication and recovery protocol settings.
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Settings for verifying administrator bearer tokens.

    Access tokens are HS256 JWTs signed with SECRET_KEY by the session system
    that lives outside this service. Only the issuer, audience and algorithm
    are configured here.
    """

    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "https://servdesk.local"
    JWT_AUDIENCE: str = "servdesk:api:v1"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Work factor handed to passlib's bcrypt handler
    BCRYPT_WORK_FACTOR: int = Field(default=12, ge=4, le=31)


class RecoverySettings(BaseSettings):
    """Numbers that govern code issuance, verification and token lifetimes.

    Security Note:
        - Raising RECOVERY_MAX_ATTEMPTS or RECOVERY_MAX_CODES_PER_WINDOW widens
          the guessing budget: an attacker gets at most
          attempts * codes guesses per window against a 10**6 code space.
    """

    RECOVERY_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    RECOVERY_CODE_TTL_MINUTES: int = Field(default=10, ge=1, le=1440)
    RECOVERY_MAX_CODES_PER_WINDOW: int = Field(default=3, ge=1)
    RECOVERY_ISSUANCE_WINDOW_MINUTES: int = Field(default=60, ge=1)
    ADMIN_RESET_TOKEN_TTL_HOURS: int = Field(default=1, ge=1, le=72)
    INVITATION_TTL_DAYS: int = Field(default=7, ge=1, le=90)

    PASSWORD_MIN_LENGTH: int = 8
    PASSWORD_MAX_LENGTH: int = 100

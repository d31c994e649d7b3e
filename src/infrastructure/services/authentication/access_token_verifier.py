"""Bearer token verification for administrator endpoints.

Access tokens are issued by the session service as HS256 JWTs whose
``sub`` claim is the user id. Verification never raises: every outcome is
an ``AuthResult`` so the caller decides between 401 and 403.
"""

from typing import Optional

from jose import JWTError, jwt
from structlog import get_logger

from src.core.config.settings import settings
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.value_objects.auth_result import AuthError, AuthResult, Principal

logger = get_logger(__name__)


class AccessTokenVerifier:
    def __init__(
        self,
        auth_provider: IAuthProvider,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self._auth_provider = auth_provider
        self._secret_key = secret_key or settings.SECRET_KEY
        self._algorithm = algorithm or settings.JWT_ALGORITHM
        self._issuer = issuer or settings.JWT_ISSUER
        self._audience = audience or settings.JWT_AUDIENCE

    async def verify(self, token: Optional[str]) -> AuthResult:
        if not token:
            return AuthResult.failure(AuthError.UNAUTHENTICATED)

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
            )
            user_id = int(payload["sub"])
        except (JWTError, KeyError, ValueError) as exc:
            logger.info("Access token rejected", reason=type(exc).__name__)
            return AuthResult.failure(AuthError.UNAUTHENTICATED)

        user = await self._auth_provider.get_user(user_id)
        if user is None or not user.is_active:
            logger.info("Access token subject unavailable", user_id=user_id)
            return AuthResult.failure(AuthError.UNAUTHENTICATED)

        return AuthResult.success(Principal(user_id=user.id, email=user.email, role=user.role))

"""Administrator-triggered password reset links."""

import secrets
from typing import Optional

import structlog

from src.core.exceptions import UserNotFoundError
from src.domain.entities.admin_recovery_token import AdminRecoveryToken
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.interfaces.notifier import INotifier
from src.domain.interfaces.repositories import IAdminTokenRepository
from src.domain.value_objects.email import Email
from src.domain.value_objects.recovery_outcomes import AdminTokenGrant, RedeemOutcome, RedeemStatus
from src.domain.value_objects.recovery_policy import RecoveryPolicy
from src.utils.clock import Clock, utcnow

logger = structlog.get_logger(__name__)


class AdminTokenIssuer:
    """Issues and redeems single-use, one-hour reset tokens.

    There is no code and no attempt counter: the caller of ``issue`` is an
    authenticated administrator and the token only travels to the account's
    own address. ``inspect`` only reads; ``claim`` marks the token used with
    one conditional update, so concurrent claims yield exactly one ``VALID``.
    Callers claim after the credential write succeeds, leaving the link
    usable when that write fails.
    """

    TOKEN_BYTES = 32

    def __init__(
        self,
        token_repository: IAdminTokenRepository,
        auth_provider: IAuthProvider,
        notifier: INotifier,
        policy: RecoveryPolicy,
        reset_url_base: str,
        clock: Clock = utcnow,
    ):
        self._token_repository = token_repository
        self._auth_provider = auth_provider
        self._notifier = notifier
        self._policy = policy
        self._reset_url_base = reset_url_base.rstrip("/")
        self._clock = clock

    async def issue(
        self,
        target_user_id: int,
        *,
        created_by_id: Optional[int] = None,
        language: str = "en",
    ) -> AdminTokenGrant:
        """Create a reset link for ``target_user_id`` and mail it.

        Raises:
            UserNotFoundError: If the target account does not exist.
        """
        user = await self._auth_provider.get_user(target_user_id)
        if user is None:
            raise UserNotFoundError()

        now = self._clock()
        token = AdminRecoveryToken(
            token=secrets.token_urlsafe(self.TOKEN_BYTES),
            user_id=user.id,
            created_by_id=created_by_id,
            expires_at=now + self._policy.admin_token_ttl,
            created_at=now,
        )
        stored = await self._token_repository.create(token)

        reset_url = f"{self._reset_url_base}/reset-password?token={stored.token}"
        email_sent = await self._deliver(user, reset_url, stored, language)

        logger.info(
            "admin_reset_token_issued",
            target_user_id=user.id,
            created_by_id=created_by_id,
            email_sent=email_sent,
        )
        return AdminTokenGrant(token=stored.token, expires_at=stored.expires_at, email_sent=email_sent)

    async def inspect(self, token: str) -> RedeemOutcome:
        """Report whether ``token`` could be redeemed now, without using it."""
        stored = await self._token_repository.get_by_token(token)
        if stored is None:
            return RedeemOutcome(RedeemStatus.NOT_FOUND)
        if stored.used_at is not None:
            return RedeemOutcome(RedeemStatus.ALREADY_USED, user_id=stored.user_id)
        if self._clock() >= stored.expires_at:
            return RedeemOutcome(RedeemStatus.EXPIRED, user_id=stored.user_id)
        return RedeemOutcome(RedeemStatus.VALID, user_id=stored.user_id)

    async def claim(self, token: str, user_id: int) -> RedeemOutcome:
        """Mark ``token`` used. Only the caller whose update lands gets ``VALID``."""
        if not await self._token_repository.claim(token, self._clock()):
            logger.info("admin_reset_token_claim_lost", user_id=user_id)
            return RedeemOutcome(RedeemStatus.ALREADY_USED, user_id=user_id)

        logger.info("admin_reset_token_redeemed", user_id=user_id)
        return RedeemOutcome(RedeemStatus.VALID, user_id=user_id)

    async def _deliver(self, user, reset_url, stored, language) -> bool:
        try:
            return await self._notifier.send_admin_reset_link(
                user.email, reset_url, stored.expires_at, name=user.name, language=language
            )
        except Exception as exc:
            logger.error(
                "admin_reset_delivery_failed",
                email=Email.mask(user.email),
                error=str(exc),
            )
            return False

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import UserNotFoundError
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.interfaces.repositories import IAdminTokenRepository
from src.domain.services.recovery.admin_token_issuer import AdminTokenIssuer
from src.domain.value_objects.recovery_outcomes import RedeemStatus
from tests.factories import create_fake_admin_token, create_fake_user
from tests.utils.fakes import assign_id


class TestAdminTokenIssuer:
    @pytest.fixture
    def token_repository(self):
        repository = AsyncMock(spec=IAdminTokenRepository)
        repository.create.side_effect = assign_id(1)
        return repository

    @pytest.fixture
    def auth_provider(self):
        provider = AsyncMock(spec=IAuthProvider)
        provider.get_user.return_value = create_fake_user(id=8, email="sam@example.com", name="Sam")
        return provider

    @pytest.fixture
    def issuer(self, token_repository, auth_provider, notifier, policy, frozen_clock):
        return AdminTokenIssuer(
            token_repository,
            auth_provider,
            notifier,
            policy,
            reset_url_base="https://desk.example.com",
            clock=frozen_clock,
        )

    @pytest.mark.asyncio
    async def test_issue_mails_one_hour_link(self, issuer, token_repository, notifier, frozen_clock):
        grant = await issuer.issue(8, created_by_id=1)

        stored = token_repository.create.await_args.args[0]
        assert stored.user_id == 8
        assert stored.created_by_id == 1
        assert grant.token == stored.token
        assert grant.expires_at == frozen_clock() + timedelta(hours=1)
        assert grant.email_sent is True
        message = notifier.last("admin_reset")
        assert message.email == "sam@example.com"
        assert message.url == f"https://desk.example.com/reset-password?token={grant.token}"

    @pytest.mark.asyncio
    async def test_issue_for_unknown_user(self, issuer, auth_provider, token_repository):
        auth_provider.get_user.return_value = None

        with pytest.raises(UserNotFoundError):
            await issuer.issue(404)

        token_repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_delivery_is_reported_not_raised(self, issuer, notifier):
        notifier.deliver = False

        grant = await issuer.issue(8)

        assert grant.email_sent is False

    @pytest.mark.asyncio
    async def test_inspect_unknown_token(self, issuer, token_repository):
        token_repository.get_by_token.return_value = None

        outcome = await issuer.inspect("missing")

        assert outcome.status is RedeemStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_inspect_used_token(self, issuer, token_repository, frozen_clock):
        token_repository.get_by_token.return_value = create_fake_admin_token(
            user_id=8, used_at=frozen_clock(), now=frozen_clock()
        )

        outcome = await issuer.inspect("used")

        assert outcome.status is RedeemStatus.ALREADY_USED

    @pytest.mark.asyncio
    async def test_inspect_expired_token(self, issuer, token_repository, frozen_clock):
        token_repository.get_by_token.return_value = create_fake_admin_token(user_id=8, now=frozen_clock())
        frozen_clock.advance(hours=1)

        outcome = await issuer.inspect("expired")

        assert outcome.status is RedeemStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_inspect_does_not_use_the_token(self, issuer, token_repository, frozen_clock):
        token_repository.get_by_token.return_value = create_fake_admin_token(user_id=8, now=frozen_clock())

        outcome = await issuer.inspect("fresh")

        assert outcome.status is RedeemStatus.VALID
        assert outcome.user_id == 8
        token_repository.claim.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_claim_marks_token_used(self, issuer, token_repository, frozen_clock):
        token_repository.claim.return_value = True

        outcome = await issuer.claim("fresh", 8)

        assert outcome.status is RedeemStatus.VALID
        assert outcome.user_id == 8
        token_repository.claim.assert_awaited_once_with("fresh", frozen_clock())

    @pytest.mark.asyncio
    async def test_losing_the_claim(self, issuer, token_repository):
        token_repository.claim.return_value = False

        outcome = await issuer.claim("contended", 8)

        assert outcome.status is RedeemStatus.ALREADY_USED

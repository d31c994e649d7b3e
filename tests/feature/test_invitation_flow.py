"""Invitation creation, code delivery and acceptance through the HTTP API."""

import pytest
import pytest_asyncio

from src.domain.entities.user import Role
from tests.feature.conftest import PASSWORD_CONTEXT, bearer_for

pytestmark = pytest.mark.feature

INVITE_URL = "/api/v1/admin/invitations"


async def invite(client, admin, email="new.hire@example.com", role="ADMIN"):
    response = await client.post(INVITE_URL, json={"email": email, "role": role}, headers=bearer_for(admin.id))
    return response


def token_from(notifier):
    return notifier.last("invitation").url.rsplit("/", 1)[-1]


class TestCreateInvitation:
    @pytest.mark.asyncio
    async def test_super_admin_invites(self, async_client, super_admin, notifier, frozen_clock):
        response = await invite(async_client, super_admin, email="New.Hire@Example.com")

        assert response.status_code == 201
        body = response.json()
        assert body["invitation"]["email"] == "new.hire@example.com"
        assert body["invitation"]["role"] == "ADMIN"
        assert notifier.last("invitation").email == "new.hire@example.com"
        assert "/invite/" in notifier.last("invitation").url

    @pytest.mark.asyncio
    async def test_pending_invitation_conflicts(self, async_client, super_admin):
        await invite(async_client, super_admin)

        response = await invite(async_client, super_admin)

        assert response.status_code == 409
        assert response.json()["code"] == "pending_invitation_exists"

    @pytest.mark.asyncio
    async def test_existing_account_conflicts(self, async_client, super_admin, create_user):
        await create_user(email="taken@example.com")

        response = await invite(async_client, super_admin, email="taken@example.com")

        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_user_error"

    @pytest.mark.asyncio
    async def test_requires_super_admin(self, async_client, create_user):
        agent = await create_user(email="agent@example.com", role=Role.ADMIN)

        anonymous = await async_client.post(INVITE_URL, json={"email": "x@example.com"})
        forbidden = await invite(async_client, agent)

        assert anonymous.status_code == 401
        assert forbidden.status_code == 403


class TestAcceptInvitation:
    @pytest_asyncio.fixture
    async def token(self, async_client, super_admin, notifier):
        await invite(async_client, super_admin)
        return token_from(notifier)

    @pytest.mark.asyncio
    async def test_full_acceptance(self, async_client, token, notifier):
        # Act
        sent = await async_client.post(f"/api/v1/invitations/{token}/send-code")
        accepted = await async_client.post(
            f"/api/v1/invitations/{token}/accept",
            json={"name": "New Hire", "password": "Str0ng-Pass!", "verification_code": "042517"},
        )
        again = await async_client.post(
            f"/api/v1/invitations/{token}/accept",
            json={"name": "New Hire", "password": "Str0ng-Pass!", "verification_code": "042517"},
        )

        # Assert
        assert sent.status_code == 200
        assert sent.json()["codes_sent"] == 1
        assert sent.json()["max_codes"] == 3
        assert notifier.codes_for("new.hire@example.com") == ["042517"]

        assert accepted.status_code == 201
        user = accepted.json()["user"]
        assert user["email"] == "new.hire@example.com"
        assert user["role"] == "ADMIN"
        assert user["name"] == "New Hire"

        assert again.status_code == 410
        assert again.json()["code"] == "invitation_already_accepted"

    @pytest.mark.asyncio
    async def test_account_password_is_usable(self, async_client, token, session_factory):
        await async_client.post(f"/api/v1/invitations/{token}/send-code")
        await async_client.post(
            f"/api/v1/invitations/{token}/accept",
            json={"name": "New Hire", "password": "Str0ng-Pass!", "verification_code": "042517"},
        )

        from src.infrastructure.repositories import UserRepository

        async with session_factory() as session:
            user = await UserRepository(session).get_by_email("new.hire@example.com")
        assert PASSWORD_CONTEXT.verify("Str0ng-Pass!", user.hashed_password)

    @pytest.mark.asyncio
    async def test_code_budget_is_reported(self, async_client, token):
        statuses = [(await async_client.post(f"/api/v1/invitations/{token}/send-code")).status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]

    @pytest.mark.asyncio
    async def test_wrong_code(self, async_client, token):
        await async_client.post(f"/api/v1/invitations/{token}/send-code")

        response = await async_client.post(
            f"/api/v1/invitations/{token}/accept",
            json={"name": "New Hire", "password": "Str0ng-Pass!", "verification_code": "123456"},
        )

        assert response.status_code == 400
        assert response.json()["remaining_attempts"] == 4

    @pytest.mark.asyncio
    async def test_expired_invitation(self, async_client, token, frozen_clock):
        frozen_clock.advance(days=7)

        response = await async_client.post(f"/api/v1/invitations/{token}/send-code")

        assert response.status_code == 410
        assert response.json()["code"] == "invitation_expired"

    @pytest.mark.asyncio
    async def test_unknown_token(self, async_client):
        response = await async_client.post("/api/v1/invitations/does-not-exist/send-code")

        assert response.status_code == 404
        assert response.json()["code"] == "invitation_not_found"


class TestManageInvitation:
    @pytest_asyncio.fixture
    async def token(self, async_client, super_admin, notifier):
        await invite(async_client, super_admin)
        return token_from(notifier)

    @pytest.mark.asyncio
    async def test_cancelled_invitation_is_unknown(self, async_client, super_admin, token):
        # Arrange
        await async_client.post(f"/api/v1/invitations/{token}/send-code")

        # Act
        cancelled = await async_client.delete(f"{INVITE_URL}/{token}", headers=bearer_for(super_admin.id))
        accepted = await async_client.post(
            f"/api/v1/invitations/{token}/accept",
            json={"name": "New Hire", "password": "Str0ng-Pass!", "verification_code": "042517"},
        )
        reinvited = await invite(async_client, super_admin)

        # Assert
        assert cancelled.status_code == 200
        assert accepted.status_code == 404
        assert accepted.json()["code"] == "invitation_not_found"
        assert reinvited.status_code == 201

    @pytest.mark.asyncio
    async def test_cancel_unknown_invitation(self, async_client, super_admin):
        response = await async_client.delete(f"{INVITE_URL}/{'x' * 43}", headers=bearer_for(super_admin.id))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_accepted_invitation_cannot_be_cancelled(self, async_client, super_admin, token):
        await async_client.post(f"/api/v1/invitations/{token}/send-code")
        await async_client.post(
            f"/api/v1/invitations/{token}/accept",
            json={"name": "New Hire", "password": "Str0ng-Pass!", "verification_code": "042517"},
        )

        response = await async_client.delete(f"{INVITE_URL}/{token}", headers=bearer_for(super_admin.id))

        assert response.status_code == 410
        assert response.json()["code"] == "invitation_already_accepted"

    @pytest.mark.asyncio
    async def test_resend_mails_the_link_again(self, async_client, super_admin, token, notifier):
        response = await async_client.post(f"{INVITE_URL}/{token}/resend", headers=bearer_for(super_admin.id))

        assert response.status_code == 200
        mailed = [m for m in notifier.sent if m.kind == "invitation"]
        assert len(mailed) == 2
        assert mailed[-1].url.endswith(f"/invite/{token}")

    @pytest.mark.asyncio
    async def test_resend_expired_invitation(self, async_client, super_admin, token, frozen_clock):
        frozen_clock.advance(days=7)

        response = await async_client.post(f"{INVITE_URL}/{token}/resend", headers=bearer_for(super_admin.id))

        assert response.status_code == 410
        assert response.json()["code"] == "invitation_expired"

    @pytest.mark.asyncio
    async def test_management_requires_super_admin(self, async_client, create_user, token):
        agent = await create_user(email="agent@example.com", role=Role.ADMIN)

        cancelled = await async_client.delete(f"{INVITE_URL}/{token}", headers=bearer_for(agent.id))
        resent = await async_client.post(f"{INVITE_URL}/{token}/resend", headers=bearer_for(agent.id))

        assert cancelled.status_code == 403
        assert resent.status_code == 403

"""Integration tests for Invitations API."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import AsyncContextManager
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from domain.entities.invitation import generate_invitation_token
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import InvitationModel
from tests.conftest import RecordingDispatcher

ClientFor = Callable[[TokenUser], AsyncContextManager[AsyncClient]]


async def _create_organization(client: AsyncClient) -> str:
    response = await client.post(
        "/api/v1/organizations",
        json={"name": f"Invite Org {uuid4().hex[:8]}", "contact_email": "ops@acme.test"},
    )
    assert response.status_code == 201, f"Organization creation failed: {response.json()}"
    return str(response.json()["id"])


async def _invite(client: AsyncClient, organization_id: str, user: TokenUser) -> dict:
    response = await client.post(
        f"/api/v1/organizations/{organization_id}/invitations",
        json={"email": user.email, "name": user.display_name},
    )
    assert response.status_code == 201, f"Invitation failed: {response.json()}"
    return response.json()


@pytest.fixture
async def inv_organization_id(authenticated_client: AsyncClient) -> str:
    """Create an organization owned by the test user."""
    return await _create_organization(authenticated_client)


class TestInvitationCreation:
    """Tests for creating invitations."""

    @pytest.mark.asyncio
    async def test_create_invitation(
        self,
        authenticated_client: AsyncClient,
        inv_organization_id: str,
        dispatcher: RecordingDispatcher,
    ) -> None:
        """POST /organizations/{id}/invitations returns 201 with the invite link."""
        email = f"invitee-{uuid4().hex[:8]}@example.com"
        response = await authenticated_client.post(
            f"/api/v1/organizations/{inv_organization_id}/invitations",
            json={"email": email.upper(), "name": "Invitee", "department": "Ops"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["email"] == email
        assert body["data"]["status"] == "pending"
        assert body["data"]["role"] == "employee"
        assert body["data"]["is_new_user"] is True
        assert len(body["data"]["token"]) == 64
        assert body["data"]["token"] in body["invite_link"]
        assert body["email_sent"] is True
        assert dispatcher.sent[-1]["to"] == email

    @pytest.mark.asyncio
    async def test_create_duplicate_invitation(
        self, authenticated_client: AsyncClient, inv_organization_id: str
    ) -> None:
        """A second pending invitation for the same email returns 409."""
        email = f"dup-{uuid4().hex[:8]}@example.com"
        url = f"/api/v1/organizations/{inv_organization_id}/invitations"

        first = await authenticated_client.post(url, json={"email": email, "name": "Dup"})
        second = await authenticated_client.post(url, json={"email": email, "name": "Dup"})

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error_code"] == "DUPLICATE_INVITATION"

    @pytest.mark.asyncio
    async def test_only_employee_invitations(
        self, authenticated_client: AsyncClient, inv_organization_id: str
    ) -> None:
        """Inviting with a role other than employee returns 400."""
        response = await authenticated_client.post(
            f"/api/v1/organizations/{inv_organization_id}/invitations",
            json={"email": "boss@example.com", "name": "Boss", "role": "manager"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(
        self, authenticated_client: AsyncClient, inv_organization_id: str
    ) -> None:
        response = await authenticated_client.post(
            f"/api/v1/organizations/{inv_organization_id}/invitations",
            json={"email": "not-an-email", "name": "Nobody"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_non_member_cannot_invite(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
        inv_organization_id: str,
    ) -> None:
        """Someone outside the organization gets 403."""
        async with client_for(make_user("Outsider")) as outsider:
            response = await outsider.post(
                f"/api/v1/organizations/{inv_organization_id}/invitations",
                json={"email": "friend@example.com", "name": "Friend"},
            )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_MEMBER"

    @pytest.mark.asyncio
    async def test_existing_member_cannot_be_invited(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """Inviting an active member returns 409."""
        admin_user = make_user("Admin")
        async with client_for(admin_user) as admin:
            org_id = await _create_organization(admin)
            response = await admin.post(
                f"/api/v1/organizations/{org_id}/invitations",
                json={"email": admin_user.email, "name": "Me"},
            )

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_A_MEMBER"


class TestInvitationListing:
    """Tests for listing invitations."""

    @pytest.mark.asyncio
    async def test_list_organization_invitations(
        self, authenticated_client: AsyncClient, inv_organization_id: str
    ) -> None:
        """GET /organizations/{id}/invitations returns pending invitations."""
        await authenticated_client.post(
            f"/api/v1/organizations/{inv_organization_id}/invitations",
            json={"email": f"list-{uuid4().hex[:8]}@example.com", "name": "Listed"},
        )

        response = await authenticated_client.get(
            f"/api/v1/organizations/{inv_organization_id}/invitations"
        )

        assert response.status_code == 200
        assert response.json()["meta"]["total"] == 1
        assert response.json()["data"][0]["name"] == "Listed"

    @pytest.mark.asyncio
    async def test_get_pending_invitations(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """GET /invitations/pending lists invitations for the caller's email."""
        invitee = make_user("Pending")
        async with client_for(make_user("Admin")) as admin:
            org_id = await _create_organization(admin)
            await _invite(admin, org_id, invitee)

        async with client_for(invitee) as jane:
            response = await jane.get("/api/v1/invitations/pending")

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["organization_id"] == org_id


class TestInvitationValidation:
    """Tests for the public validate endpoint."""

    @pytest.mark.asyncio
    async def test_valid_link(
        self,
        authenticated_client: AsyncClient,
        public_client: AsyncClient,
        inv_organization_id: str,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """A fresh link validates without authentication."""
        invitee = make_user("Valid")
        created = await _invite(authenticated_client, inv_organization_id, invitee)
        token = created["data"]["token"]

        response = await public_client.get(
            "/api/v1/invitations/validate",
            params={"token": token, "email": invitee.email, "org": inv_organization_id},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["invitation"]["email"] == invitee.email
        assert body["invitation"]["role"] == "employee"
        assert "token" not in body["invitation"]

    @pytest.mark.asyncio
    async def test_wrong_organization(
        self,
        authenticated_client: AsyncClient,
        public_client: AsyncClient,
        inv_organization_id: str,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        invitee = make_user("Wrong")
        created = await _invite(authenticated_client, inv_organization_id, invitee)

        response = await public_client.get(
            "/api/v1/invitations/validate",
            params={"token": created["data"]["token"], "org": str(uuid4())},
        )

        assert response.status_code == 200
        assert response.json() == {
            "valid": False,
            "reason": "wrong-organization",
            "invitation": None,
        }

    @pytest.mark.asyncio
    async def test_email_mismatch(
        self,
        authenticated_client: AsyncClient,
        public_client: AsyncClient,
        inv_organization_id: str,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        created = await _invite(authenticated_client, inv_organization_id, make_user("Mismatch"))

        response = await public_client.get(
            "/api/v1/invitations/validate",
            params={"token": created["data"]["token"], "email": "someone-else@example.com"},
        )

        assert response.json()["valid"] is False
        assert response.json()["reason"] == "invalid-or-expired"

    @pytest.mark.asyncio
    async def test_unknown_token(self, public_client: AsyncClient) -> None:
        response = await public_client.get(
            "/api/v1/invitations/validate", params={"token": "f" * 64}
        )

        assert response.status_code == 200
        assert response.json()["reason"] == "invalid-or-expired"

    @pytest.mark.asyncio
    async def test_malformed_organization_id(self, public_client: AsyncClient) -> None:
        """A non-UUID org parameter returns 400."""
        response = await public_client.get(
            "/api/v1/invitations/validate", params={"token": "abc", "org": "not-a-uuid"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ORGANIZATION"


class TestInvitationAcceptance:
    """Tests for accepting invitations."""

    @pytest.mark.asyncio
    async def test_accept_invitation_full_flow(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
        dispatcher: RecordingDispatcher,
    ) -> None:
        """Invite, accept, then appear in the member list with the invited role."""
        invitee = make_user("Jane")
        async with client_for(make_user("Admin")) as admin:
            org_id = await _create_organization(admin)
            created = await _invite(admin, org_id, invitee)
            token = created["data"]["token"]

            async with client_for(invitee) as jane:
                response = await jane.post("/api/v1/invitations/accept", json={"token": token})

                assert response.status_code == 200
                body = response.json()
                assert body["organization_id"] == org_id
                assert body["role"] == "employee"
                assert body["organization_name"].startswith("Invite Org")

                orgs = await jane.get("/api/v1/organizations")
                assert [o["id"] for o in orgs.json()["data"]] == [org_id]
                assert orgs.json()["meta"]["current_organization_id"] == org_id

            members = await admin.get(f"/api/v1/organizations/{org_id}/members")
            emails = {m["email"]: m["role"] for m in members.json()["data"]}
            assert emails[invitee.email] == "employee"

            pending = await admin.get(f"/api/v1/organizations/{org_id}/invitations")
            assert pending.json()["data"] == []

        # The invitation and the welcome email
        assert [m["to"] for m in dispatcher.sent] == [invitee.email, invitee.email]

    @pytest.mark.asyncio
    async def test_accept_twice(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """A used token cannot be accepted again."""
        invitee = make_user("Twice")
        async with client_for(make_user("Admin")) as admin:
            org_id = await _create_organization(admin)
            token = (await _invite(admin, org_id, invitee))["data"]["token"]

        async with client_for(invitee) as jane:
            first = await jane.post("/api/v1/invitations/accept", json={"token": token})
            second = await jane.post("/api/v1/invitations/accept", json={"token": token})

        assert first.status_code == 200
        assert second.status_code == 404
        assert second.json()["error_code"] == "INVITATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_accept_for_other_email(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """The signed-in email must match the invitation."""
        async with client_for(make_user("Admin")) as admin:
            org_id = await _create_organization(admin)
            token = (await _invite(admin, org_id, make_user("Intended")))["data"]["token"]

        async with client_for(make_user("Intruder")) as intruder:
            response = await intruder.post("/api/v1/invitations/accept", json={"token": token})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_accept_requires_auth(self, public_client: AsyncClient) -> None:
        response = await public_client.post("/api/v1/invitations/accept", json={"token": "x"})

        assert response.status_code == 401


class TestInvitationRevocation:
    """Tests for revoking invitations."""

    @pytest.mark.asyncio
    async def test_revoke_invitation(
        self,
        authenticated_client: AsyncClient,
        public_client: AsyncClient,
        inv_organization_id: str,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """DELETE /organizations/{id}/invitations/{token} returns 204."""
        token = (await _invite(authenticated_client, inv_organization_id, make_user("Revoked")))[
            "data"
        ]["token"]

        response = await authenticated_client.delete(
            f"/api/v1/organizations/{inv_organization_id}/invitations/{token}"
        )

        assert response.status_code == 204
        check = await public_client.get("/api/v1/invitations/validate", params={"token": token})
        assert check.json()["valid"] is False

    @pytest.mark.asyncio
    async def test_revoke_nonexistent(
        self, authenticated_client: AsyncClient, inv_organization_id: str
    ) -> None:
        response = await authenticated_client.delete(
            f"/api/v1/organizations/{inv_organization_id}/invitations/{'0' * 64}"
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_revoke_from_other_organization(
        self,
        authenticated_client: AsyncClient,
        inv_organization_id: str,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        """A token from one organization cannot be revoked through another."""
        token = (await _invite(authenticated_client, inv_organization_id, make_user("Cross")))[
            "data"
        ]["token"]
        other_org = await _create_organization(authenticated_client)

        response = await authenticated_client.delete(
            f"/api/v1/organizations/{other_org}/invitations/{token}"
        )

        assert response.status_code == 404


async def _backdate(
    session_factory: async_sessionmaker[AsyncSession], token: str
) -> None:
    async with session_factory() as session:
        await session.execute(
            update(InvitationModel)
            .where(InvitationModel.token == token)
            .values(expires_at=datetime.utcnow() - timedelta(seconds=1))
        )
        await session.commit()


async def _stored_status(session_factory: async_sessionmaker[AsyncSession], token: str) -> str:
    async with session_factory() as session:
        result = await session.execute(
            select(InvitationModel.status).where(InvitationModel.token == token)
        )
        return str(result.scalar_one())


class TestInvitationExpiry:
    """Tests for overdue invitations against the database."""

    @pytest.mark.asyncio
    async def test_overdue_invitation_is_expired_on_validate(
        self,
        authenticated_client: AsyncClient,
        public_client: AsyncClient,
        inv_organization_id: str,
        make_user: Callable[[str], TokenUser],
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Validate reports expired, persists it, and the invitation leaves the pending list."""
        invitee = make_user("Late")
        token = (await _invite(authenticated_client, inv_organization_id, invitee))["data"][
            "token"
        ]
        await _backdate(session_factory, token)

        response = await public_client.get(
            "/api/v1/invitations/validate",
            params={"token": token, "email": invitee.email, "org": inv_organization_id},
        )

        assert response.json()["valid"] is False
        assert response.json()["reason"] == "expired"
        assert await _stored_status(session_factory, token) == "expired"

        pending = await authenticated_client.get(
            f"/api/v1/organizations/{inv_organization_id}/invitations"
        )
        assert pending.json()["data"] == []

        again = await public_client.get("/api/v1/invitations/validate", params={"token": token})
        assert again.json()["reason"] == "invalid-or-expired"

    @pytest.mark.asyncio
    async def test_reinvite_after_expiry(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """An overdue pending invitation does not block a new one for the same email."""
        invitee = make_user("Again")
        async with client_for(make_user("Admin")) as admin:
            org_id = await _create_organization(admin)
            old_token = (await _invite(admin, org_id, invitee))["data"]["token"]
            await _backdate(session_factory, old_token)

            reinvited = await admin.post(
                f"/api/v1/organizations/{org_id}/invitations",
                json={"email": invitee.email, "name": invitee.display_name},
            )
            assert reinvited.status_code == 201
            new_token = reinvited.json()["data"]["token"]

        assert await _stored_status(session_factory, old_token) == "expired"

        async with client_for(invitee) as jane:
            old = await jane.post("/api/v1/invitations/accept", json={"token": old_token})
            new = await jane.post("/api/v1/invitations/accept", json={"token": new_token})

        assert old.status_code == 404
        assert old.json()["error_code"] == "INVITATION_NOT_FOUND"
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_accept_overdue_invitation(
        self,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        invitee = make_user("Overdue")
        async with client_for(make_user("Admin")) as admin:
            org_id = await _create_organization(admin)
            token = (await _invite(admin, org_id, invitee))["data"]["token"]
        await _backdate(session_factory, token)

        async with client_for(invitee) as jane:
            response = await jane.post("/api/v1/invitations/accept", json={"token": token})

        assert response.status_code == 410
        assert response.json()["error_code"] == "INVITATION_EXPIRED"
        assert await _stored_status(session_factory, token) == "expired"


class TestPendingInvitationIndex:
    """The partial unique index allows one pending invitation per email and organization."""

    @staticmethod
    def _row(organization_id: UUID, email: str, status: str = "pending") -> InvitationModel:
        return InvitationModel(
            id=uuid4(),
            token=generate_invitation_token(),
            organization_id=organization_id,
            email=email,
            name="Indexed",
            role="employee",
            inviter_id=uuid4(),
            inviter_name="Admin",
            inviter_email="admin@example.com",
            status=status,
            is_new_user=True,
            expires_at=datetime.utcnow() + timedelta(hours=24),
        )

    @pytest.mark.asyncio
    async def test_second_pending_row_rejected(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        organization_id = uuid4()
        email = f"indexed-{uuid4().hex[:8]}@example.com"

        async with session_factory() as session:
            session.add(self._row(organization_id, email))
            await session.commit()

            session.add(self._row(organization_id, email))
            with pytest.raises(IntegrityError):
                await session.commit()
            await session.rollback()

    @pytest.mark.asyncio
    async def test_terminal_rows_do_not_count(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        organization_id = uuid4()
        email = f"indexed-{uuid4().hex[:8]}@example.com"

        async with session_factory() as session:
            session.add(self._row(organization_id, email, status="accepted"))
            session.add(self._row(organization_id, email, status="expired"))
            session.add(self._row(organization_id, email))
            await session.commit()

            result = await session.execute(
                select(InvitationModel).where(InvitationModel.email == email)
            )
            assert len(result.scalars().all()) == 3

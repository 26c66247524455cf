"""Integration tests for Organizations API."""

from collections.abc import Callable
from typing import AsyncContextManager
from uuid import uuid4

import pytest
from httpx import AsyncClient

from infrastructure.auth.provider import TokenUser

ClientFor = Callable[[TokenUser], AsyncContextManager[AsyncClient]]


def _unique_name(prefix: str) -> str:
    return f"{prefix} {uuid4().hex[:8]}"


async def _create(client: AsyncClient, **overrides: object) -> dict:
    payload = {"name": _unique_name("Org"), "contact_email": "ops@acme.test", **overrides}
    response = await client.post("/api/v1/organizations", json=payload)
    assert response.status_code == 201, f"Organization creation failed: {response.json()}"
    return dict(response.json())


class TestOrganizationCRUD:
    """Tests for organization create, read, update, delete."""

    @pytest.mark.asyncio
    async def test_create_organization(self, authenticated_client: AsyncClient) -> None:
        """POST /api/v1/organizations returns 201 with the caller as admin."""
        name = _unique_name("Create Org")
        response = await authenticated_client.post(
            "/api/v1/organizations",
            json={
                "name": name,
                "contact_email": "OPS@Acme.test",
                "description": "Widgets",
                "settings": {"currency": "EUR"},
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == name
        assert data["contact_email"] == "ops@acme.test"
        assert data["role"] == "admin"
        assert data["is_active"] is True
        assert data["settings"]["currency"] == "EUR"
        assert data["settings"]["default_user_role"] == "employee"
        assert data["subscription"]["plan"] == "free"

    @pytest.mark.asyncio
    async def test_create_requires_contact_email(self, authenticated_client: AsyncClient) -> None:
        response = await authenticated_client.post(
            "/api/v1/organizations", json={"name": _unique_name("No Email")}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, public_client: AsyncClient) -> None:
        response = await public_client.post(
            "/api/v1/organizations",
            json={"name": "Anon", "contact_email": "anon@example.com"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_organizations(
        self, client_for: ClientFor, make_user: Callable[[str], TokenUser]
    ) -> None:
        """GET /api/v1/organizations lists the caller's organizations."""
        async with client_for(make_user("Lister")) as client:
            first = await _create(client)
            second = await _create(client)

            response = await client.get("/api/v1/organizations")

        assert response.status_code == 200
        body = response.json()
        assert body["meta"]["total"] == 2
        assert {o["id"] for o in body["data"]} == {first["id"], second["id"]}
        assert all(o["role"] == "admin" for o in body["data"])
        # The first organization a user creates becomes current
        assert body["meta"]["current_organization_id"] == first["id"]

    @pytest.mark.asyncio
    async def test_get_organization(self, authenticated_client: AsyncClient) -> None:
        created = await _create(authenticated_client)

        response = await authenticated_client.get(f"/api/v1/organizations/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        assert response.json()["role"] == "admin"

    @pytest.mark.asyncio
    async def test_get_organization_not_found(self, authenticated_client: AsyncClient) -> None:
        response = await authenticated_client.get(f"/api/v1/organizations/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ORGANIZATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_organization_as_outsider(
        self,
        authenticated_client: AsyncClient,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        created = await _create(authenticated_client)

        async with client_for(make_user("Outsider")) as outsider:
            response = await outsider.get(f"/api/v1/organizations/{created['id']}")

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_MEMBER"

    @pytest.mark.asyncio
    async def test_update_organization(self, authenticated_client: AsyncClient) -> None:
        """PATCH /api/v1/organizations/{id} updates the given fields only."""
        created = await _create(authenticated_client, description="Before")
        new_name = _unique_name("Renamed")

        response = await authenticated_client.patch(
            f"/api/v1/organizations/{created['id']}",
            json={"name": new_name, "settings": {"timezone": "Europe/Paris"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == new_name
        assert data["description"] == "Before"
        assert data["settings"]["timezone"] == "Europe/Paris"
        assert data["settings"]["currency"] == created["settings"]["currency"]

    @pytest.mark.asyncio
    async def test_delete_organization(self, authenticated_client: AsyncClient) -> None:
        """DELETE /api/v1/organizations/{id} returns 204 and the organization is gone."""
        created = await _create(authenticated_client)

        response = await authenticated_client.delete(f"/api/v1/organizations/{created['id']}")

        assert response.status_code == 204
        get_resp = await authenticated_client.get(f"/api/v1/organizations/{created['id']}")
        assert get_resp.status_code == 404


class TestSwitchOrganization:
    """Tests for switching the current organization."""

    @pytest.mark.asyncio
    async def test_switch(
        self, client_for: ClientFor, make_user: Callable[[str], TokenUser]
    ) -> None:
        async with client_for(make_user("Switcher")) as client:
            await _create(client)
            second = await _create(client)

            response = await client.post(
                "/api/v1/organizations/switch", json={"organization_id": second["id"]}
            )
            listing = await client.get("/api/v1/organizations")

        assert response.status_code == 200
        body = response.json()
        assert body["organization_id"] == second["id"]
        assert body["role"] == "admin"
        assert body["permissions"]["can_delete_organization"] is True
        assert listing.json()["meta"]["current_organization_id"] == second["id"]

    @pytest.mark.asyncio
    async def test_switch_to_foreign_organization(
        self,
        authenticated_client: AsyncClient,
        client_for: ClientFor,
        make_user: Callable[[str], TokenUser],
    ) -> None:
        created = await _create(authenticated_client)

        async with client_for(make_user("Stranger")) as stranger:
            response = await stranger.post(
                "/api/v1/organizations/switch", json={"organization_id": created["id"]}
            )

        assert response.status_code == 403

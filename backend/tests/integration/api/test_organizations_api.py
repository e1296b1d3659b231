"""
Integration tests for organization listing and switching.

WHY: The active organization decides which data every other endpoint
returns. Switching must only be possible into organizations the caller
belongs to, and a refused switch must not reveal whether the target exists.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from propman.models.organization import OrganizationRole
from tests.factories import MembershipFactory, auth_headers


class TestOrganizationEndpoints:
    @pytest.mark.asyncio
    async def test_list_marks_active_organization(
        self, client: AsyncClient, db_session, org_a, owner_a, owner_b, org_b
    ):
        await MembershipFactory.grant(
            db_session, org_b, owner_a, OrganizationRole.PROPERTY_MANAGER, granted_by=owner_b
        )

        response = await client.get("/api/organizations", headers=auth_headers(owner_a))

        assert response.status_code == 200
        rows = {row["organization_id"]: row for row in response.json()}
        assert rows[str(org_a.id)]["is_active_organization"] is True
        assert rows[str(org_a.id)]["role"] == OrganizationRole.OWNER
        assert rows[str(org_b.id)]["is_active_organization"] is False
        assert rows[str(org_b.id)]["role"] == OrganizationRole.PROPERTY_MANAGER

    @pytest.mark.asyncio
    async def test_active_organization(self, client: AsyncClient, org_a, member_a):
        response = await client.get("/api/organizations/active", headers=auth_headers(member_a))

        assert response.status_code == 200
        data = response.json()
        assert data["organization"]["id"] == str(org_a.id)
        assert data["role"] == OrganizationRole.USER

    @pytest.mark.asyncio
    async def test_switch_into_member_organization(
        self, client: AsyncClient, db_session, org_a, owner_a, owner_b, org_b
    ):
        await MembershipFactory.grant(
            db_session, org_b, owner_a, OrganizationRole.ADMINISTRATOR, granted_by=owner_b
        )

        response = await client.post(
            "/api/organizations/switch",
            json={"organization_id": str(org_b.id)},
            headers=auth_headers(owner_a),
        )

        assert response.status_code == 200
        assert response.json()["organization"]["name"] == "Organization B"
        assert response.json()["role"] == OrganizationRole.ADMINISTRATOR
        assert owner_a.active_organization_id == org_b.id

    @pytest.mark.asyncio
    async def test_switch_into_foreign_or_missing_organization_is_404(
        self, client: AsyncClient, org_a, owner_a, org_b
    ):
        foreign = await client.post(
            "/api/organizations/switch",
            json={"organization_id": str(org_b.id)},
            headers=auth_headers(owner_a),
        )
        missing = await client.post(
            "/api/organizations/switch",
            json={"organization_id": str(uuid4())},
            headers=auth_headers(owner_a),
        )

        assert foreign.status_code == missing.status_code == 404
        assert owner_a.active_organization_id == org_a.id

    @pytest.mark.asyncio
    async def test_create_organization(self, client: AsyncClient, db_session, owner_a, org_a):
        response = await client.post(
            "/api/organizations",
            json={"name": "Lakeside Lofts", "state": "WA"},
            headers=auth_headers(owner_a),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Lakeside Lofts"
        assert data["display_name"] == "Lakeside Lofts"
        assert data["owner_id"] == owner_a.id

    @pytest.mark.asyncio
    async def test_anonymous_is_401(self, client: AsyncClient):
        assert (await client.get("/api/organizations")).status_code == 401
        assert (
            await client.post("/api/organizations", json={"name": "Nope"})
        ).status_code == 401

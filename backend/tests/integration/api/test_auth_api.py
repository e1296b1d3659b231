"""
Integration tests for the token endpoint.

WHY: Every other test authenticates with a pre-built token; these make
sure the real login path issues one the rest of the API accepts.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import UserFactory


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_then_use_token(self, client: AsyncClient, db_session: AsyncSession):
        user = await UserFactory.create(db_session, email="pm@example.com", password="Password123!")

        response = await client.post(
            "/api/auth/token",
            json={"email": "PM@example.com", "password": "Password123!"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0
        assert user.last_login_on is not None

        me = await client.get(
            "/api/organizations/active",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        assert me.status_code == 200
        assert me.json() == {"organization": None, "role": None}

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        """WHY: Different messages would let callers enumerate accounts."""
        await UserFactory.create(db_session, email="pm@example.com", password="Password123!")

        wrong = await client.post(
            "/api/auth/token", json={"email": "pm@example.com", "password": "nope"}
        )
        unknown = await client.post(
            "/api/auth/token", json={"email": "ghost@example.com", "password": "nope"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"]

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_login(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(
            db_session, email="gone@example.com", password="Password123!", is_active=False
        )

        response = await client.post(
            "/api/auth/token", json={"email": "gone@example.com", "password": "Password123!"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, client: AsyncClient):
        response = await client.get(
            "/api/organizations/active", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401

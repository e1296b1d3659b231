"""
Tests for UserContextService (tenant context resolver).

WHY: Every scoped operation asks this service for the active
organization. A wrong answer here is a cross-tenant leak everywhere.
"""

from uuid import uuid4

import pytest

from propman.core.exceptions import UnauthenticatedAccessError
from propman.models.organization import OrganizationRole
from tests.factories import MembershipFactory, OrganizationFactory, UserFactory


class TestResolution:
    @pytest.mark.asyncio
    async def test_anonymous_caller_has_no_context(self, make_user_context):
        context = make_user_context(None)

        assert context.is_authenticated() is False
        assert context.get_user_id() is None
        assert await context.get_active_organization_id() is None
        assert await context.get_current_organization_role() is None
        assert await context.get_accessible_organizations() == []
        with pytest.raises(UnauthenticatedAccessError):
            context.require_user_id()

    @pytest.mark.asyncio
    async def test_resolves_active_organization_and_role(self, make_user_context, org_a, owner_a):
        context = make_user_context(owner_a)

        assert context.require_user_id() == owner_a.id
        assert await context.get_active_organization_id() == org_a.id
        assert await context.get_current_organization_role() == OrganizationRole.OWNER
        organization = await context.get_active_organization()
        assert organization.name == "Organization A"
        assert await context.get_user_email() == "owner-a@example.com"
        assert await context.get_user_name() == "Test User"

    @pytest.mark.asyncio
    async def test_user_without_organization_has_none(self, db_session, make_user_context):
        loner = await UserFactory.create(db_session)
        context = make_user_context(loner)

        assert await context.get_active_organization_id() is None
        assert await context.get_active_organization() is None
        assert await context.get_current_organization_role() is None

    @pytest.mark.asyncio
    async def test_missing_user_record_has_no_organization(self, db_session, make_user_context):
        """A token for a deleted user resolves to no organization rather than erroring."""
        ghost = await UserFactory.create(db_session)
        await db_session.delete(ghost)
        await db_session.flush()

        context = make_user_context(ghost)
        assert await context.get_current_user() is None
        assert await context.get_active_organization_id() is None


class TestSwitchOrganization:
    @pytest.mark.asyncio
    async def test_switch_to_member_organization_persists(
        self, db_session, make_user_context, org_a, owner_a, owner_b, org_b
    ):
        await MembershipFactory.grant(
            db_session, org_b, owner_a, OrganizationRole.ADMINISTRATOR, granted_by=owner_b
        )
        context = make_user_context(owner_a)

        assert await context.switch_organization(org_b.id) is True

        assert await context.get_active_organization_id() == org_b.id
        assert await context.get_current_organization_role() == OrganizationRole.ADMINISTRATOR
        # A brand-new context (next request) sees the same choice
        assert await make_user_context(owner_a).get_active_organization_id() == org_b.id

    @pytest.mark.asyncio
    async def test_switch_to_non_member_organization_fails_quietly(
        self, make_user_context, org_a, owner_a, org_b
    ):
        context = make_user_context(owner_a)

        assert await context.switch_organization(org_b.id) is False
        assert await context.switch_organization(uuid4()) is False
        assert await context.get_active_organization_id() == org_a.id

    @pytest.mark.asyncio
    async def test_switch_to_revoked_membership_fails(
        self, db_session, make_user_context, org_a, owner_a, member_a, owner_b, org_b
    ):
        from propman.services.organization_service import OrganizationService

        service = OrganizationService(db_session)
        await service.grant_organization_access(member_a.id, org_b.id, OrganizationRole.USER, owner_b.id)
        await service.revoke_organization_access(member_a.id, org_b.id, owner_b.id)

        assert await make_user_context(member_a).switch_organization(org_b.id) is False

    @pytest.mark.asyncio
    async def test_anonymous_switch_returns_false(self, make_user_context, org_a):
        assert await make_user_context(None).switch_organization(org_a.id) is False


class TestCaching:
    @pytest.mark.asyncio
    async def test_role_is_cached_until_refresh(self, db_session, make_user_context, org_a, owner_a, member_a):
        from propman.services.organization_service import OrganizationService

        context = make_user_context(member_a)
        assert await context.get_current_organization_role() == OrganizationRole.USER

        await OrganizationService(db_session).update_user_role(
            member_a.id, org_a.id, OrganizationRole.PROPERTY_MANAGER, owner_a.id
        )
        assert await context.get_current_organization_role() == OrganizationRole.USER

        await context.refresh()
        assert await context.get_current_organization_role() == OrganizationRole.PROPERTY_MANAGER


class TestPermissions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "permission,expected",
        [
            ("organizations.backup", True),
            ("organizations.delete", True),
            ("settings.edit", True),
            ("users.manage", True),
            ("properties.manage", True),
            ("no.such.permission", False),
        ],
    )
    async def test_owner_permissions(self, make_user_context, org_a, owner_a, permission, expected):
        assert await make_user_context(owner_a).has_permission(permission) is expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "permission", ["Organizations.Backup", "SETTINGS.EDIT", "Properties.Manage"]
    )
    async def test_permission_names_ignore_case(
        self, make_user_context, org_a, owner_a, permission
    ):
        """WHY: Callers spell permissions the way their UI labels them."""
        assert await make_user_context(owner_a).has_permission(permission) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "role,permission,expected",
        [
            (OrganizationRole.ADMINISTRATOR, "settings.retention", True),
            (OrganizationRole.ADMINISTRATOR, "organizations.backup", False),
            (OrganizationRole.PROPERTY_MANAGER, "properties.manage", True),
            (OrganizationRole.PROPERTY_MANAGER, "users.manage", False),
            (OrganizationRole.MAINTENANCE, "properties.manage", True),
            (OrganizationRole.USER, "properties.manage", False),
        ],
    )
    async def test_role_permissions(
        self, db_session, make_user_context, org_a, owner_a, role, permission, expected
    ):
        user = await UserFactory.create(db_session)
        await MembershipFactory.grant(db_session, org_a, user, role, granted_by=owner_a, activate=True)

        assert await make_user_context(user).has_permission(permission) is expected

    @pytest.mark.asyncio
    async def test_no_active_organization_has_no_permissions(self, db_session, make_user_context):
        loner = await UserFactory.create(db_session)
        assert await make_user_context(loner).has_permission("properties.manage") is False

    @pytest.mark.asyncio
    async def test_is_account_owner(self, db_session, make_user_context, org_a, owner_a, member_a):
        assert await make_user_context(owner_a).is_account_owner() is True
        assert await make_user_context(member_a).is_account_owner() is False

        await OrganizationFactory.create(db_session, member_a, name="Side Business")
        assert await make_user_context(member_a).is_account_owner() is True

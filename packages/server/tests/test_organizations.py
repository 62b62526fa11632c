"""
Tests for organization creation: slug availability, owner qualification,
the intent-to-create flow and organization subdomain helpers.

Tests cover:
- Slug conflict precedence (team > requestedSlug > onboarding)
- Partial uniqueness of open onboarding drafts
- Qualification rules for non-admin creators
- Intent flow error ordering and the HTTP mapping
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    Forbidden,
    NotQualified,
    OnboardingAlreadyExists,
    OwnerNotFound,
    SlugConflict,
    Unauthorized,
)
from app.models.organization_onboarding import OrganizationOnboarding
from app.services.organizations import (
    check_slug_available,
    intent_to_create_org,
    owner_is_qualified,
)
from teamhub_shared.org_domains import get_org_full_origin, get_org_slug, subdomain_suffix
from teamhub_shared.schemas.organizations import OrgIntentRequest, SlugConflictType

from _helpers import auth_headers, count_rows, make_membership, make_team, make_user


async def make_onboarding(session, creator, slug, *, owner_email=None, is_complete=False):
    onboarding = OrganizationOnboarding(
        created_by_id=creator.id,
        org_owner_email=owner_email or creator.email,
        name=slug.title(),
        slug=slug,
        is_complete=is_complete,
    )
    session.add(onboarding)
    await session.commit()
    return onboarding


def intent(slug="acme", owner="owner@example.com", **extra):
    return OrgIntentRequest(slug=slug, name="Acme Inc", org_owner_email=owner, **extra)


# ---------------------------------------------------------------------------
# Slug availability
# ---------------------------------------------------------------------------

class TestSlugAvailability:

    async def test_free_slug(self, session):
        result = await check_slug_available("acme", session)
        assert result.available is True
        assert result.conflict_type is None

    async def test_team_slug(self, session):
        await make_team(session, "Acme", slug="acme")
        result = await check_slug_available("acme", session)
        assert result.available is False
        assert result.conflict_type == SlugConflictType.TEAM

    async def test_requested_slug(self, session):
        await make_team(session, "Pending Org", metadata={"requestedSlug": "acme"})
        result = await check_slug_available("acme", session)
        assert result.conflict_type == SlugConflictType.REQUESTED_SLUG

    async def test_team_slug_wins_over_requested_slug(self, session):
        await make_team(session, "Pending Org", metadata={"requestedSlug": "acme"})
        await make_team(session, "Acme", slug="acme")
        result = await check_slug_available("acme", session)
        assert result.conflict_type == SlugConflictType.TEAM

    async def test_open_onboarding(self, session):
        creator = await make_user(session, "creator@example.com")
        await make_onboarding(session, creator, "acme")
        result = await check_slug_available("acme", session)
        assert result.conflict_type == SlugConflictType.ONBOARDING

    async def test_team_wins_over_onboarding(self, session):
        creator = await make_user(session, "creator@example.com")
        await make_onboarding(session, creator, "acme")
        await make_team(session, "Acme", slug="acme")
        result = await check_slug_available("acme", session)
        assert result.conflict_type == SlugConflictType.TEAM

    async def test_completed_onboarding_does_not_block(self, session):
        creator = await make_user(session, "creator@example.com")
        await make_onboarding(session, creator, "acme", is_complete=True)
        assert (await check_slug_available("acme", session)).available is True

    async def test_endpoint(self, client, session):
        user = await make_user(session, "user@example.com")
        await make_team(session, "Acme", slug="acme")

        response = await client.get(
            "/api/v1/organizations/slug-availability",
            params={"slug": "acme"},
            headers=auth_headers(user),
        )
        assert response.status_code == 200
        assert response.json() == {"available": False, "conflictType": "team"}

    async def test_endpoint_rejects_malformed_slug(self, client, session):
        user = await make_user(session, "user@example.com")
        response = await client.get(
            "/api/v1/organizations/slug-availability",
            params={"slug": "Not A Slug"},
            headers=auth_headers(user),
        )
        assert response.status_code == 422


class TestOnboardingUniqueness:

    async def test_one_open_draft_per_slug(self, session):
        creator = await make_user(session, "creator@example.com")
        await make_onboarding(session, creator, "acme", owner_email="a@example.com")
        with pytest.raises(IntegrityError):
            await make_onboarding(session, creator, "acme", owner_email="b@example.com")

    async def test_completed_drafts_do_not_count(self, session):
        creator = await make_user(session, "creator@example.com")
        await make_onboarding(session, creator, "acme", is_complete=True)
        await make_onboarding(session, creator, "acme")
        assert await count_rows(session, OrganizationOnboarding) == 2


# ---------------------------------------------------------------------------
# Owner qualification
# ---------------------------------------------------------------------------

class TestOwnerQualification:

    async def test_unrestricted(self, session):
        user = await make_user(session, "user@example.com")
        assert await owner_is_qualified(user.id, session, restrict=False)

    async def test_platform_bypasses_restriction(self, session):
        user = await make_user(session, "user@example.com")
        assert await owner_is_qualified(user.id, session, restrict=True, is_platform=True)

    async def test_plain_member_not_qualified(self, session):
        user = await make_user(session, "user@example.com")
        team = await make_team(session, "Team")
        await make_membership(session, user, team, role="MEMBER")
        assert not await owner_is_qualified(user.id, session, restrict=True)

    async def test_admin_of_standalone_team(self, session):
        user = await make_user(session, "user@example.com")
        team = await make_team(session, "Team")
        await make_membership(session, user, team, role="ADMIN")
        assert await owner_is_qualified(user.id, session, restrict=True)

    async def test_pending_admin_not_qualified(self, session):
        user = await make_user(session, "user@example.com")
        team = await make_team(session, "Team")
        await make_membership(session, user, team, role="ADMIN", accepted=False)
        assert not await owner_is_qualified(user.id, session, restrict=True)

    async def test_sub_team_and_org_do_not_count(self, session):
        user = await make_user(session, "user@example.com")
        org = await make_team(session, "Org", slug="org", is_organization=True)
        sub_team = await make_team(session, "Sub", parent_id=org.id)
        await make_membership(session, user, org, role="OWNER")
        await make_membership(session, user, sub_team, role="OWNER")
        assert not await owner_is_qualified(user.id, session, restrict=True)


# ---------------------------------------------------------------------------
# Intent to create
# ---------------------------------------------------------------------------

class TestIntentToCreate:

    async def test_requires_caller(self, session):
        with pytest.raises(Unauthorized):
            await intent_to_create_org(intent(), None, session)

    async def test_non_admin_for_someone_else(self, session):
        caller = await make_user(session, "caller@example.com")
        await make_user(session, "owner@example.com")
        with pytest.raises(Forbidden):
            await intent_to_create_org(intent(), caller, session)

    async def test_owner_not_found(self, session):
        admin = await make_user(session, "admin@example.com", role="ADMIN")
        with pytest.raises(OwnerNotFound) as exc:
            await intent_to_create_org(intent(owner="ghost@example.com"), admin, session)
        assert exc.value.email == "ghost@example.com"

    async def test_open_draft_for_owner(self, session):
        admin = await make_user(session, "admin@example.com", role="ADMIN")
        owner = await make_user(session, "owner@example.com")
        await make_onboarding(session, owner, "other-slug")
        with pytest.raises(OnboardingAlreadyExists):
            await intent_to_create_org(intent(), admin, session)

    async def test_slug_taken(self, session):
        admin = await make_user(session, "admin@example.com", role="ADMIN")
        await make_user(session, "owner@example.com")
        await make_team(session, "Acme", slug="acme")
        with pytest.raises(SlugConflict) as exc:
            await intent_to_create_org(intent(), admin, session)
        assert exc.value.conflict_type == "team"
        assert exc.value.message == "organization_slug_taken"

    async def test_slug_held_by_draft(self, session):
        admin = await make_user(session, "admin@example.com", role="ADMIN")
        await make_user(session, "owner@example.com")
        await make_onboarding(session, admin, "acme")
        with pytest.raises(SlugConflict) as exc:
            await intent_to_create_org(intent(), admin, session)
        assert exc.value.message == "organization_onboarding_already_exists"

    async def test_owner_without_admin_team_not_qualified(self, session):
        owner = await make_user(session, "owner@example.com")
        with pytest.raises(NotQualified):
            await intent_to_create_org(intent(), owner, session)
        assert await count_rows(session, OrganizationOnboarding) == 0

    async def test_owner_creates_draft(self, session):
        owner = await make_user(session, "Owner@Example.com")
        team = await make_team(session, "Team")
        await make_membership(session, owner, team, role="OWNER")

        response = await intent_to_create_org(
            intent(seats=10, price_per_seat=15.0), owner, session
        )
        await session.commit()

        assert response.user_id == owner.id
        draft = await session.get(OrganizationOnboarding, response.organization_onboarding_id)
        assert draft.slug == "acme"
        assert draft.seats == 10
        assert draft.billing_period == "MONTHLY"
        assert draft.is_complete is False
        assert draft.created_by_id == owner.id

    async def test_platform_admin_skips_qualification(self, session):
        admin = await make_user(session, "admin@example.com", role="ADMIN")
        owner = await make_user(session, "owner@example.com")
        response = await intent_to_create_org(intent(), admin, session)
        assert response.user_id == owner.id

    async def test_platform_request(self, session):
        caller = await make_user(session, "platform@example.com")
        owner = await make_user(session, "owner@example.com")
        response = await intent_to_create_org(intent(is_platform=True), caller, session)
        assert response.user_id == owner.id
        assert response.is_platform is True


class TestIntentEndpoint:

    async def test_not_qualified_end_to_end(self, client, session):
        owner = await make_user(session, "owner@example.com")
        response = await client.post(
            "/api/v1/organizations/intent",
            json={"slug": "acme", "name": "Acme", "orgOwnerEmail": "owner@example.com"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 403
        assert response.json() == {"detail": "not_authorized"}
        assert await count_rows(session, OrganizationOnboarding) == 0

    async def test_created(self, client, session):
        owner = await make_user(session, "owner@example.com")
        team = await make_team(session, "Team")
        await make_membership(session, owner, team, role="ADMIN")

        response = await client.post(
            "/api/v1/organizations/intent",
            json={
                "slug": "acme",
                "name": "Acme",
                "orgOwnerEmail": "owner@example.com",
                "seats": 5,
                "billingPeriod": "ANNUALLY",
            },
            headers=auth_headers(owner),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["userId"] == owner.id
        assert data["slug"] == "acme"
        assert data["billingPeriod"] == "ANNUALLY"
        assert isinstance(data["organizationOnboardingId"], int)

    async def test_duplicate_slug_is_conflict(self, client, session):
        admin = await make_user(session, "admin@example.com", role="ADMIN")
        await make_user(session, "owner@example.com")
        await make_team(session, "Pending", metadata={"requestedSlug": "acme"})

        response = await client.post(
            "/api/v1/organizations/intent",
            json={"slug": "acme", "name": "Acme", "orgOwnerEmail": "owner@example.com"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "organization_slug_taken"


# ---------------------------------------------------------------------------
# Subdomain helpers
# ---------------------------------------------------------------------------

class TestOrgDomains:

    def test_suffix(self):
        assert subdomain_suffix("https://app.example.com") == "app.example.com"

    def test_full_origin(self):
        assert get_org_full_origin("acme", "https://app.example.com") == "https://acme.app.example.com"

    def test_full_origin_without_protocol(self):
        assert (
            get_org_full_origin("acme", "https://app.example.com", protocol=False)
            == "acme.app.example.com"
        )

    def test_full_origin_without_slug(self):
        assert get_org_full_origin(None, "https://app.example.com") == "https://app.example.com"

    @pytest.mark.parametrize(
        "hostname,expected",
        [
            ("acme.app.example.com", "acme"),
            ("app.example.com", None),
            ("acme.other.com", None),
            (None, None),
        ],
    )
    def test_org_slug(self, hostname, expected):
        assert get_org_slug(hostname, "https://app.example.com") == expected

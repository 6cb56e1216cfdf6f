"""API tests for usage statistics and entitlement checks."""

from datetime import datetime, timezone

import pytest

from penwise.api.conftest import TEST_USER_ID, _make_fake_context
from penwise.api.deps import get_context
from penwise.domains.plans.types import Plan
from penwise.domains.usage.types import ResourceKind

THIS_MONTH = datetime(2024, 1, 3, tzinfo=timezone.utc)


class TestUsageStats:
    @pytest.mark.asyncio
    async def test_free_user_summary(self, client, fake_user_repo, fake_ledger_repo):
        fake_user_repo.seed(TEST_USER_ID)
        fake_ledger_repo.seed(TEST_USER_ID, ResourceKind.GENERATION, THIS_MONTH, count=4)

        response = await client.get("/api/v1/usage")

        assert response.status_code == 200
        body = response.json()
        assert body["plan"] == "FREE"
        assert body["ai_generations"] == {
            "allowed": True,
            "current": 4,
            "limit": 10,
            "remaining": 6,
            "percentage": 40,
        }
        assert body["allowed_export_formats"] == ["PDF"]
        assert body["features"]["collaboration"] is False

    @pytest.mark.asyncio
    async def test_enterprise_reports_unlimited(self, client, fake_user_repo):
        fake_user_repo.seed(TEST_USER_ID, plan=Plan.ENTERPRISE)

        response = await client.get("/api/v1/usage")

        body = response.json()
        assert body["ai_generations"]["limit"] == "unlimited"
        assert body["ai_generations"]["remaining"] == "unlimited"
        assert body["limits"]["ai_generations_per_month"] == -1

    @pytest.mark.asyncio
    async def test_asserted_plan_wins(self, client, fake_user_repo):
        from penwise.main import app

        fake_user_repo.seed(TEST_USER_ID)
        app.dependency_overrides[get_context] = lambda: _make_fake_context(plan=Plan.AGENCY)

        response = await client.get("/api/v1/usage")

        assert response.json()["plan"] == "AGENCY"
        assert fake_user_repo.call_count("get") == 0

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, client):
        response = await client.get("/api/v1/usage")

        assert response.status_code == 404


class TestFeatureCheck:
    @pytest.mark.asyncio
    async def test_denied_feature(self, client, fake_user_repo):
        fake_user_repo.seed(TEST_USER_ID, plan=Plan.PRO)

        response = await client.get("/api/v1/usage/check/collaboration")

        assert response.status_code == 200
        assert response.json() == {
            "feature": "collaboration",
            "has_access": False,
            "user_plan": "PRO",
            "required_plans": ["AGENCY", "ENTERPRISE"],
            "needs_upgrade": True,
        }

    @pytest.mark.asyncio
    async def test_unrestricted_feature(self, client, fake_user_repo):
        fake_user_repo.seed(TEST_USER_ID)

        response = await client.get("/api/v1/usage/check/spell-check")

        body = response.json()
        assert body["has_access"] is True
        assert body["required_plans"] == ["All plans"]


class TestExportCheck:
    @pytest.mark.asyncio
    async def test_allowed_format(self, client, fake_user_repo):
        fake_user_repo.seed(TEST_USER_ID, plan=Plan.PRO)

        response = await client.get("/api/v1/usage/export/docx")

        assert response.status_code == 200
        body = response.json()
        assert body["format"] == "DOCX"
        assert body["allowed"] is True

    @pytest.mark.asyncio
    async def test_denied_format_is_403(self, client, fake_user_repo):
        fake_user_repo.seed(TEST_USER_ID)

        response = await client.get("/api/v1/usage/export/html")

        assert response.status_code == 403
        body = response.json()
        assert body["detail"] == "HTML export is not available on your FREE plan."
        assert body["allowed"] is False
        assert body["allowed_formats"] == ["PDF"]
        assert body["required_plans"] == ["PRO", "AGENCY", "ENTERPRISE"]

    @pytest.mark.asyncio
    async def test_unknown_format_is_422(self, client, fake_user_repo):
        fake_user_repo.seed(TEST_USER_ID)

        response = await client.get("/api/v1/usage/export/odt")

        assert response.status_code == 422

"""Wizard activation endpoint and service tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import BackendOperationError
from app.models import (
    Project,
    SalesHandover,
    SalesHandoverItem,
    WizardInstance,
)
from app.services import activation
from app.services.activation import activate_wizards, resolve_wizard_keys

URL = "/api/sales-handover/activate-wizards"


async def _instance_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(WizardInstance.id)))).scalar()


@pytest.mark.api
@pytest.mark.asyncio
class TestActivateWizards:
    """POST /api/sales-handover/activate-wizards"""

    async def test_creates_one_instance_per_matched_wizard(
        self, client: AsyncClient, auth_headers, onboarding, db_session
    ):
        """Two mapped wizard keys → exactly two instances, seeded with step counts."""
        resp = await client.post(
            URL, headers=auth_headers,
            json={"sales_handover_id": onboarding["handover"].id},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["activated_count"] == 2
        assert len(data["wizard_instances"]) == 2

        wizards = onboarding["wizards"]
        by_wizard = {i["wizard_id"]: i for i in data["wizard_instances"]}
        assert set(by_wizard) == {wizards["payments"].id, wizards["customs"].id}
        for inst in by_wizard.values():
            assert inst["status"] == "ACTIVE"
            assert inst["project_id"] == onboarding["project"].id
            assert inst["activated_at"] is not None

        # Required-step counts ignore country filtering
        assert by_wizard[wizards["payments"].id]["total_required_steps"] == 2
        assert by_wizard[wizards["customs"].id]["total_required_steps"] == 2

        assert await _instance_count(db_session) == 2

    async def test_created_instances_keep_null_fields(
        self, client: AsyncClient, auth_headers, onboarding
    ):
        resp = await client.post(
            URL, headers=auth_headers,
            json={"sales_handover_id": onboarding["handover"].id},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert "wizard_count" not in data
        for inst in data["wizard_instances"]:
            assert inst["progress_percentage"] is None
            assert inst["completed_steps_count"] is None
            assert inst["started_at"] is None
            assert inst["completed_at"] is None

    async def test_failed_step_count_is_returned_as_null(
        self, client: AsyncClient, auth_headers, onboarding, monkeypatch
    ):
        async def _boom(db, wizard_id):
            raise OperationalError("SELECT count", {}, Exception("statement timeout"))

        monkeypatch.setattr(activation, "_count_required_steps", _boom)

        resp = await client.post(
            URL, headers=auth_headers,
            json={"sales_handover_id": onboarding["handover"].id},
        )
        assert resp.status_code == 201
        for inst in resp.json()["wizard_instances"]:
            assert "total_required_steps" in inst
            assert inst["total_required_steps"] is None

    async def test_reactivation_is_idempotent(
        self, client: AsyncClient, auth_headers, onboarding, db_session
    ):
        body = {"sales_handover_id": onboarding["handover"].id}
        first = await client.post(URL, headers=auth_headers, json=body)
        assert first.status_code == 201

        second = await client.post(URL, headers=auth_headers, json=body)
        assert second.status_code == 200
        data = second.json()
        assert data["activated_count"] == 0
        assert data["wizard_count"] == 2
        assert data["message"] == "All required wizards already activated"
        assert "wizard_instances" not in data

        assert await _instance_count(db_session) == 2

    async def test_unconfirmed_handover_rejected(
        self, client: AsyncClient, auth_headers, onboarding, db_session
    ):
        onboarding["handover"].status = "DRAFT"
        await db_session.flush()

        resp = await client.post(
            URL, headers=auth_headers,
            json={"sales_handover_id": onboarding["handover"].id},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "HANDOVER_NOT_CONFIRMED"
        assert await _instance_count(db_session) == 0

    async def test_unknown_handover_returns_404(self, client: AsyncClient, auth_headers, onboarding):
        resp = await client.post(
            URL, headers=auth_headers, json={"sales_handover_id": "does-not-exist"},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "Sales handover not found"

    async def test_other_org_handover_is_invisible(
        self, client: AsyncClient, auth_headers, db_session, other_org
    ):
        project = Project(org_id=other_org.id, name="Globex", country="US")
        db_session.add(project)
        await db_session.flush()
        handover = SalesHandover(org_id=other_org.id, project_id=project.id, status="CONFIRMED")
        db_session.add(handover)
        await db_session.flush()

        resp = await client.post(URL, headers=auth_headers, json={"sales_handover_id": handover.id})
        assert resp.status_code == 404

    async def test_missing_handover_id_is_bad_request(self, client: AsyncClient, auth_headers):
        resp = await client.post(URL, headers=auth_headers, json={})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_malformed_json_is_bad_request(self, client: AsyncClient, auth_headers):
        resp = await client.post(
            URL,
            headers={**auth_headers, "Content-Type": "application/json"},
            content=b"{not json",
        )
        assert resp.status_code == 400

    async def test_requires_auth(self, client: AsyncClient, onboarding):
        resp = await client.post(URL, json={"sales_handover_id": onboarding["handover"].id})
        assert resp.status_code == 401

    async def test_handover_without_items(
        self, client: AsyncClient, auth_headers, onboarding, db_session, test_org
    ):
        empty = SalesHandover(
            org_id=test_org.id, project_id=onboarding["project"].id, status="CONFIRMED"
        )
        db_session.add(empty)
        await db_session.flush()

        resp = await client.post(URL, headers=auth_headers, json={"sales_handover_id": empty.id})
        assert resp.status_code == 200
        assert resp.json() == {"message": "No items found in handover, no wizards activated"}

    async def test_items_without_matching_rule(
        self, client: AsyncClient, auth_headers, onboarding, db_session, test_org
    ):
        handover = SalesHandover(
            org_id=test_org.id, project_id=onboarding["project"].id, status="CONFIRMED"
        )
        db_session.add(handover)
        await db_session.flush()
        db_session.add(SalesHandoverItem(
            sales_handover_id=handover.id, item_key="payment_provider", item_value="adyen",
        ))
        await db_session.flush()

        resp = await client.post(URL, headers=auth_headers, json={"sales_handover_id": handover.id})
        assert resp.status_code == 200
        assert resp.json()["message"] == "No matching wizards found for handover items"
        assert await _instance_count(db_session) == 0

    async def test_matched_wizards_all_inactive(
        self, client: AsyncClient, auth_headers, onboarding, db_session
    ):
        for wizard in onboarding["wizards"].values():
            wizard.is_active = False
        await db_session.flush()

        resp = await client.post(
            URL, headers=auth_headers,
            json={"sales_handover_id": onboarding["handover"].id},
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "No active wizards found matching the handover items"

    async def test_only_missing_wizards_are_added(
        self, client: AsyncClient, auth_headers, onboarding, db_session, test_org
    ):
        """A project already running one wizard only gets the other."""
        db_session.add(WizardInstance(
            org_id=test_org.id,
            project_id=onboarding["project"].id,
            wizard_id=onboarding["wizards"]["payments"].id,
            status="in_progress",
        ))
        await db_session.flush()

        resp = await client.post(
            URL, headers=auth_headers,
            json={"sales_handover_id": onboarding["handover"].id},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["activated_count"] == 1
        assert data["wizard_instances"][0]["wizard_id"] == onboarding["wizards"]["customs"].id
        assert await _instance_count(db_session) == 2


@pytest.mark.unit
class TestResolveWizardKeys:

    def test_union_of_matching_rules(self):
        items = [("payment_provider", "stripe"), ("shipping", "international")]
        mappings = [
            ("payment_provider", "stripe", "payments"),
            ("payment_provider", "adyen", "payments_eu"),
            ("shipping", "international", "customs"),
            ("shipping", "international", "payments"),
        ]
        assert resolve_wizard_keys(items, mappings) == {"payments", "customs"}

    def test_value_must_match_exactly(self):
        items = [("payment_provider", "Stripe")]
        mappings = [("payment_provider", "stripe", "payments")]
        assert resolve_wizard_keys(items, mappings) == set()

    def test_key_and_value_are_paired(self):
        """A rule matches on the (key, value) pair, not on each side alone."""
        items = [("plan", "stripe"), ("payment_provider", "enterprise")]
        mappings = [("payment_provider", "stripe", "payments")]
        assert resolve_wizard_keys(items, mappings) == set()


@pytest.mark.asyncio
class TestActivationFailures:

    async def test_step_count_failure_leaves_null_count(
        self, db_session, onboarding, test_org, monkeypatch
    ):
        """A failing required-step count doesn't fail the activation."""

        async def _boom(db, wizard_id):
            raise OperationalError("SELECT count", {}, Exception("statement timeout"))

        monkeypatch.setattr(activation, "_count_required_steps", _boom)

        result = await activate_wizards(db_session, test_org.id, onboarding["handover"].id)

        assert result["activated_count"] == 2
        for inst in result["wizard_instances"]:
            assert inst.total_required_steps is None
        assert await _instance_count(db_session) == 2

    async def test_database_error_surfaces_with_message(self):
        class BrokenSession:
            async def execute(self, stmt):
                raise OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(BackendOperationError) as exc_info:
            await activate_wizards(BrokenSession(), "org-1", "handover-1")

        exc = exc_info.value
        assert exc.status_code == 500
        assert exc.message == "Failed to fetch sales handover"
        assert exc.details == {"reason": "connection refused"}

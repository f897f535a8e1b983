"""
Assessment Workflow Routes Tests
================================

HTTP surface: authentication, status mapping and error bodies.

Version: 0.1.0
"""

import uuid

import pytest
import structlog
from fastapi import status

from services.assessment_workflow.models import AssessmentResponseModel, UserModel
from services.assessment_workflow.services import Role
from services.assessment_workflow.status import AssessmentStatus as A
from services.assessment_workflow.status import RecordState
from services.assessment_workflow.status import ResponseStatus as R


# =============================================================================
# Health
# =============================================================================


class TestRoot:
    @pytest.mark.asyncio
    async def test_root(self, assessment_workflow_client) -> None:
        response = await assessment_workflow_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["service"] == "Attest Assessment Workflow Service"


# =============================================================================
# Authentication
# =============================================================================


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, world, create_assessment, assessment_workflow_client) -> None:
        assessment, _ = await create_assessment(world.acme)

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow", json={"status": "cancelled"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_unknown_subject(self, world, create_assessment, assessment_workflow_client) -> None:
        from shared.auth import create_access_token

        assessment, _ = await create_assessment(world.acme)
        token = create_access_token({"sub": str(uuid.uuid4())})

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow",
            json={"status": "cancelled"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_token_roles_are_ignored(
        self, world, create_assessment, assessment_workflow_client
    ) -> None:
        from shared.auth import create_access_token

        assessment, _ = await create_assessment(world.acme, A.PENDING_FINISH, [])
        token = create_access_token({"sub": str(world.acme_user.id), "roles": ["super_admin"]})

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow",
            json={"status": "finished"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_actor_is_unbound_after_request(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        assessment, _ = await create_assessment(world.acme, A.DRAFT, [])

        for target in ("active", "finished"):
            await assessment_workflow_client.post(
                f"/api/v1/assessments/{assessment.id}/workflow",
                json={"status": target},
                headers=auth_headers(world.acme_admin),
            )

            context = structlog.contextvars.get_contextvars()
            assert "user_id" not in context
            assert "organization_id" not in context


# =============================================================================
# Workflow
# =============================================================================


class TestWorkflowRoutes:
    @pytest.mark.asyncio
    async def test_submit_response(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        _, (item,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessment-responses/{item.id}/workflow",
            json={"status": "pending_review", "note": "Done"},
            headers=auth_headers(world.acme_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["response"]["status"] == "pending_review"
        assert data["transition"]["from_status"] == "active"
        assert data["transition"]["to_status"] == "pending_review"
        assert data["transition"]["owner_type"] == "assessment_response"
        assert data["transition"]["note"] == "Done"

    @pytest.mark.asyncio
    async def test_invalid_transition_is_422(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        assessment, _ = await create_assessment(world.acme, A.DRAFT, [])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow",
            json={"status": "finished"},
            headers=auth_headers(world.acme_admin),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "invalidTransition"
        assert body["details"] == {
            "entity": "assessment",
            "current": "draft",
            "requested": "finished",
            "allowed": ["active"],
        }

    @pytest.mark.asyncio
    async def test_unknown_status_is_422(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        _, (item,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessment-responses/{item.id}/workflow",
            json={"status": "cancelled"},
            headers=auth_headers(world.acme_user),
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "unknownStatus"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [5, None, ["active"]])
    async def test_non_string_status_is_unknown_status(
        self, value, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        assessment, _ = await create_assessment(world.acme, A.DRAFT, [])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow",
            json={"status": value},
            headers=auth_headers(world.acme_admin),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "unknownStatus"
        assert body["details"]["allowed"] == sorted(s.value for s in A)

    @pytest.mark.asyncio
    async def test_invariant_violation_is_422(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        _, (item,) = await create_assessment(world.acme, A.DRAFT, [R.ACTIVE])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessment-responses/{item.id}/workflow",
            json={"status": "pending_review"},
            headers=auth_headers(world.acme_user),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "invariantViolation"
        assert body["details"] == {"rule": "hierarchy-consistency"}

    @pytest.mark.asyncio
    async def test_finished_assessment_is_403(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        assessment, _ = await create_assessment(world.acme, A.FINISHED, [])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow",
            json={"status": "active"},
            headers=auth_headers(world.acme_admin),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "authorizationError"

    @pytest.mark.asyncio
    async def test_missing_assessment_is_404(
        self, world, assessment_workflow_client, auth_headers
    ) -> None:
        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{uuid.uuid4()}/workflow",
            json={"status": "active"},
            headers=auth_headers(world.super_admin),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "notFound"

    @pytest.mark.asyncio
    async def test_note_too_long(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        assessment, _ = await create_assessment(world.acme, A.DRAFT, [])

        response = await assessment_workflow_client.post(
            f"/api/v1/assessments/{assessment.id}/workflow",
            json={"status": "active", "note": "x" * 1001},
            headers=auth_headers(world.acme_admin),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_history(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        assessment, _ = await create_assessment(world.acme, A.DRAFT, [])
        headers = auth_headers(world.acme_admin)
        for target in ("active", "cancelled"):
            await assessment_workflow_client.post(
                f"/api/v1/assessments/{assessment.id}/workflow",
                json={"status": target},
                headers=headers,
            )

        response = await assessment_workflow_client.get(
            f"/api/v1/assessments/{assessment.id}/workflow-logs", headers=headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert [log["to_status"] for log in response.json()] == ["active", "cancelled"]


# =============================================================================
# Responses and organizations
# =============================================================================


class TestRecordRoutes:
    @pytest.mark.asyncio
    async def test_update_response(
        self, world, create_assessment, assessment_workflow_client, auth_headers, fetch
    ) -> None:
        _, (item,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])

        response = await assessment_workflow_client.patch(
            f"/api/v1/assessment-responses/{item.id}",
            json={"compliance_status": "fully_compliant"},
            headers=auth_headers(world.acme_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["compliance_status"] == "fully_compliant"
        assert (await fetch(AssessmentResponseModel, item.id)).compliance_status.value == "fully_compliant"

    @pytest.mark.asyncio
    async def test_action_plan_roundtrip(
        self, world, create_assessment, assessment_workflow_client, auth_headers
    ) -> None:
        _, (item,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])
        headers = auth_headers(world.acme_user)

        created = await assessment_workflow_client.post(
            f"/api/v1/assessment-responses/{item.id}/action-plans",
            json={"title": "Encrypt backups", "due_date": "2025-09-30"},
            headers=headers,
        )
        plan_id = created.json()["id"]
        updated = await assessment_workflow_client.patch(
            f"/api/v1/action-plans/{plan_id}", json={"pic": "Ops"}, headers=headers
        )
        deleted = await assessment_workflow_client.delete(
            f"/api/v1/action-plans/{plan_id}", headers=headers
        )

        assert created.status_code == status.HTTP_201_CREATED
        assert updated.json()["pic"] == "Ops"
        assert deleted.status_code == status.HTTP_204_NO_CONTENT

    @pytest.mark.asyncio
    async def test_delete_last_admin_is_422(
        self, world, assessment_workflow_client, auth_headers
    ) -> None:
        response = await assessment_workflow_client.delete(
            f"/api/v1/organizations/{world.acme.id}/users/{world.acme_admin.id}",
            headers=auth_headers(world.super_admin),
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"rule": "last-admin-protection"}

    @pytest.mark.asyncio
    async def test_delete_and_restore_user(
        self, world, assessment_workflow_client, auth_headers, fetch
    ) -> None:
        headers = auth_headers(world.acme_admin)
        base = f"/api/v1/organizations/{world.acme.id}/users/{world.acme_user.id}"

        deleted = await assessment_workflow_client.delete(base, headers=headers)
        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert (await fetch(UserModel, world.acme_user.id)).record_state is RecordState.ARCHIVED

        restored = await assessment_workflow_client.post(f"{base}/restore", headers=headers)
        assert restored.status_code == status.HTTP_200_OK
        assert restored.json()["record_state"] == "active"

    @pytest.mark.asyncio
    async def test_change_role(self, world, assessment_workflow_client, auth_headers) -> None:
        response = await assessment_workflow_client.put(
            f"/api/v1/organizations/{world.acme.id}/users/{world.acme_user.id}/role",
            json={"role": Role.ORGANIZATION_ADMIN.value},
            headers=auth_headers(world.acme_admin),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["roles"] == ["organization_admin"]

    @pytest.mark.asyncio
    async def test_rename_master_is_422(self, world, assessment_workflow_client, auth_headers) -> None:
        response = await assessment_workflow_client.patch(
            f"/api/v1/organizations/{world.master.id}",
            json={"name": "Renamed"},
            headers=auth_headers(world.super_admin),
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"rule": "immutable-master-organization"}

    @pytest.mark.asyncio
    async def test_duplicate_organization_name_is_422(
        self, world, assessment_workflow_client, auth_headers
    ) -> None:
        response = await assessment_workflow_client.patch(
            f"/api/v1/organizations/{world.acme.id}",
            json={"name": "Globex"},
            headers=auth_headers(world.acme_admin),
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"rule": "unique-organization-name"}

    @pytest.mark.asyncio
    async def test_transfer_user(self, world, assessment_workflow_client, auth_headers) -> None:
        response = await assessment_workflow_client.post(
            f"/api/v1/users/{world.acme_user.id}/transfer",
            json={"organization_id": str(world.globex.id)},
            headers=auth_headers(world.super_admin),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["organization_id"] == str(world.globex.id)

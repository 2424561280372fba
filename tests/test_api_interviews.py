"""
API Endpoint Tests for adaptive interviews.

The workflow runner is mocked; its behaviour is covered in
test_workflow_runner.py.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from oracle.core.exceptions import WorkflowNotFoundError
from oracle.main import app
from oracle.models.workflow import (
    AdaptiveInterviewState,
    ContextDocument,
    InterviewSnapshot,
    WorkflowPhase,
)
from oracle.services.workflow_runner import WorkflowStatus, set_workflow_runner


API_PREFIX = "/api/v1/interviews"


@pytest.fixture
def mock_runner():
    runner = MagicMock()
    runner.start = AsyncMock(return_value="wf-1")
    runner.list_workflows = AsyncMock(return_value=[])
    runner.get_snapshot = AsyncMock(return_value=None)
    runner.delete = AsyncMock(return_value=True)
    runner.is_known.return_value = False
    set_workflow_runner(runner)
    return runner


@pytest.fixture
def client(mock_runner):
    return TestClient(app)


def snapshot(workflow_id="wf-1", phase=WorkflowPhase.COMPLETE):
    return InterviewSnapshot(
        workflow_id=workflow_id,
        domain="hiring",
        objective="Hire a staff engineer",
        phase=phase,
    )


class TestStartInterview:
    """POST /"""

    def test_start(self, client, mock_runner):
        response = client.post(f"{API_PREFIX}/", json={
            "domain": "hiring",
            "objective": "Hire a staff engineer",
            "constraints": "Remote only",
            "guiding_questions": ["What is the budget?"],
            "include_introduction": False,
        })

        assert response.status_code == 201
        assert response.json() == {"workflow_id": "wf-1", "message": "Interview started"}
        mock_runner.start.assert_awaited_once_with(
            domain="hiring",
            objective="Hire a staff engineer",
            constraints="Remote only",
            guiding_questions=["What is the budget?"],
            include_introduction=False,
        )

    @pytest.mark.parametrize("payload,detail", [
        ({"domain": "  ", "objective": "x"}, "Domain is required"),
        ({"domain": "hiring", "objective": ""}, "Objective is required"),
    ])
    def test_blank_input(self, client, mock_runner, payload, detail):
        response = client.post(f"{API_PREFIX}/", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == detail
        mock_runner.start.assert_not_called()

    def test_missing_fields(self, client):
        assert client.post(f"{API_PREFIX}/", json={"domain": "hiring"}).status_code == 422


class TestGetInterview:
    """GET / and GET /{workflow_id}"""

    def test_list(self, client, mock_runner):
        mock_runner.list_workflows.return_value = [snapshot("a"), snapshot("b")]
        response = client.get(f"{API_PREFIX}/", params={"limit": 2})

        assert response.status_code == 200
        assert [s["workflow_id"] for s in response.json()] == ["a", "b"]
        mock_runner.list_workflows.assert_awaited_once_with(limit=2)

    def test_live_status(self, client, mock_runner):
        mock_runner.is_known.return_value = True
        mock_runner.get_status.return_value = WorkflowStatus(
            workflow_id="wf-1",
            running=True,
            state=AdaptiveInterviewState(
                workflow_id="wf-1",
                domain="hiring",
                objective="Hire",
                phase=WorkflowPhase.INTERVIEW,
                current_question="Who owns the budget?",
                awaiting_response=True,
            ),
        )

        data = client.get(f"{API_PREFIX}/wf-1").json()
        assert data["running"] is True
        assert data["state"]["phase"] == "interview"
        assert data["state"]["current_question"] == "Who owns the budget?"

    def test_falls_back_to_snapshot(self, client, mock_runner):
        mock_runner.get_snapshot.return_value = snapshot()
        data = client.get(f"{API_PREFIX}/wf-1").json()
        assert data["workflow_id"] == "wf-1"
        assert data["phase"] == "complete"

    def test_not_found(self, client):
        response = client.get(f"{API_PREFIX}/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Interview not found: missing"


class TestSignals:
    """POST /{workflow_id}/respond and /context"""

    def test_respond(self, client, mock_runner):
        response = client.post(f"{API_PREFIX}/wf-1/respond", json={"response": "Four engineers"})
        assert response.status_code == 202
        assert response.json() == {"workflow_id": "wf-1", "accepted": True}
        mock_runner.respond.assert_called_once_with("wf-1", "Four engineers")

    def test_respond_empty_rejected(self, client, mock_runner):
        assert client.post(f"{API_PREFIX}/wf-1/respond", json={"response": ""}).status_code == 422
        mock_runner.respond.assert_not_called()

    def test_respond_unknown(self, client, mock_runner):
        mock_runner.respond.side_effect = WorkflowNotFoundError("missing")
        response = client.post(f"{API_PREFIX}/missing/respond", json={"response": "hi"})
        assert response.status_code == 404

    def test_edit_context(self, client, mock_runner):
        document = {"summary": "Edited", "facts": ["Team of four"], "constraints": ["Remote only"]}
        response = client.post(f"{API_PREFIX}/wf-1/context", json=document)

        assert response.status_code == 202
        workflow_id, sent = mock_runner.edit_context.call_args.args
        assert workflow_id == "wf-1"
        assert isinstance(sent, ContextDocument)
        assert sent.constraints == ["Remote only"]

    def test_edit_context_requires_summary(self, client):
        assert client.post(f"{API_PREFIX}/wf-1/context", json={"facts": []}).status_code == 422


class TestDeleteInterview:
    """DELETE /{workflow_id}"""

    def test_delete(self, client, mock_runner):
        response = client.delete(f"{API_PREFIX}/wf-1")
        assert response.status_code == 200
        assert response.json()["workflow_id"] == "wf-1"
        mock_runner.delete.assert_awaited_once_with("wf-1")

    def test_delete_unknown(self, client, mock_runner):
        mock_runner.delete.return_value = False
        assert client.delete(f"{API_PREFIX}/missing").status_code == 404

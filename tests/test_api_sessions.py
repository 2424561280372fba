"""
API Endpoint Tests for step-based sessions.

Runs the FastAPI app against an in-memory session manager to verify:
- Request validation
- Response formats
- Error handling
- HTTP status codes
"""
import pytest
from fastapi.testclient import TestClient

from oracle.main import app
from oracle.services.session_manager import set_session_manager


API_PREFIX = "/api/v1/sessions"


@pytest.fixture
def client(session_manager):
    set_session_manager(session_manager)
    return TestClient(app)


def create_session(client, **overrides):
    payload = {"userId": "user-1", "interviewType": "general"}
    payload.update(overrides)
    response = client.post(f"{API_PREFIX}/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    """Health and root endpoints."""

    def test_health_memory_backend(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage_backend"] == "memory"
        assert data["mongodb"] is None

    def test_root(self, client):
        data = client.get("/").json()
        assert data["name"] == "Oracle"
        assert "version" in data


class TestInterviewTypes:
    """GET /types"""

    def test_lists_builtin_archetypes(self, client):
        response = client.get(f"{API_PREFIX}/types")
        assert response.status_code == 200
        types = {t["type"]: t for t in response.json()}
        assert {"general", "tenant-screening", "maintenance-request", "customer-onboarding"} <= set(types)
        assert types["general"]["max_steps"] == 5


class TestCreateSession:
    """POST /"""

    def test_create(self, client):
        data = create_session(client, initialContext={"source": "web"})
        assert data["user_id"] == "user-1"
        assert data["interview_type"] == "general"
        assert data["status"] == "active"
        assert data["current_step"] == 0
        assert data["context_data"] == {"source": "web"}

    def test_snake_case_fields(self, client):
        response = client.post(f"{API_PREFIX}/", json={"user_id": "u2", "interview_type": "maintenance-request"})
        assert response.status_code == 201
        assert response.json()["interview_type"] == "maintenance-request"

    @pytest.mark.parametrize("payload", [
        {"interviewType": "general"},
        {"userId": 42, "interviewType": "general"},
        {"userId": "u1", "interviewType": "general", "initialContext": "nope"},
    ])
    def test_malformed_body(self, client, payload):
        assert client.post(f"{API_PREFIX}/", json=payload).status_code == 422

    def test_domain_errors(self, client):
        response = client.post(f"{API_PREFIX}/", json={"userId": "  ", "interviewType": "astrology"})
        assert response.status_code == 400
        assert response.json()["detail"] == ["userId cannot be empty", "Invalid interview type: astrology"]


class TestSessionFlow:
    """Question, respond, progress and analysis."""

    def test_full_general_interview(self, client):
        session = create_session(client)
        session_id = session["id"]

        current = client.get(f"{API_PREFIX}/{session_id}/question").json()
        assert current["question"]["id"] == "purpose"
        assert current["progress"] == {"current_step": 0, "total_steps": 5, "completion_percentage": 0}

        for answer in ["Help with my rental property", 4, "Fewer vacancies", "Within six months"]:
            response = client.post(f"{API_PREFIX}/{session_id}/respond", json={"response": answer})
            assert response.status_code == 200
            assert response.json()["success"] is True

        result = client.post(f"{API_PREFIX}/{session_id}/respond", json={"response": ""}).json()
        assert result["success"] is True
        assert result["completed"] is True

        progress = client.get(f"{API_PREFIX}/{session_id}/progress").json()
        assert progress["completion_percentage"] == 100

        current = client.get(f"{API_PREFIX}/{session_id}/question").json()
        assert current["question"] is None

        analysis = client.get(f"{API_PREFIX}/{session_id}/analysis")
        assert analysis.status_code == 200
        assert analysis.json()["response_count"] == 4
        assert analysis.json()["completion_rate"] == 1.0

    def test_invalid_answer_is_not_an_http_error(self, client):
        session_id = create_session(client)["id"]
        client.post(f"{API_PREFIX}/{session_id}/respond", json={"response": "Purpose"})

        response = client.post(f"{API_PREFIX}/{session_id}/respond", json={"response": 9})
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"]

        assert client.get(f"{API_PREFIX}/{session_id}").json()["current_step"] == 1

    def test_analysis_before_completion(self, client):
        session_id = create_session(client)["id"]
        response = client.get(f"{API_PREFIX}/{session_id}/analysis")
        assert response.status_code == 409


class TestLifecycle:
    """Pause, resume, delete and listing."""

    def test_pause_and_resume(self, client):
        session_id = create_session(client)["id"]

        paused = client.post(f"{API_PREFIX}/{session_id}/pause")
        assert paused.status_code == 200
        assert paused.json()["status"] == "paused"

        response = client.post(f"{API_PREFIX}/{session_id}/respond", json={"response": "hello"})
        assert response.status_code == 409

        resumed = client.post(f"{API_PREFIX}/{session_id}/resume")
        assert resumed.json()["status"] == "active"

    def test_resume_active_is_noop(self, client):
        session_id = create_session(client)["id"]
        response = client.post(f"{API_PREFIX}/{session_id}/resume")
        assert response.status_code == 200
        assert response.json()["status"] == "active"

    def test_list_with_filters(self, client):
        first = create_session(client, userId="alice")
        create_session(client, userId="bob")
        client.post(f"{API_PREFIX}/{first['id']}/pause")

        by_user = client.get(f"{API_PREFIX}/", params={"user_id": "alice"}).json()
        assert [s["id"] for s in by_user] == [first["id"]]

        paused = client.get(f"{API_PREFIX}/", params={"status": "paused"}).json()
        assert [s["id"] for s in paused] == [first["id"]]

        assert len(client.get(f"{API_PREFIX}/", params={"limit": 1}).json()) == 1

    def test_list_naive_created_bounds(self, client):
        session_id = create_session(client)["id"]

        after = client.get(f"{API_PREFIX}/", params={"created_after": "2020-01-01T00:00:00"})
        assert after.status_code == 200
        assert [s["id"] for s in after.json()] == [session_id]

        before = client.get(f"{API_PREFIX}/", params={"created_before": "2020-01-01T00:00:00"})
        assert before.status_code == 200
        assert before.json() == []

    def test_list_rejects_bad_limit(self, client):
        assert client.get(f"{API_PREFIX}/", params={"limit": 0}).status_code == 422

    def test_delete(self, client):
        session_id = create_session(client)["id"]

        response = client.delete(f"{API_PREFIX}/{session_id}")
        assert response.status_code == 200
        assert response.json() == {"message": "Session deleted successfully", "session_id": session_id}
        assert client.get(f"{API_PREFIX}/{session_id}").status_code == 404


class TestNotFound:
    """Unknown session ids map to 404."""

    @pytest.mark.parametrize("method,path", [
        ("get", "/missing"),
        ("get", "/missing/question"),
        ("get", "/missing/progress"),
        ("post", "/missing/pause"),
        ("post", "/missing/resume"),
        ("get", "/missing/analysis"),
        ("delete", "/missing"),
    ])
    def test_missing_session(self, client, method, path):
        response = getattr(client, method)(f"{API_PREFIX}{path}")
        assert response.status_code == 404

    def test_respond_missing(self, client):
        response = client.post(f"{API_PREFIX}/missing/respond", json={"response": "x"})
        assert response.status_code == 404

import pytest
from fastapi.testclient import TestClient

import exam_api
from generation.errors import ExhaustionError
from generation.orchestrator import GenerationOrchestrator
from routers import generation as generation_router
from services.mode_arbiter import ModeArbiter
from tests.conftest import FakeProvider


class ExhaustedOrchestrator(GenerationOrchestrator):
    async def generate(self, *args, **kwargs):
        raise ExhaustionError("Fallback library could not produce a unique question. Please retry.")


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(
        generation_router, "record_served_questions", lambda session_id, ids: calls.append((session_id, ids))
    )
    return calls


@pytest.fixture
def client(settings):
    orchestrator = GenerationOrchestrator([FakeProvider(name="down")], settings)
    app = exam_api.app
    app.dependency_overrides[generation_router.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[generation_router.get_arbiter] = lambda: ModeArbiter(
        GenerationOrchestrator([], settings)
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_generate_questions_falls_back_when_providers_fail(client, served):
    resp = client.post("/generation/questions", json={"subject": "math", "count": 3, "session_id": "exam-1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "local-bank"
    assert len(body["questions"]) == 3
    assert len({q["id"] for q in body["questions"]}) == 3
    assert "curated question library" in body["warning"]
    assert served == [("exam-1", [q["id"] for q in body["questions"]])]


def test_usage_not_recorded_without_session(client, served):
    assert client.post("/generation/questions", json={"subject": "math", "count": 1}).status_code == 200
    assert served == []


@pytest.mark.parametrize("payload", [
    {"subject": "math", "count": 0},
    {"subject": "   ", "count": 2},
    {"count": 2},
    {"subject": "math", "count": 2, "difficulty": "extreme"},
    {"subject": "math", "count": 500},
])
def test_invalid_requests_return_400_error_body(client, payload):
    resp = client.post("/generation/questions", json=payload)
    assert resp.status_code == 400
    assert set(resp.json()) == {"error"}


def test_exhaustion_returns_503(client, settings):
    exam_api.app.dependency_overrides[generation_router.get_orchestrator] = lambda: ExhaustedOrchestrator([], settings)
    resp = client.post("/generation/questions", json={"subject": "math", "count": 2})
    assert resp.status_code == 503
    assert "retry" in resp.json()["error"]


def test_offline_selection(client):
    resp = client.post("/generation/offline", json={"subject": "physics", "count": 2})
    assert resp.status_code == 200
    questions = resp.json()["questions"]
    assert len(questions) == 2
    assert all(q["source"] == "local-bank" for q in questions)


def test_offline_rejects_bad_count(client):
    resp = client.post("/generation/offline", json={"count": 0})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_prepare_reports_mode(client, served):
    resp = client.post("/generation/prepare", json={"subject": "biology", "count": 2, "session_id": "s-9"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "offline"
    assert len(body["questions"]) == 2
    assert served and served[0][0] == "s-9"


def test_subjects_lists_library_and_bank(client):
    body = client.get("/generation/subjects").json()
    assert {"math", "physics", "chemistry", "biology"} <= set(body["fallback_library"])
    assert {"math", "physics", "chemistry", "biology"} <= set(body["offline_bank"])


def test_health_and_unknown_route(client):
    assert client.get("/health").json()["status"] == "healthy"
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_served_questions_for_session(client, monkeypatch):
    monkeypatch.setattr(
        generation_router, "get_served_questions", lambda session_id: ["q1", "q2"] if session_id == "exam-7" else []
    )
    assert client.get("/generation/served/exam-7").json() == {
        "session_id": "exam-7", "count": 2, "question_ids": ["q1", "q2"],
    }
    assert client.get("/generation/served/unknown").json()["count"] == 0

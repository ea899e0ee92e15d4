import inspect

import pytest
from fastapi.testclient import TestClient

from novascript import server
from novascript.credentials import StaticCredentialProvider
from novascript.errors import WorkflowBusyError
from novascript.models import NewsArticle, ScriptOutput, ScriptSegment
from novascript.orchestrator import WorkflowOrchestrator


class StubBackend:
    def __init__(self, articles=None):
        self.articles = articles if articles is not None else [
            NewsArticle(title="Chip news", source="Wire", timestamp="1h", url="https://example.com/1")
        ]

    async def fetch_articles(self, topic):
        return self.articles

    async def summarize_articles(self, articles):
        return ["summary"] * len(articles)

    async def generate_script(self, topic, articles):
        return ScriptOutput(
            intro="Intro",
            outro="Outro",
            news_segments=[ScriptSegment(title="Story", script="Body", transition="Next")],
        )

    async def generate_image(self, prompt, resolution):
        return None


@pytest.fixture
def setup(monkeypatch):
    credentials = StaticCredentialProvider("sk-test")
    backend = StubBackend()
    orchestrator = WorkflowOrchestrator(backend, credentials, resolution="1K")
    monkeypatch.setattr(server, "_CREDENTIALS", credentials)
    monkeypatch.setattr(server, "_ORCHESTRATOR", orchestrator)
    return TestClient(server.app), orchestrator, credentials, backend


def test_health(setup):
    client, *_ = setup
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_cors_wildcard_disables_credentials():
    cors = next(
        m for m in server.app.user_middleware if m.cls.__name__ == "CORSMiddleware"
    )
    assert cors.kwargs["allow_origins"] == ["*"]
    assert cors.kwargs["allow_credentials"] is False


def test_initial_snapshot(setup):
    client, *_ = setup
    data = client.get("/workflow").json()
    assert data["stage"] == "idle"
    assert data["stageLabel"] == "IDLE"
    assert data["isBusy"] is False
    assert data["log"] == ["System Ready.", "Awaiting Vector Input..."]
    assert data["script"] is None


def test_post_workflow_runs_to_completion(setup):
    client, *_ = setup
    resp = client.post("/workflow", json={"topic": "chips", "resolution": "2K"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["stage"] == "completed"
    assert data["resolution"] == "2K"
    assert data["articles"][0]["summary"] == "summary"
    assert data["script"]["newsSegments"][0]["imageUrl"] is None
    assert data["log"][-1] == "> SYNTHESIS COMPLETE. SIGNAL STABLE."


def test_post_workflow_failure_reports_idle(setup):
    client, _, _, backend = setup
    backend.articles = []
    resp = client.post("/workflow", json={"topic": "chips"})
    assert resp.status_code == 200
    assert resp.json()["stage"] == "idle"
    assert resp.json()["log"][-1] == "> PROTOCOL HALTED: ERROR."


def test_post_workflow_rejects_blank_topic(setup):
    client, *_ = setup
    resp = client.post("/workflow", json={"topic": "   "})
    assert resp.status_code == 400


def test_post_workflow_rejects_unknown_resolution(setup):
    client, *_ = setup
    resp = client.post("/workflow", json={"topic": "chips", "resolution": "8K"})
    assert resp.status_code == 422


def test_post_workflow_requires_credential(setup):
    client, _, credentials, _ = setup
    credentials.clear()
    resp = client.post("/workflow", json={"topic": "chips"})
    assert resp.status_code == 401

    assert client.get("/credential").json() == {"selected": False}
    assert client.put("/credential", json={"apiKey": "sk-new"}).status_code == 204
    assert client.get("/credential").json() == {"selected": True}
    assert client.post("/workflow", json={"topic": "chips"}).json()["stage"] == "completed"


def test_post_workflow_conflict_when_busy(setup, monkeypatch):
    client, orchestrator, _, _ = setup

    async def busy(topic, resolution=None):
        raise WorkflowBusyError("A workflow run is already in progress.")

    monkeypatch.setattr(orchestrator, "run_workflow", busy)
    resp = client.post("/workflow", json={"topic": "chips"})
    assert resp.status_code == 409


def test_exports_require_script(setup):
    client, *_ = setup
    assert client.get("/workflow/script.json").status_code == 404
    assert client.get("/workflow/script.docx").status_code == 404


def test_exports_return_script_and_log_activity(setup):
    client, orchestrator, _, _ = setup
    client.post("/workflow", json={"topic": "chips"})

    resp = client.get("/workflow/script.json")
    assert resp.status_code == 200
    assert resp.json()["newsSegments"][0]["title"] == "Story"
    assert orchestrator.snapshot().log[-1] == "> CACHED."

    resp = client.get("/workflow/script.docx")
    assert resp.status_code == 200
    assert resp.content[:2] == b"PK"
    assert "attachment" in resp.headers["content-disposition"]
    assert orchestrator.snapshot().log[-1] == "> EXPORTED."


@pytest.mark.parametrize(
    "endpoint",
    [
        server.select_credential,
        server.workflow_state,
        server.start_workflow,
        server.export_script_json,
        server.export_script_docx,
    ],
)
def test_state_touching_endpoints_run_on_the_event_loop(endpoint):
    assert inspect.iscoroutinefunction(endpoint)

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.api.routes import render
from src.contracts import registry as registry_module


@pytest.fixture
def client(registry, monkeypatch):
    monkeypatch.setattr(registry_module, "_registry", registry)
    render.get_render_cache().clear()
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["contracts_loaded"] == 2


def test_list_and_get_contracts(client):
    summaries = client.get("/v1/contracts/").json()
    assert sorted(summary["agent_id"] for summary in summaries) == ["generic-json", "lp-agent-default"]

    definition = client.get("/v1/contracts/lp-agent-default").json()
    assert definition["contract"]["title"] == "Landing page structure"

    assert client.get("/v1/contracts/nobody").status_code == 404


def test_put_rejects_mismatched_agent(client):
    response = client.put("/v1/contracts/a1", json={"agentId": "a2"})
    assert response.status_code == 400


def test_put_then_delete(client):
    body = {"agentId": "a1", "outputViewContract": {"title": "Mine", "meta": {"managedBy": "user"}}}
    assert client.put("/v1/contracts/a1", json=body).status_code == 200
    assert client.get("/v1/contracts/a1").json()["contract"]["title"] == "Mine"
    assert client.delete("/v1/contracts/a1").status_code == 200
    assert client.delete("/v1/contracts/a1").status_code == 404


def test_lint_endpoint(client):
    response = client.post("/v1/contracts/lint", json={"sections": [{"id": "s", "type": "timeline"}]})
    body = response.json()
    assert body["error_count"] == 1
    assert body["warning_count"] == 1
    assert body["contract_hash"]


def test_render_uses_the_runs_agent_contract(client, lp_run):
    response = client.post("/v1/render/", json={"run": lp_run})
    assert response.status_code == 200
    tree = response.json()
    assert tree["source"] == "contract"
    assert tree["nodes"][0]["id"] == "conclusion"
    assert tree["nodes"][0]["kind"] == "hero"
    assert [violation["section_id"] for violation in tree["violations"]] == ["questions", "sections"]


def test_render_is_cached_per_contract_and_document(client, lp_run):
    client.post("/v1/render/", json={"run": lp_run})
    client.post("/v1/render/", json={"run": lp_run})
    assert len(render.get_render_cache()) == 1
    client.post("/v1/render/", json={"run": lp_run, "quality_checklist": ["Other"]})
    assert len(render.get_render_cache()) == 2


def test_render_without_contract_falls_back(client, lp_document):
    tree = client.post("/v1/render/", json={"run": lp_document}).json()
    assert tree["source"] == "fallback"
    assert tree["diagnostics"]


def test_inline_contract_wins(client, lp_run):
    contract = {"title": "Inline", "mainContent": {"blocks": [{"id": "x", "renderer": "bullets", "path": "nextActions"}]}}
    tree = client.post("/v1/render/", json={"run": lp_run, "contract": contract}).json()
    assert tree["title"] == "Inline"
    assert tree["nodes"][0]["items"] == ["Shoot photos", "Draft FAQ"]


def test_markdown_and_html(client, lp_run):
    markdown_text = client.post("/v1/render/markdown", json={"run": lp_run}).json()["markdown"]
    assert markdown_text.startswith("# Landing page structure")
    assert "## Execution proof" not in markdown_text

    html = client.post("/v1/render/html", json={"run": lp_run, "include_debug": True}).json()["html"]
    assert "<h2>Execution proof</h2>" in html


def test_normalize_endpoint(client, lp_run):
    document = client.post("/v1/render/normalize", json={"run": lp_run}).json()
    assert document["source"] == "final"
    assert document["final_output"]["core"]["oneLiner"].startswith("Show busy parents")

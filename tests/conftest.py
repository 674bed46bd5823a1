from pathlib import Path

import pytest

from src.contracts.registry import ContractRegistry
from src.contracts.schemas import ViewContract

DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "src" / "contracts" / "definitions"


@pytest.fixture
def lp_document():
    """A v2 landing-page plan as produced by the LP agent."""
    return {
        "schemaVersion": "2",
        "core": {
            "oneLiner": "Show busy parents a 10-minute dinner they trust",
            "target": {
                "situation": "Working parents cooking after 7pm",
                "desire": "Healthy dinner without planning",
                "anxiety": "Kids will not eat it",
            },
            "cv": {"role": "Start a free trial", "ctaHint": "Try a week free"},
        },
        "logic": {
            "hypothesis": "Time, not skill, is the blocker",
            "evidence": ["Survey: 72% cite time", "Support tickets mention prep"],
        },
        "deliverables": {
            "lp": {
                "sections": [
                    {"name": "Hero", "role": "Hook", "copyHint": "Dinner in 10", "keyPoints": ["speed", "trust"]},
                    {"name": "Proof", "role": "Evidence", "keyPoints": ["reviews"]},
                    {"name": "CTA", "role": "Convert", "copy": {"headline": "Start today"}},
                ],
                "questionCoverage": [
                    {"category": "price", "question": "How much?", "answeredInSection": "CTA"},
                    {"category": "trust", "question": "Is it healthy?", "answeredInSection": "Proof"},
                ],
                "layoutHints": "Photo of a family table, headline left",
            }
        },
        "nextActions": ["Shoot photos", "Draft FAQ"],
    }


@pytest.fixture
def lp_run(lp_document):
    """A stored run envelope wrapping lp_document."""
    return {
        "id": "run-1",
        "workflowId": "wf-1",
        "agentNodeId": "node-1",
        "agentDefinitionId": "lp-agent-default",
        "status": "success",
        "startedAt": "2026-01-01T10:00:00Z",
        "finishedAt": "2026-01-01T10:00:12Z",
        "durationMs": 12340,
        "model": "test-model",
        "finalOutput": lp_document,
        "parsedOutput": lp_document,
        "llmRawOutput": "```json\n{}\n```",
        "zodValidationResult": {"success": True, "issues": []},
        "contextQuality": {"status": "usable", "errors": [], "warnings": ["persona is thin"]},
    }


@pytest.fixture
def registry(tmp_path):
    """Registry over a private copy of the shipped definitions."""
    for definition in DEFINITIONS_DIR.iterdir():
        (tmp_path / definition.name).write_text(definition.read_text(encoding="utf-8"), encoding="utf-8")
    return ContractRegistry(definitions_dir=tmp_path)


@pytest.fixture
def lp_contract(registry) -> ViewContract:
    return registry.get_contract("lp-agent-default")


@pytest.fixture
def simple_contract() -> ViewContract:
    """Two blocks and two sections, one of them debug."""
    return ViewContract.model_validate({
        "title": "Simple",
        "mainContent": {
            "blocks": [
                {"id": "c1", "label": "Headline", "renderer": "hero", "path": "$.finalOutput.core.oneLiner"},
                {"id": "c2", "label": "Actions", "renderer": "bullets", "path": "nextActions"},
            ]
        },
        "sections": [
            {"id": "raw", "label": "Raw", "type": "raw", "raw": {"tabs": ["finalOutput"]}},
            {
                "id": "pages",
                "label": "Pages",
                "type": "cards",
                "cards": {"itemsPath": "deliverables.lp.sections", "titlePath": "name"},
            },
        ],
    })

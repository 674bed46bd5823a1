from src.contracts.schemas import Section
from src.presentation.components import RenderContext
from src.presentation.schemas import NodeKind, PlaceholderReason
from src.presentation.sections import render_section
from src.runs.normalizer import coerce_run, normalize


def _section(**kwargs) -> Section:
    kwargs.setdefault("id", "s1")
    return Section.model_validate(kwargs)


def _run_context(lp_run, checklist=()):
    return RenderContext(normalize(lp_run).final_output, coerce_run(lp_run), tuple(checklist))


def test_summary_title_subtitle_and_items(lp_document):
    section = _section(
        type="summary",
        label="Overview",
        summary={
            "titlePath": "core.oneLiner",
            "subtitleTemplate": "Sections: {{deliverables.lp.sections.length}}",
            "items": [
                {"label": "Desire", "valuePath": "core.target.desire"},
                {"label": "Count", "valueTemplate": "{{deliverables.lp.sections.length}}"},
                {"label": "Budget", "path": "core.budget"},
            ],
        },
    )
    node = render_section(section, RenderContext(lp_document))
    assert node.kind == NodeKind.SUMMARY
    assert node.label == "Overview"
    assert node.find("s1.title").text.startswith("Show busy parents")
    assert node.find("s1.subtitle").text == "Sections: 3"
    assert node.find("s1.0").text == "Healthy dinner without planning"
    assert node.find("s1.1").text == "3"
    assert node.find("s1.2").reason == PlaceholderReason.PATH_NOT_FOUND


def test_summary_object_title_gets_note(lp_document):
    section = _section(type="summary", summary={"titlePath": "core.target"})
    node = render_section(section, RenderContext(lp_document))
    assert "see the cards below" in node.find("s1.title").text


def test_summary_policy_strict_hides_rich_values(lp_document):
    items = [{"label": "Evidence", "path": "logic.evidence"}]
    strict = render_section(_section(type="summary", summary={"policy": "strict", "items": items}), RenderContext(lp_document))
    assert strict.find("s1.0").text == "Shown in the main content"

    rich = render_section(_section(type="summary", summary={"items": items}), RenderContext(lp_document))
    assert rich.find("s1.0").kind == NodeKind.CHIPS


def test_summary_chips_window_and_long_text_preview():
    doc = {"tags": [f"t{i}" for i in range(8)], "story": "x" * 150}
    section = _section(
        type="summary",
        summary={"items": [{"label": "Tags", "path": "tags"}, {"label": "Story", "path": "story"}]},
    )
    node = render_section(section, RenderContext(doc))
    chips = node.find("s1.0")
    assert chips.meta == {"visible": 5, "hidden_count": 3}
    assert len(chips.items) == 8
    story = node.find("s1.1")
    assert story.meta["expandable"]
    assert len(story.meta["preview"]) == 100


def test_summary_without_definition():
    node = render_section(_section(type="summary"), RenderContext({}))
    assert node.reason == PlaceholderReason.DEFINITION_MISSING


def test_table_section_uses_section_path_when_no_rows_path(lp_document):
    section = _section(
        type="table",
        path="deliverables.lp.questionCoverage",
        table={"columns": [{"key": "category", "label": "Category"}]},
    )
    node = render_section(section, RenderContext(lp_document))
    assert node.rows == [["price"], ["trust"]]


def test_section_path_miss_is_placeholder_and_keeps_label():
    node = render_section(_section(type="table", label="Q", path="nope", table={}), RenderContext({}))
    assert node.reason == PlaceholderReason.PATH_NOT_FOUND
    assert node.label == "Q"


def test_cards_section_empty_array():
    section = _section(type="cards", cards={"itemsPath": "items"})
    node = render_section(section, RenderContext({"items": []}))
    assert node.reason == PlaceholderReason.NO_DATA


def test_checklist_section_prefers_items_path_then_agent_checklist(lp_run):
    from_agent = render_section(_section(type="checklist", checklist={}), _run_context(lp_run, ["Has CTA"]))
    assert from_agent.items == ["Has CTA"]

    from_output = render_section(
        _section(type="checklist", checklist={"itemsPath": "nextActions"}),
        _run_context(lp_run, ["Has CTA"]),
    )
    assert from_output.items == ["Shoot photos", "Draft FAQ"]

    empty = render_section(_section(type="checklist", checklist={}), _run_context(lp_run))
    assert empty.reason == PlaceholderReason.NO_DATA


def test_raw_section_tabs_show_run_slices(lp_run):
    section = _section(type="raw", raw={"tabs": ["finalOutput", "llmRawOutput", "validation", "bogus"]})
    node = render_section(section, _run_context(lp_run))
    assert node.kind == NodeKind.TABS
    assert node.meta["debug"] is True
    assert [tab.label for tab in node.children] == ["Final Output", "LLM Raw Output", "Validation", "bogus"]
    assert node.find("s1.finalOutput.content").meta["language"] == "json"
    assert node.find("s1.llmRawOutput.content").text.startswith("```json")
    assert node.find("s1.bogus.content").reason == PlaceholderReason.UNSUPPORTED_RENDERER


def test_raw_section_requires_tabs():
    node = render_section(_section(type="raw"), RenderContext({}))
    assert node.reason == PlaceholderReason.DEFINITION_MISSING


def test_execution_proof_defaults_to_all_tabs(lp_run):
    node = render_section(_section(type="executionProof"), _run_context(lp_run))
    assert len(node.children) == 6
    assert node.find("s1.proof.duration").text == "12.34s"
    assert node.find("s1.proof.model").text == "test-model"
    assert node.find("s1.qualityCheck.warnings").items == ["persona is thin"]


def test_execution_proof_without_run_says_not_recorded():
    node = render_section(_section(type="executionProof"), RenderContext({"a": 1}))
    assert node.find("s1.proof.content").text == "(not recorded)"
    assert node.find("s1.finalOutput.content").kind == NodeKind.CODE


def test_unknown_section_type():
    node = render_section(_section(type="timeline"), RenderContext({}))
    assert node.reason == PlaceholderReason.UNSUPPORTED_RENDERER

"""Array-shaped components shared by main-content blocks and sections.

Cards, tables, checklists and run-detail tabs appear both as blocks and
as sections. Both call these builders so the two stay identical.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

from src.contracts.schemas import CardsSpec, TableSpec
from src.presentation.formatting import display_text, field_node, placeholder, text_node
from src.presentation.schemas import NodeKind, PlaceholderReason, PresentationNode
from src.resolver.paths import resolve
from src.runs.schemas import RunRecord

DEFAULT_DEBUG_TABS = ("finalOutput", "parsedOutput", "llmRawOutput", "validation", "proof", "qualityCheck")

TAB_LABELS = {
    "finalOutput": "Final Output",
    "parsedOutput": "Parsed Output",
    "llmRawOutput": "LLM Raw Output",
    "validation": "Validation",
    "proof": "Execution Proof",
    "qualityCheck": "Quality Check",
}


@dataclass(frozen=True)
class RenderContext:
    """Everything a strategy may read. Strategies never mutate it."""

    root: Any
    run: Optional[RunRecord] = None
    quality_checklist: tuple[str, ...] = ()


def _resolve_items(
    node_id: str,
    items_path: Optional[str],
    fallback: Any,
    ctx: RenderContext,
    context_id: str,
    noun: str,
) -> tuple[Optional[list], Optional[PresentationNode]]:
    """Resolve an array for an iterating component.

    Returns (items, None) on success or (None, placeholder) otherwise.
    """
    if items_path:
        result = resolve(ctx.root, items_path, context_id)
        if not result.ok:
            return None, placeholder(
                node_id, PlaceholderReason.PATH_NOT_FOUND, f"No {noun} data ({result.error})"
            )
        items = result.value
    else:
        items = fallback

    if items is None:
        return None, placeholder(node_id, PlaceholderReason.NO_DATA, f"No {noun} data")
    if not isinstance(items, list):
        return None, placeholder(
            node_id,
            PlaceholderReason.NOT_ARRAY,
            f"{noun.capitalize()} data is not an array (got {type(items).__name__})",
        )
    if not items:
        return None, placeholder(node_id, PlaceholderReason.NO_DATA, f"No {noun} data")
    return items, None


def render_cards(
    node_id: str,
    spec: CardsSpec,
    data: Any,
    ctx: RenderContext,
    context_id: str,
) -> PresentationNode:
    items, empty = _resolve_items(node_id, spec.items_path, data, ctx, context_id, "card")
    if empty is not None:
        return empty

    cards = []
    for index, item in enumerate(items):
        card_id = f"{node_id}.{index}"
        title = ""
        if spec.title_path:
            title_result = resolve(item, spec.title_path, context_id)
            if title_result.ok:
                title = display_text(title_result.value) if title_result.value is not None else ""
        card = PresentationNode(id=card_id, kind=NodeKind.CARD, label=title or f"Item {index + 1}")

        if spec.subtitle_path:
            subtitle = resolve(item, spec.subtitle_path, context_id)
            if subtitle.ok and subtitle.value not in (None, ""):
                card.text = display_text(subtitle.value)

        for field_index, field in enumerate(spec.fields):
            field_id = f"{card_id}.{field_index}"
            label = field.label or field.effective_path or f"Field {field_index + 1}"
            field_result = resolve(item, field.effective_path, context_id)
            if not field_result.ok:
                card.children.append(
                    placeholder(field_id, PlaceholderReason.PATH_NOT_FOUND, field_result.error, label=label)
                )
                continue
            card.children.append(field_node(field_id, label, field_result.value))
        cards.append(card)

    return PresentationNode(id=node_id, kind=NodeKind.CARD_GROUP, children=cards)


def render_table(
    node_id: str,
    spec: TableSpec,
    data: Any,
    ctx: RenderContext,
    context_id: str,
) -> PresentationNode:
    rows, empty = _resolve_items(node_id, spec.rows_path, data, ctx, context_id, "table")
    if empty is not None:
        return empty
    if not spec.columns:
        return placeholder(node_id, PlaceholderReason.DEFINITION_MISSING, "No table columns defined")

    table_rows = []
    cell_errors = []
    for row_index, row in enumerate(rows):
        cells = []
        for column in spec.columns:
            result = resolve(row, column.effective_path, context_id)
            if not result.ok:
                cells.append(f"⚠ {result.error}")
                cell_errors.append({"row": row_index, "column": column.key, "error": result.error})
                continue
            cells.append(display_text(result.value))
        table_rows.append(cells)

    node = PresentationNode(
        id=node_id,
        kind=NodeKind.TABLE,
        headers=[column.header for column in spec.columns],
        rows=table_rows,
    )
    if cell_errors:
        node.meta["cell_errors"] = cell_errors
    return node


def render_checklist(
    node_id: str,
    items_path: Optional[str],
    data: Any,
    ctx: RenderContext,
    context_id: str,
) -> PresentationNode:
    """Checklist items from a path, the given data, or the agent's quality checklist."""
    items: Any = None
    if items_path:
        result = resolve(ctx.root, items_path, context_id)
        if not result.ok:
            return placeholder(node_id, PlaceholderReason.NO_DATA, "No checklist items", error=result.error)
        items = result.value
    elif isinstance(data, list) and data:
        items = data
    else:
        items = list(ctx.quality_checklist)

    if not isinstance(items, list) or not items:
        return placeholder(node_id, PlaceholderReason.NO_DATA, "No checklist items")
    return PresentationNode(
        id=node_id,
        kind=NodeKind.CHECKLIST,
        items=[display_text(item) for item in items],
    )


def _code_node(node_id: str, value: Any) -> PresentationNode:
    if value is None or value == "":
        return text_node(node_id, "(not recorded)")
    if isinstance(value, str):
        return PresentationNode(id=node_id, kind=NodeKind.CODE, text=value, meta={"language": "text"})
    return PresentationNode(
        id=node_id,
        kind=NodeKind.CODE,
        text=json.dumps(value, indent=2, ensure_ascii=False, default=str),
        meta={"language": "json"},
    )


def _format_duration(duration_ms: Optional[float]) -> Optional[str]:
    if duration_ms is None:
        return None
    return f"{duration_ms / 1000:.2f}s"


def _proof_children(node_id: str, run: RunRecord) -> list[PresentationNode]:
    facts = (
        ("Status", run.status),
        ("Duration", _format_duration(run.duration_ms)),
        ("Started", run.started_at),
        ("Finished", run.finished_at),
        ("Model", run.model),
        ("Agent", run.agent_id or None),
        ("Error", run.error),
    )
    return [
        field_node(f"{node_id}.{label.lower()}", label, value)
        for label, value in facts
        if value is not None
    ]


def _quality_children(node_id: str, run: RunRecord) -> list[PresentationNode]:
    quality = run.quality
    if quality is None:
        return [text_node(f"{node_id}.status", "(not recorded)")]
    children = [field_node(f"{node_id}.status", "Status", quality.status)]
    if quality.errors:
        children.append(PresentationNode(id=f"{node_id}.errors", kind=NodeKind.LIST, label="Errors", items=quality.errors))
    if quality.warnings:
        children.append(
            PresentationNode(id=f"{node_id}.warnings", kind=NodeKind.LIST, label="Warnings", items=quality.warnings)
        )
    return children


def _tab(node_id: str, tab: str, ctx: RenderContext) -> PresentationNode:
    tab_id = f"{node_id}.{tab}"
    node = PresentationNode(id=tab_id, kind=NodeKind.TAB, label=TAB_LABELS.get(tab, tab))
    run = ctx.run

    if tab not in TAB_LABELS:
        node.children.append(
            placeholder(f"{tab_id}.content", PlaceholderReason.UNSUPPORTED_RENDERER, f"Unknown tab: {tab}")
        )
    elif tab == "finalOutput":
        value = ctx.root if run is None else (run.final_output if run.final_output is not None else run.output)
        node.children.append(_code_node(f"{tab_id}.content", value))
    elif run is None:
        node.children.append(text_node(f"{tab_id}.content", "(not recorded)"))
    elif tab == "parsedOutput":
        node.children.append(_code_node(f"{tab_id}.content", run.parsed_output))
    elif tab == "llmRawOutput":
        node.children.append(_code_node(f"{tab_id}.content", run.llm_raw_output))
    elif tab == "validation":
        validation = run.validation.model_dump() if run.validation else None
        node.children.append(_code_node(f"{tab_id}.content", validation))
    elif tab == "proof":
        node.children.extend(_proof_children(tab_id, run))
    elif tab == "qualityCheck":
        node.children.extend(_quality_children(tab_id, run))
    return node


def render_tabs(node_id: str, tabs: list[str], ctx: RenderContext) -> PresentationNode:
    return PresentationNode(
        id=node_id,
        kind=NodeKind.TABS,
        children=[_tab(node_id, tab, ctx) for tab in tabs],
    )

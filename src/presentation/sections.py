"""Section strategies: summary, table, cards, checklist, raw, executionProof."""

import logging
from typing import Any, Callable

from src.contracts.schemas import Section, SummarySpec
from src.presentation.components import (
    DEFAULT_DEBUG_TABS,
    RenderContext,
    render_cards,
    render_checklist,
    render_table,
    render_tabs,
)
from src.presentation.formatting import (
    LONG_TEXT_THRESHOLD,
    chips_node,
    display_text,
    key_value_node,
    placeholder,
    preview,
    text_node,
)
from src.presentation.schemas import NodeKind, PlaceholderReason, PresentationNode
from src.resolver.paths import resolve
from src.resolver.templates import expand

logger = logging.getLogger(__name__)

SectionStrategy = Callable[[Section, Any, RenderContext], PresentationNode]

STRICT_POLICY = "strict"
RICH_VALUE_NOTE = "Shown in the main content"
OBJECT_TITLE_NOTE = "Too much content for a title; see the cards below"


def _summary_item(node_id: str, label: str, value: Any, policy: str) -> PresentationNode:
    if isinstance(value, (list, dict)) and policy == STRICT_POLICY:
        node = text_node(node_id, RICH_VALUE_NOTE, kind=NodeKind.FIELD, label=label)
        node.meta["hidden_rich_value"] = True
        return node
    if isinstance(value, list):
        return chips_node(node_id, value, label=label)
    if isinstance(value, dict):
        return key_value_node(node_id, value, label=label)

    text = display_text(value)
    node = text_node(node_id, text, kind=NodeKind.FIELD, label=label)
    if len(text) > LONG_TEXT_THRESHOLD:
        node.meta["preview"] = preview(text)
        node.meta["expandable"] = True
    return node


def render_summary(node_id: str, spec: SummarySpec, ctx: RenderContext) -> PresentationNode:
    """Title, subtitle and labelled items of a summary card."""
    node = PresentationNode(id=node_id, kind=NodeKind.SUMMARY)

    if spec.title_path:
        title = resolve(ctx.root, spec.title_path, node_id)
        title_id = f"{node_id}.title"
        if not title.ok:
            node.children.append(placeholder(title_id, PlaceholderReason.PATH_NOT_FOUND, title.error))
        elif isinstance(title.value, (list, dict)):
            node.children.append(text_node(title_id, OBJECT_TITLE_NOTE))
        elif title.value not in (None, ""):
            title_node = text_node(title_id, display_text(title.value))
            title_node.meta["role"] = "title"
            node.children.append(title_node)

    if spec.subtitle_template:
        subtitle = expand(spec.subtitle_template, ctx.root).strip()
        if subtitle:
            subtitle_node = text_node(f"{node_id}.subtitle", subtitle)
            subtitle_node.meta["role"] = "subtitle"
            node.children.append(subtitle_node)

    for index, item in enumerate(spec.items):
        item_id = f"{node_id}.{index}"
        label = item.label or f"Item {index + 1}"
        path = item.effective_path
        if not path:
            value = expand(item.value_template, ctx.root).strip() if item.value_template else None
            node.children.append(_summary_item(item_id, label, value or None, spec.policy))
            continue
        result = resolve(ctx.root, path, node_id)
        if not result.ok:
            node.children.append(placeholder(item_id, PlaceholderReason.PATH_NOT_FOUND, result.error, label=label))
            continue
        node.children.append(_summary_item(item_id, label, result.value, spec.policy))

    return node


def _render_summary_section(section: Section, data: Any, ctx: RenderContext) -> PresentationNode:
    if section.summary is None:
        return placeholder(section.id, PlaceholderReason.DEFINITION_MISSING, "No summary definition (check the contract)")
    return render_summary(section.id, section.summary, ctx)


def _render_table_section(section: Section, data: Any, ctx: RenderContext) -> PresentationNode:
    if section.table is None:
        return placeholder(section.id, PlaceholderReason.DEFINITION_MISSING, "No table definition (check the contract)")
    return render_table(section.id, section.table, data, ctx, section.id)


def _render_cards_section(section: Section, data: Any, ctx: RenderContext) -> PresentationNode:
    if section.cards is None:
        return placeholder(section.id, PlaceholderReason.DEFINITION_MISSING, "No cards definition (check the contract)")
    return render_cards(section.id, section.cards, data, ctx, section.id)


def _render_checklist_section(section: Section, data: Any, ctx: RenderContext) -> PresentationNode:
    if section.checklist is None:
        return placeholder(
            section.id, PlaceholderReason.DEFINITION_MISSING, "No checklist definition (check the contract)"
        )
    return render_checklist(section.id, section.checklist.items_path, None, ctx, section.id)


def _render_raw_section(section: Section, data: Any, ctx: RenderContext) -> PresentationNode:
    if section.raw is None or not section.raw.tabs:
        return placeholder(section.id, PlaceholderReason.DEFINITION_MISSING, "No raw tabs defined (check the contract)")
    return render_tabs(section.id, section.raw.tabs, ctx)


def _render_execution_proof(section: Section, data: Any, ctx: RenderContext) -> PresentationNode:
    tabs = section.raw.tabs if section.raw is not None and section.raw.tabs else list(DEFAULT_DEBUG_TABS)
    return render_tabs(section.id, tabs, ctx)


SECTION_RENDERERS: dict[str, SectionStrategy] = {
    "summary": _render_summary_section,
    "table": _render_table_section,
    "cards": _render_cards_section,
    "checklist": _render_checklist_section,
    "raw": _render_raw_section,
    "executionProof": _render_execution_proof,
}


def render_section(section: Section, ctx: RenderContext) -> PresentationNode:
    """Render one section into a node whose id is the section id."""
    result = resolve(ctx.root, section.path, section.id)
    if not result.ok:
        node = placeholder(section.id, PlaceholderReason.PATH_NOT_FOUND, result.error)
    else:
        strategy = SECTION_RENDERERS.get(section.type)
        if strategy is None:
            logger.warning(f"Section {section.id} uses unknown type '{section.type}'")
            node = placeholder(
                section.id,
                PlaceholderReason.UNSUPPORTED_RENDERER,
                f"Unsupported section type: {section.type}",
            )
        else:
            node = strategy(section, result.value, ctx)

    node.label = section.label or section.id
    node.meta.setdefault("section_type", section.type)
    if section.is_debug:
        node.meta["debug"] = True
    return node

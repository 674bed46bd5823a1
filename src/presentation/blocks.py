"""Main-content block strategies.

BLOCK_RENDERERS maps each renderer name to a pure function
(block, data, ctx) -> PresentationNode, where data is the block path
already resolved against the document root. Every strategy tolerates
missing values and wrong runtime types by returning a placeholder.
"""

import logging
import re
from typing import Any, Callable

from src.contracts.schemas import Block, FieldSpec
from src.presentation.components import RenderContext, render_cards, render_checklist, render_table
from src.presentation.fallback import auto_visualize
from src.presentation.formatting import (
    LONG_TEXT_THRESHOLD,
    display_text,
    field_node,
    humanize_key,
    is_mermaid,
    placeholder,
    split_sentences,
    text_node,
)
from src.presentation.schemas import NodeKind, PlaceholderReason, PresentationNode
from src.resolver.paths import parse_path, resolve
from src.resolver.templates import expand, inline_text

logger = logging.getLogger(__name__)

BlockStrategy = Callable[[Block, Any, RenderContext], PresentationNode]

INSIGHT_KEYWORDS = ("示唆", "根拠", "仮説", "insight", "evidence", "hypothesis", "finding")
ACTION_KEYWORDS = ("打ち手", "アクション", "提案", "action", "proposal", "recommend", "next step")
CAUTION_KEYWORDS = ("注意", "リスク", "caution", "risk", "warning", "pitfall")
NG_WORD = re.compile(r"\bng\b", re.IGNORECASE)

HIGHLIGHT_GROUPS = (
    ("insights", "Insights"),
    ("actions", "Actions"),
    ("cautions", "Cautions"),
)

# Ordered: later slots win when several fields map to the same slot
IMAGE_PROMPT_SLOTS = (
    ("purpose", "Purpose", ("目的", "何を伝える", "purpose", "goal", "message")),
    ("composition", "Composition", ("構図", "構成", "レイアウト", "composition", "layout")),
    ("subject", "Subject", ("被写体", "subject")),
    ("background", "Background", ("背景", "background")),
    ("color", "Color", ("色", "カラー", "color", "colour")),
    ("tone", "Tone", ("トーン", "トンマナ", "tone", "mood")),
    ("avoid", "Avoid", ("避ける", "avoid")),
)

COPY_TEXT_KEYS = ("markdown", "content", "text", "body")
DIAGRAM_KEYS = ("mermaid", "diagram", "code")


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _render_hero(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if _is_empty(data):
        return placeholder(block.id, PlaceholderReason.NO_DATA, "No data")
    if isinstance(data, list):
        text = "\n".join(display_text(item) for item in data)
    elif isinstance(data, dict):
        text = "\n".join(f"{key}: {display_text(item)}" for key, item in data.items())
    else:
        text = display_text(data)
    return text_node(block.id, text, kind=NodeKind.HERO)


def _resolve_field(field: FieldSpec, root: Any, item: Any, context_id: str):
    """Absolute ($.) field paths read the document root; others the current item."""
    path = field.effective_path
    if path and parse_path(path).is_absolute:
        return resolve(root, path, context_id)
    return resolve(item, path, context_id)


def _render_bullets(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if block.fields:
        children = []
        for index, field in enumerate(block.fields):
            field_id = f"{block.id}.{index}"
            label = field.label or f"Field {index + 1}"
            result = _resolve_field(field, ctx.root, data, block.id)
            if not result.ok:
                children.append(placeholder(field_id, PlaceholderReason.PATH_NOT_FOUND, result.error, label=label))
                continue
            value = result.value
            if isinstance(value, str) and len(value) > LONG_TEXT_THRESHOLD:
                children.append(
                    PresentationNode(id=field_id, kind=NodeKind.FIELD, label=label, items=split_sentences(value))
                )
                continue
            children.append(field_node(field_id, label, value))
        return PresentationNode(id=block.id, kind=NodeKind.BULLETS, children=children)

    if _is_empty(data):
        return placeholder(block.id, PlaceholderReason.NO_DATA, "No data")
    if isinstance(data, list):
        items = [display_text(item) for item in data]
    elif isinstance(data, dict):
        items = [f"{key}: {display_text(item)}" for key, item in data.items()]
    elif isinstance(data, str) and len(data) > LONG_TEXT_THRESHOLD:
        items = split_sentences(data)
    else:
        items = [display_text(data)]
    return PresentationNode(id=block.id, kind=NodeKind.BULLETS, items=items)


def _render_cards(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if block.cards is None:
        return placeholder(block.id, PlaceholderReason.DEFINITION_MISSING, "No cards definition (check the contract)")
    return render_cards(block.id, block.cards, data, ctx, block.id)


def _render_table(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if block.table is None:
        return placeholder(block.id, PlaceholderReason.DEFINITION_MISSING, "No table definition (check the contract)")
    return render_table(block.id, block.table, data, ctx, block.id)


def _render_checklist(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    return render_checklist(block.id, None, data if block.path else None, ctx, block.id)


def _render_copy_blocks(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if block.template is not None and block.template.value:
        text = expand(block.template.value, ctx.root).strip()
        if not text:
            return placeholder(block.id, PlaceholderReason.NO_DATA, "Template produced no text")
        return text_node(block.id, text, kind=NodeKind.COPY_BLOCK)

    if isinstance(data, str) and data:
        return text_node(block.id, data, kind=NodeKind.COPY_BLOCK)
    if isinstance(data, list) and data:
        children = [
            text_node(f"{block.id}.{index}", display_text(item), kind=NodeKind.COPY_BLOCK)
            for index, item in enumerate(data)
        ]
        return PresentationNode(id=block.id, kind=NodeKind.GROUP, children=children)
    if isinstance(data, dict) and data:
        children = [
            text_node(f"{block.id}.{key}", display_text(item), kind=NodeKind.COPY_BLOCK, label=humanize_key(key))
            for key, item in data.items()
        ]
        return PresentationNode(id=block.id, kind=NodeKind.GROUP, children=children)
    return placeholder(block.id, PlaceholderReason.DEFINITION_MISSING, "No template defined")


def _render_markdown(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if _is_empty(data):
        return placeholder(block.id, PlaceholderReason.NO_DATA, "No data")
    if isinstance(data, str):
        return text_node(block.id, data, kind=NodeKind.MARKDOWN)
    if isinstance(data, dict):
        for key in COPY_TEXT_KEYS:
            if isinstance(data.get(key), str) and data[key]:
                return text_node(block.id, data[key], kind=NodeKind.MARKDOWN)
    return auto_visualize(data, node_id=block.id)


def _render_mermaid(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if _is_empty(data):
        return placeholder(block.id, PlaceholderReason.NO_DATA, "No diagram source")
    if isinstance(data, str):
        return text_node(block.id, data, kind=NodeKind.MERMAID)
    if isinstance(data, dict):
        for key in DIAGRAM_KEYS:
            if isinstance(data.get(key), str) and data[key]:
                return text_node(block.id, data[key], kind=NodeKind.MERMAID)
    return placeholder(
        block.id,
        PlaceholderReason.WRONG_SHAPE,
        f"Diagram source must be text (got {type(data).__name__})",
    )


def _classify_highlight(label: str) -> str:
    lowered = label.lower()
    if any(keyword in lowered for keyword in INSIGHT_KEYWORDS):
        return "insights"
    if any(keyword in lowered for keyword in ACTION_KEYWORDS):
        return "actions"
    if any(keyword in lowered for keyword in CAUTION_KEYWORDS) or NG_WORD.search(label):
        return "cautions"
    return "insights"


def _render_highlights(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    if not block.fields:
        return placeholder(block.id, PlaceholderReason.DEFINITION_MISSING, "No analysis fields defined")

    if isinstance(data, list):
        items = data
    elif _is_empty(data):
        items = [None]
    else:
        items = [data]

    children = []
    for index, item in enumerate(items):
        groups: dict[str, list[str]] = {key: [] for key, _ in HIGHLIGHT_GROUPS}
        for field in block.fields:
            result = _resolve_field(field, ctx.root, item, block.id)
            if not result.ok or _is_empty(result.value):
                continue
            text = inline_text(result.value)
            label = field.label
            groups[_classify_highlight(label)].append(f"{label}: {text}" if label else text)

        if not any(groups.values()):
            continue
        item_id = f"{block.id}.{index}"
        item_node = PresentationNode(id=item_id, kind=NodeKind.GROUP)
        for key, label in HIGHLIGHT_GROUPS:
            if groups[key]:
                item_node.children.append(
                    PresentationNode(id=f"{item_id}.{key}", kind=NodeKind.LIST, label=label, items=groups[key])
                )
        children.append(item_node)

    if not children:
        return placeholder(block.id, PlaceholderReason.NO_DATA, "No analysis data")
    return PresentationNode(id=block.id, kind=NodeKind.HIGHLIGHTS, children=children)


def _image_slot(label: str) -> str:
    lowered = label.lower()
    for slot, _, keywords in IMAGE_PROMPT_SLOTS:
        if any(keyword in lowered for keyword in keywords):
            return slot
    if NG_WORD.search(label):
        return "avoid"
    return ""


def _render_image_prompts(block: Block, data: Any, ctx: RenderContext) -> PresentationNode:
    slots: dict[str, str] = {}
    unresolved = []

    if block.fields:
        for field in block.fields:
            result = resolve(ctx.root, field.effective_path, block.id)
            if not result.ok:
                unresolved.append(result.error)
                continue
            if _is_empty(result.value):
                continue
            slot = _image_slot(field.label) or "purpose"
            slots[slot] = inline_text(result.value)
    elif isinstance(data, str) and data:
        slots["purpose"] = data
    elif isinstance(data, dict) and data:
        for key, value in data.items():
            slot = _image_slot(str(key))
            if slot and not _is_empty(value):
                slots[slot] = inline_text(value)
        if not slots:
            slots["purpose"] = inline_text(data)

    if not slots:
        return placeholder(block.id, PlaceholderReason.NO_DATA, "No image instructions", unresolved=unresolved)

    children = []
    copy_lines = []
    for slot, label, _ in IMAGE_PROMPT_SLOTS:
        if slot in slots:
            children.append(field_node(f"{block.id}.{slot}", label, slots[slot]))
            copy_lines.append(f"[{label}] {slots[slot]}")
    node = PresentationNode(
        id=block.id,
        kind=NodeKind.IMAGE_PROMPT,
        text="\n\n".join(copy_lines),
        children=children,
    )
    if unresolved:
        node.meta["unresolved"] = unresolved
    return node


BLOCK_RENDERERS: dict[str, BlockStrategy] = {
    "hero": _render_hero,
    "bullets": _render_bullets,
    "cards": _render_cards,
    "table": _render_table,
    "checklist": _render_checklist,
    "copyBlocks": _render_copy_blocks,
    "markdown": _render_markdown,
    "mermaid": _render_mermaid,
    "analysisHighlights": _render_highlights,
    "imagePrompts": _render_image_prompts,
}

# Strategies that read their own paths rather than the block value
_TEXT_SNIFF_EXEMPT = ("copyBlocks", "imagePrompts", "analysisHighlights", "mermaid")


def render_block(block: Block, ctx: RenderContext) -> PresentationNode:
    """Render one main-content block into a node whose id is the block id."""
    result = resolve(ctx.root, block.path, block.id)
    if not result.ok:
        node = placeholder(block.id, PlaceholderReason.PATH_NOT_FOUND, result.error)
    else:
        data = result.value
        strategy = BLOCK_RENDERERS.get(block.renderer)
        if is_mermaid(data) and block.renderer not in _TEXT_SNIFF_EXEMPT:
            strategy = _render_mermaid
        if strategy is None:
            logger.warning(f"Block {block.id} uses unknown renderer '{block.renderer}'")
            node = placeholder(
                block.id,
                PlaceholderReason.UNSUPPORTED_RENDERER,
                f"Unsupported renderer: {block.renderer}",
            )
        else:
            node = strategy(block, data, ctx)

    node.label = block.label or node.label or block.id
    node.importance = block.importance
    node.meta.setdefault("renderer", block.renderer)
    return node

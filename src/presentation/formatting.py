"""Small builders shared by the block, section and fallback renderers."""

import re
from typing import Any, Optional

from src.presentation.schemas import NodeKind, PlaceholderReason, PresentationNode
from src.resolver.templates import inline_text

EMPTY_VALUE = "-"
LONG_TEXT_THRESHOLD = 100
CHIP_WINDOW = 5
PREVIEW_LINES = 2

MERMAID_PREFIXES = (
    "graph ",
    "graph\n",
    "flowchart ",
    "sequenceDiagram",
    "classDiagram",
    "stateDiagram",
    "erDiagram",
    "gantt",
    "mindmap",
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SENTENCE = re.compile(r"[^。\n]+。?")


def humanize_key(key: str) -> str:
    """'bannerIdeas' -> 'Banner Ideas', 'question_coverage' -> 'Question Coverage'."""
    words = _CAMEL_BOUNDARY.sub(" ", str(key)).replace("_", " ").replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def is_mermaid(value: Any) -> bool:
    return isinstance(value, str) and value.strip().startswith(MERMAID_PREFIXES)


def split_sentences(text: str) -> list[str]:
    return [sentence.strip() for sentence in _SENTENCE.findall(text) if sentence.strip()]


def display_text(value: Any) -> str:
    """One-line text for a value, with a dash for missing values."""
    text = inline_text(value)
    return text if text else EMPTY_VALUE


def placeholder(
    node_id: str,
    reason: PlaceholderReason,
    text: str,
    label: Optional[str] = None,
    **meta: Any,
) -> PresentationNode:
    return PresentationNode(
        id=node_id,
        kind=NodeKind.PLACEHOLDER,
        label=label,
        text=text,
        reason=reason,
        meta=meta,
    )


def text_node(node_id: str, text: str, kind: NodeKind = NodeKind.TEXT, label: Optional[str] = None) -> PresentationNode:
    return PresentationNode(id=node_id, kind=kind, label=label, text=text)


def key_value_node(node_id: str, value: dict, label: Optional[str] = None) -> PresentationNode:
    children = [
        PresentationNode(id=f"{node_id}.{key}", kind=NodeKind.FIELD, label=str(key), text=display_text(item))
        for key, item in value.items()
    ]
    return PresentationNode(id=node_id, kind=NodeKind.KEY_VALUE, label=label, children=children)


def chips_node(node_id: str, values: list, label: Optional[str] = None) -> PresentationNode:
    items = [display_text(item) for item in values]
    return PresentationNode(
        id=node_id,
        kind=NodeKind.CHIPS,
        label=label,
        items=items,
        meta={
            "visible": min(len(items), CHIP_WINDOW),
            "hidden_count": max(len(items) - CHIP_WINDOW, 0),
        },
    )


def field_node(node_id: str, label: str, value: Any) -> PresentationNode:
    """A labelled value: text for scalars, chips for arrays, key/value for objects."""
    if isinstance(value, list):
        return chips_node(node_id, value, label=label)
    if isinstance(value, dict):
        return key_value_node(node_id, value, label=label)
    node = PresentationNode(id=node_id, kind=NodeKind.FIELD, label=label, text=display_text(value))
    if value is None or value == "":
        node.meta["missing"] = True
    return node


def preview(text: str) -> str:
    lines = text.splitlines()
    if len(lines) > PREVIEW_LINES:
        return "\n".join(lines[:PREVIEW_LINES])
    return text[:LONG_TEXT_THRESHOLD]

"""Automatic layout for outputs without a usable contract.

The goal is "never show raw JSON": strings become paragraphs, arrays of
objects become card groups, arrays of scalars become lists and objects
become labelled groups, down to MAX_DEPTH levels.
"""

from typing import Any, Optional

from src.presentation.formatting import display_text, field_node, humanize_key, placeholder, text_node
from src.presentation.schemas import NodeKind, PlaceholderReason, PresentationNode
from src.resolver.templates import format_scalar

MAX_DEPTH = 3

CONTAINER_KEYS = ("sections", "banners", "bannerIdeas", "questions", "checklist", "items")
SUMMARY_KEYS = ("execSummary", "summary", "conclusion", "overview", "description")
CARD_TITLE_KEYS = ("name", "title", "label", "id")


def _card_title(item: dict, index: int) -> tuple[str, Optional[str]]:
    for key in CARD_TITLE_KEYS:
        value = item.get(key)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool) and value != "":
            return format_scalar(value), key
    return f"Item {index + 1}", None


def _card(node_id: str, item: Any, index: int, depth: int) -> PresentationNode:
    if not isinstance(item, dict):
        node = auto_visualize(item, depth, node_id)
        node.label = node.label or f"Item {index + 1}"
        return node

    title, title_key = _card_title(item, index)
    card = PresentationNode(id=node_id, kind=NodeKind.CARD, label=title)
    for key, value in item.items():
        if key == title_key:
            continue
        card.children.append(auto_visualize(value, depth + 1, f"{node_id}.{key}", label=humanize_key(key)))
    return card


def _container_group(node_id: str, key: str, items: list) -> PresentationNode:
    """Top-priority card group: each object item becomes a card of flat fields."""
    cards = []
    for index, item in enumerate(items):
        card_id = f"{node_id}.{index}"
        if not isinstance(item, dict):
            cards.append(text_node(card_id, display_text(item), label=f"Item {index + 1}"))
            continue
        title, title_key = _card_title(item, index)
        card = PresentationNode(id=card_id, kind=NodeKind.CARD, label=title)
        for field_key, value in item.items():
            if field_key != title_key:
                card.children.append(field_node(f"{card_id}.{field_key}", humanize_key(field_key), value))
        cards.append(card)
    return PresentationNode(id=node_id, kind=NodeKind.CARD_GROUP, label=humanize_key(key), children=cards)


def auto_visualize(
    value: Any,
    depth: int = 0,
    node_id: str = "auto",
    label: Optional[str] = None,
) -> PresentationNode:
    """Turn any JSON value into a readable node tree."""
    if depth > MAX_DEPTH:
        return placeholder(node_id, PlaceholderReason.OMITTED, "(nested content omitted)", label=label)

    if isinstance(value, str):
        return text_node(node_id, value, kind=NodeKind.PARAGRAPH, label=label)

    if isinstance(value, list):
        if not value:
            return text_node(node_id, "(empty)", label=label)
        if any(isinstance(item, dict) for item in value):
            cards = [_card(f"{node_id}.{index}", item, index, depth + 1) for index, item in enumerate(value)]
            return PresentationNode(id=node_id, kind=NodeKind.CARD_GROUP, label=label, children=cards)
        return PresentationNode(
            id=node_id,
            kind=NodeKind.LIST,
            label=label,
            items=[display_text(item) for item in value],
        )

    if isinstance(value, dict):
        if not value:
            return text_node(node_id, "(empty)", label=label)
        group = PresentationNode(id=node_id, kind=NodeKind.GROUP, label=label)
        containers = [
            key for key in value
            if key in CONTAINER_KEYS and isinstance(value[key], list) and value[key]
        ]
        for key in containers:
            group.children.append(_container_group(f"{node_id}.{key}", key, value[key]))
        for key, item in value.items():
            if key in containers:
                continue
            group.children.append(auto_visualize(item, depth + 1, f"{node_id}.{key}", label=humanize_key(key)))
        return group

    return text_node(node_id, display_text(value), label=label)


def auto_main_content(value: Any, node_id: str = "auto", label: Optional[str] = None) -> PresentationNode:
    """Automatic main content: a hero for the summary key, then everything else."""
    if value is None or value == "":
        return placeholder(node_id, PlaceholderReason.NO_DATA, "No output to display", label=label)

    if isinstance(value, dict):
        summary_key = next(
            (key for key in SUMMARY_KEYS if isinstance(value.get(key), str) and value[key].strip()),
            None,
        )
        if summary_key is not None:
            hero = text_node(f"{node_id}.{summary_key}", value[summary_key], kind=NodeKind.HERO,
                             label=humanize_key(summary_key))
            rest = {key: item for key, item in value.items() if key != summary_key}
            group = auto_visualize(rest, 0, node_id, label=label) if rest else None
            if group is None or group.kind != NodeKind.GROUP:
                return PresentationNode(id=node_id, kind=NodeKind.GROUP, label=label, children=[hero])
            group.children.insert(0, hero)
            return group

    return auto_visualize(value, 0, node_id, label=label)

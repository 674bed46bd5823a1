"""Markdown and HTML export.

The exporter walks the same entries in the same order as the renderer
(enumerate_entries) and renders each through the same strategies, then
serializes the nodes as Markdown headings, lists and tables. Debug
sections are left out unless include_debug is set.
"""

import json
import logging
import re
from typing import Any, Iterable, Optional

import markdown

from src.contracts.schemas import ViewContract
from src.presentation.renderer import (
    DEFAULT_TITLE,
    build_context,
    enumerate_entries,
    render_entry,
    render_header,
)
from src.presentation.rules import evaluate_contract
from src.presentation.schemas import NodeKind, PresentationNode

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["tables", "fenced_code"]

_HEADING = re.compile(r"^(#{1,6})(?=\s)", re.MULTILINE)


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ").strip()


def _heading(level: int, text: str) -> str:
    return f"{'#' * min(level, 6)} {text}"


def _demote_headings(text: str, level: int) -> str:
    """Push headings inside embedded Markdown below the entry heading."""
    return _HEADING.sub(lambda match: "#" * min(len(match.group(1)) + level - 1, 6), text)


def _bullet(node: PresentationNode) -> str:
    label = f"**{node.label}**: " if node.label else ""
    if node.kind == NodeKind.CHIPS or (node.kind == NodeKind.FIELD and node.items):
        return f"- {label}{', '.join(node.items)}"
    return f"- {label}{node.text or '-'}"


def _table_lines(node: PresentationNode) -> list[str]:
    lines = [
        "| " + " | ".join(_escape_cell(header) for header in node.headers) + " |",
        "| " + " | ".join("---" for _ in node.headers) + " |",
    ]
    for row in node.rows:
        lines.append("| " + " | ".join(_escape_cell(cell) for cell in row) + " |")
    return lines


def node_to_markdown(node: PresentationNode, level: int = 3) -> list[str]:
    """Serialize one node subtree. level is the heading level for nested titles."""
    kind = node.kind

    if kind == NodeKind.PLACEHOLDER:
        prefix = f"{node.label}: " if node.label and level > 3 else ""
        return [f"> ⚠ {prefix}{node.text}", ""]
    if kind in (NodeKind.FIELD, NodeKind.CHIPS):
        return [_bullet(node)]
    if kind == NodeKind.KEY_VALUE:
        lines = [f"- **{node.label}**:"] if node.label else []
        indent = "  " if node.label else ""
        lines.extend(f"{indent}{_bullet(child)}" for child in node.children)
        return lines
    if kind in (NodeKind.LIST, NodeKind.BULLETS, NodeKind.CHECKLIST):
        lines = []
        if node.label and level > 3:
            lines.append(f"**{node.label}**")
        marker = "- [x] " if kind == NodeKind.CHECKLIST else "- "
        lines.extend(f"{marker}{item}" for item in node.items)
        for child in node.children:
            lines.extend(node_to_markdown(child, level + 1))
        lines.append("")
        return lines
    if kind == NodeKind.TABLE:
        return _table_lines(node) + [""]
    if kind == NodeKind.MERMAID:
        return ["```mermaid", node.text or "", "```", ""]
    if kind == NodeKind.CODE:
        language = node.meta.get("language", "")
        return [f"```{language}", node.text or "", "```", ""]
    if kind == NodeKind.HERO:
        return [f"**{line}**" if line.strip() else "" for line in (node.text or "").splitlines()] + [""]
    if kind == NodeKind.IMAGE_PROMPT:
        return [_bullet(child) for child in node.children] + [""]
    if kind in (NodeKind.CARD, NodeKind.TAB):
        lines = [_heading(level, node.label or node.id), ""]
        if node.text:
            lines.extend([f"*{node.text}*", ""])
        for child in node.children:
            lines.extend(node_to_markdown(child, level + 1))
        lines.append("")
        return lines
    if kind in (NodeKind.PARAGRAPH, NodeKind.TEXT, NodeKind.MARKDOWN, NodeKind.COPY_BLOCK):
        lines = []
        if node.label and level > 3:
            lines.append(f"**{node.label}**")
        text = node.text or ""
        if kind in (NodeKind.MARKDOWN, NodeKind.COPY_BLOCK):
            text = _demote_headings(text, level)
        lines.extend([text, ""])
        return lines

    # Containers: group, card_group, summary, highlights, tabs
    lines = []
    if node.label and level > 3:
        lines.extend([_heading(level, node.label), ""])
    for child in node.children:
        lines.extend(node_to_markdown(child, level if kind != NodeKind.GROUP else level + 1))
    if lines and lines[-1] != "":
        lines.append("")
    return lines


def export_markdown(
    contract: Optional[ViewContract],
    run: Any,
    quality_checklist: Iterable[str] = (),
    include_debug: bool = False,
) -> str:
    """Render a run as a Markdown report."""
    ctx = build_context(run, quality_checklist)
    title = contract.title if contract is not None and contract.title else DEFAULT_TITLE
    lines = [f"# {title}", ""]

    if contract is None:
        lines.extend([
            "```json",
            json.dumps(ctx.root, indent=2, ensure_ascii=False, default=str),
            "```",
        ])
        return "\n".join(lines) + "\n"

    for violation in evaluate_contract(contract, ctx.root):
        lines.append(f"> ⚠ {violation.level}: {violation.message}")
    if lines[-1] != "":
        lines.append("")

    header = render_header(contract, ctx)
    if header is not None:
        lines.extend(node_to_markdown(header))

    for entry in enumerate_entries(contract):
        if entry.is_debug and not include_debug:
            continue
        lines.extend([f"## {entry.label}", ""])
        lines.extend(node_to_markdown(render_entry(entry, ctx)))

    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines) + "\n"


def export_html(
    contract: Optional[ViewContract],
    run: Any,
    quality_checklist: Iterable[str] = (),
    include_debug: bool = False,
) -> str:
    """Markdown report converted to an HTML fragment."""
    text = export_markdown(contract, run, quality_checklist, include_debug)
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)

"""Presentation tree schemas: the renderer-agnostic output of a render pass.

A PresentationTree is an ordered list of PresentationNodes. Node ids are
stable: top-level ids equal the block or section id, nested ids are
dotted paths beneath them (e.g. 'structure.0.purpose'). Consumers
(React, Markdown, PDF) dispatch on NodeKind.
"""

from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, Field

from src.contracts.schemas import Badge


class NodeKind(str, Enum):
    HERO = "hero"
    BULLETS = "bullets"
    LIST = "list"
    FIELD = "field"
    CHIPS = "chips"
    KEY_VALUE = "key_value"
    CARD_GROUP = "card_group"
    CARD = "card"
    TABLE = "table"
    CHECKLIST = "checklist"
    PARAGRAPH = "paragraph"
    TEXT = "text"
    GROUP = "group"
    SUMMARY = "summary"
    COPY_BLOCK = "copy_block"
    IMAGE_PROMPT = "image_prompt"
    MARKDOWN = "markdown"
    MERMAID = "mermaid"
    HIGHLIGHTS = "highlights"
    TABS = "tabs"
    TAB = "tab"
    CODE = "code"
    PLACEHOLDER = "placeholder"


class PlaceholderReason(str, Enum):
    """Why a placeholder was rendered instead of content."""

    PATH_NOT_FOUND = "path_not_found"
    DEFINITION_MISSING = "definition_missing"
    NOT_ARRAY = "not_array"
    NO_DATA = "no_data"
    UNSUPPORTED_RENDERER = "unsupported_renderer"
    WRONG_SHAPE = "wrong_shape"
    RENDER_FAILED = "render_failed"
    OMITTED = "omitted"


class PresentationNode(BaseModel):
    id: str
    kind: NodeKind
    label: Optional[str] = None
    text: Optional[str] = None
    items: list[str] = Field(default_factory=list)
    children: list["PresentationNode"] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    importance: Optional[str] = None
    reason: Optional[PlaceholderReason] = None
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_placeholder(self) -> bool:
        return self.kind == NodeKind.PLACEHOLDER

    def iter_nodes(self) -> Iterator["PresentationNode"]:
        """Depth-first walk including self."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def iter_text(self) -> Iterator[str]:
        """Every visible string in this subtree."""
        for node in self.iter_nodes():
            if node.label:
                yield node.label
            if node.text:
                yield node.text
            yield from node.items
            yield from node.headers
            for row in node.rows:
                yield from row

    def contains_text(self, needle: str) -> bool:
        return any(needle in text for text in self.iter_text())

    def find(self, node_id: str) -> Optional["PresentationNode"]:
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None


PresentationNode.model_rebuild()


class RuleViolation(BaseModel):
    """Advisory produced by a contract rule. Never blocks rendering."""

    level: str = Field(default="warning", description="'warning' or 'error'")
    message: str
    rule_kind: str
    path: str
    section_id: Optional[str] = None


class PresentationTree(BaseModel):
    title: str = ""
    badges: list[Badge] = Field(default_factory=list)
    source: str = Field(
        default="contract",
        description="'contract' when mainContent drove the layout, 'fallback' otherwise",
    )
    header: Optional[PresentationNode] = Field(
        default=None,
        description="Contract-level summary rendered above the entries",
    )
    nodes: list[PresentationNode] = Field(default_factory=list)
    violations: list[RuleViolation] = Field(default_factory=list)
    diagnostics: list[str] = Field(
        default_factory=list,
        description="Recommendations for contract authors (e.g. missing mainContent)",
    )
    contract_hash: Optional[str] = None

    def iter_nodes(self) -> Iterator[PresentationNode]:
        if self.header is not None:
            yield from self.header.iter_nodes()
        for node in self.nodes:
            yield from node.iter_nodes()

    def find(self, node_id: str) -> Optional[PresentationNode]:
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def contains_text(self, needle: str) -> bool:
        return any(node.contains_text(needle) for node in self.nodes)

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

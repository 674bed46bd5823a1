"""View contract schemas: declarative presentation specifications.

A ViewContract declares which parts of an agent's output render where
and how. It names sections (summary, table, cards, checklist, raw,
executionProof) and main-content blocks (hero, bullets, cards, ...),
each pointing into the output with a path expression.

Stored contracts use camelCase keys (mainContent, itemsPath, valuePath).
Every model here accepts both the stored spelling and the Python one.
Renderer and section type names stay open strings so that a contract
naming an unknown renderer still loads and renders a placeholder.
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, model_validator

BLOCK_RENDERERS = (
    "hero",
    "bullets",
    "cards",
    "table",
    "checklist",
    "copyBlocks",
    "markdown",
    "mermaid",
    "analysisHighlights",
    "imagePrompts",
)
SECTION_TYPES = ("summary", "table", "cards", "checklist", "raw", "executionProof")
DEBUG_SECTION_TYPES = ("raw", "executionProof")
RULE_KINDS = ("minLength", "maxLength", "rangeLength", "required")


class WireModel(BaseModel):
    """Base model that accepts the stored camelCase key spellings.

    Subclasses list stored -> field renames in wire_names. Input dicts
    are copied before renaming, never modified in place.
    """

    wire_names: ClassVar[dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def _accept_wire_names(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not cls.wire_names:
            return data
        data = dict(data)
        for old_key, new_key in cls.wire_names.items():
            if old_key in data:
                value = data.pop(old_key)
                data.setdefault(new_key, value)
        return data


class Badge(BaseModel):
    label: str
    tone: str = Field(default="gray", description="Color hint: indigo, orange, green, red, blue, gray")


class FieldSpec(WireModel):
    """A labelled value pulled out of the output by path.

    Used by bullets blocks, card fields, summary items and the
    analysisHighlights / imagePrompts strategies.
    """

    wire_names: ClassVar[dict[str, str]] = {"valuePath": "value_path", "valueTemplate": "value_template"}

    label: str = ""
    path: Optional[str] = Field(
        default=None,
        description="Path expression (e.g. '$.finalOutput.core.oneLiner')",
    )
    value_path: Optional[str] = Field(
        default=None,
        description="Older spelling of path; path wins when both are set",
    )
    value_template: Optional[str] = Field(
        default=None,
        description="Template used when no path is set (summary items)",
    )

    @property
    def effective_path(self) -> Optional[str]:
        return self.path or self.value_path


class SummarySpec(WireModel):
    wire_names: ClassVar[dict[str, str]] = {
        "titlePath": "title_path",
        "subtitleTemplate": "subtitle_template",
    }

    title_path: Optional[str] = None
    subtitle_template: Optional[str] = Field(
        default=None,
        description="Template such as '{{core.oneLiner}} / {{type || \"LP\"}}'",
    )
    policy: str = Field(
        default="allowRich",
        description="'strict' replaces rich values with a pointer to the main "
        "content; 'allowRich' renders chips and key/value lists inline",
    )
    items: list[FieldSpec] = Field(default_factory=list)


class TableColumn(WireModel):
    wire_names: ClassVar[dict[str, str]] = {"valuePath": "value_path"}

    key: str
    label: str = ""
    value_path: Optional[str] = None

    @property
    def effective_path(self) -> str:
        return self.value_path or self.key

    @property
    def header(self) -> str:
        return self.label or self.key


class TableSpec(WireModel):
    wire_names: ClassVar[dict[str, str]] = {"rowsPath": "rows_path"}

    rows_path: Optional[str] = Field(
        default=None,
        description="Array of row objects; defaults to the block/section data",
    )
    columns: list[TableColumn] = Field(default_factory=list)


class CardsSpec(WireModel):
    wire_names: ClassVar[dict[str, str]] = {
        "itemsPath": "items_path",
        "titlePath": "title_path",
        "subtitlePath": "subtitle_path",
    }

    items_path: Optional[str] = Field(
        default=None,
        description="Array of card items; defaults to the block/section data",
    )
    title_path: Optional[str] = Field(default=None, description="Resolved per item")
    subtitle_path: Optional[str] = Field(default=None, description="Resolved per item")
    fields: list[FieldSpec] = Field(default_factory=list, description="Resolved per item")


class ChecklistSpec(WireModel):
    wire_names: ClassVar[dict[str, str]] = {"itemsPath": "items_path"}

    items_path: Optional[str] = Field(
        default=None,
        description="Checklist items; defaults to the agent's quality checklist",
    )


class RawSpec(BaseModel):
    tabs: list[str] = Field(
        default_factory=list,
        description="Tab names: finalOutput, parsedOutput, llmRawOutput, "
        "validation, proof, qualityCheck",
    )


class TemplateSpec(BaseModel):
    type: str = "markdown"
    value: str = ""


class Rule(BaseModel):
    """Declarative length/presence rule evaluated against the output."""

    kind: str = Field(description="minLength, maxLength, rangeLength or required")
    path: str
    min: Optional[int] = None
    max: Optional[int] = None
    level: str = Field(default="warning", description="'warning' or 'error'")
    message: Optional[str] = None


class Section(BaseModel):
    id: str
    label: str = ""
    type: str = Field(description="summary, table, cards, checklist, raw or executionProof")
    path: Optional[str] = None
    summary: Optional[SummarySpec] = None
    table: Optional[TableSpec] = None
    cards: Optional[CardsSpec] = None
    checklist: Optional[ChecklistSpec] = None
    raw: Optional[RawSpec] = None
    rules: list[Rule] = Field(default_factory=list)

    @property
    def is_debug(self) -> bool:
        return self.type in DEBUG_SECTION_TYPES


class Block(BaseModel):
    id: str
    label: str = ""
    importance: str = Field(default="medium", description="'critical', 'high', 'medium' or 'low'")
    renderer: str = Field(description="One of BLOCK_RENDERERS")
    path: Optional[str] = None
    fields: Optional[list[FieldSpec]] = None
    cards: Optional[CardsSpec] = None
    table: Optional[TableSpec] = None
    template: Optional[TemplateSpec] = None


class MainContent(BaseModel):
    title: str = ""
    blocks: list[Block] = Field(default_factory=list)


class ContractMeta(WireModel):
    wire_names: ClassVar[dict[str, str]] = {
        "managedBy": "managed_by",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    version: str = "1"
    managed_by: str = Field(
        default="system",
        description="'system' contracts may be upgraded from seeds; 'user' ones never are",
    )
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ViewContract(WireModel):
    """Full presentation contract for one agent's output."""

    wire_names: ClassVar[dict[str, str]] = {
        "primaryKeyPath": "primary_key_path",
        "primaryKeys": "primary_keys",
        "mainContent": "main_content",
        "showQualityChecklist": "show_quality_checklist",
        "derivedViews": "derived_views",
    }

    version: str = "1"
    meta: Optional[ContractMeta] = None
    title: str = ""
    primary_key_path: Optional[str] = None
    badges: list[Badge] = Field(default_factory=list)
    summary: Optional[SummarySpec] = None
    renderer: Optional[str] = Field(
        default=None,
        description="Dedicated renderer hint; informational only",
    )
    primary_keys: list[str] = Field(default_factory=list)
    main_content: Optional[MainContent] = None
    sections: list[Section] = Field(default_factory=list)
    show_quality_checklist: bool = False
    derived_views: list[str] = Field(default_factory=list)

    @property
    def blocks(self) -> list[Block]:
        return self.main_content.blocks if self.main_content else []

    @property
    def has_main_content(self) -> bool:
        return bool(self.blocks)


class ContractDefinition(WireModel):
    """An agent's stored contract plus the agent metadata the renderer reads."""

    wire_names: ClassVar[dict[str, str]] = {
        "agentId": "agent_id",
        "qualityChecklist": "quality_checklist",
        "outputViewContract": "contract",
    }

    agent_id: str
    name: str = ""
    description: str = ""
    quality_checklist: list[str] = Field(default_factory=list)
    contract: ViewContract = Field(default_factory=ViewContract)


class ContractSummary(BaseModel):
    """Lightweight listing entry for the contracts endpoint."""

    agent_id: str
    name: str
    title: str
    version: str
    managed_by: str
    block_count: int
    section_count: int
    contract_hash: str


class ContractIssue(BaseModel):
    """One finding from the contract linter."""

    level: str = Field(description="'error' or 'warning'")
    message: str
    location: str = Field(default="", description="e.g. 'sections[2].cards.itemsPath'")

"""Run records and the normalized output document.

A RunRecord is one persisted agent execution. Older stores spell several
fields differently (agentDefinitionId, nodeId, lastError, executedAt,
zodValidationResult); RunRecord.from_payload accepts all of them.
"""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, model_validator

from src.contracts.schemas import WireModel


class ValidationIssue(BaseModel):
    path: str = ""
    message: str = ""


class ValidationResult(BaseModel):
    success: bool = False
    issues: list[ValidationIssue] = Field(default_factory=list)


class ContextQuality(BaseModel):
    status: str = Field(default="usable", description="'usable', 'degraded' or 'unusable'")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class RunRecord(WireModel):
    """One agent execution as stored by the workflow runner."""

    wire_names: ClassVar[dict[str, str]] = {
        "workflowId": "workflow_id",
        "agentNodeId": "agent_node_id",
        "nodeId": "agent_node_id",
        "agentId": "agent_id",
        "agentDefinitionId": "agent_id",
        "startedAt": "started_at",
        "finishedAt": "finished_at",
        "executedAt": "executed_at",
        "durationMs": "duration_ms",
        "finalOutput": "final_output",
        "parsedOutput": "parsed_output",
        "llmRawOutput": "llm_raw_output",
        "zodValidationResult": "validation",
        "contextQuality": "quality",
        "lastError": "error",
        "inputSummary": "input_summary",
        "executionContextSummary": "input_summary",
    }

    id: str = ""
    workflow_id: str = ""
    agent_node_id: str = ""
    agent_id: str = ""
    status: str = Field(default="error", description="'success' or 'error'")
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    executed_at: Optional[str] = None
    duration_ms: Optional[float] = None
    model: Optional[str] = None
    final_output: Any = None
    parsed_output: Any = None
    output: Any = Field(default=None, description="Legacy raw output slot")
    llm_raw_output: Any = None
    validation: Optional[ValidationResult] = None
    quality: Optional[ContextQuality] = None
    error: Optional[str] = None
    input_summary: Any = None

    # Fields stored as text that older runs leave null or write as numbers
    text_fields: ClassVar[tuple[str, ...]] = (
        "id",
        "workflow_id",
        "agent_node_id",
        "agent_id",
        "status",
        "started_at",
        "finished_at",
        "executed_at",
        "model",
        "error",
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_text_fields(cls, data: Any) -> Any:
        """Null or empty text falls back to the field default; numbers become strings."""
        if not isinstance(data, dict):
            return data
        keys = set(cls.text_fields)
        keys.update(old for old, new in cls.wire_names.items() if new in cls.text_fields)
        data = dict(data)
        for key in keys:
            if key not in data:
                continue
            value = data[key]
            if value is None or value == "" or isinstance(value, (dict, list)):
                del data[key]
            elif isinstance(value, bool):
                data[key] = str(value).lower()
            elif isinstance(value, (int, float)):
                data[key] = str(value)
        return data

    @model_validator(mode="after")
    def _fill_legacy_timestamps(self) -> "RunRecord":
        if self.executed_at:
            if self.started_at is None:
                self.started_at = self.executed_at
            if self.finished_at is None and self.status == "success":
                self.finished_at = self.executed_at
        return self

    @classmethod
    def from_payload(cls, payload: dict) -> "RunRecord":
        """Build a record from any stored spelling of a run."""
        return cls.model_validate(payload)


class OutputDocument(BaseModel):
    """The single normalized output value every renderer reads from."""

    final_output: Any = None
    source: str = Field(
        default="empty",
        description="Where the value came from: final, parsed, raw, document or empty",
    )
    schema_version: Optional[str] = Field(
        default=None,
        description="'2' for upgraded or native v2 documents",
    )
    upgraded: bool = False

    @property
    def root(self) -> Any:
        return self.final_output

    @property
    def is_empty(self) -> bool:
        return self.final_output is None

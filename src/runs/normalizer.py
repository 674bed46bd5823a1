"""Output normalization: one run (or bare document) in, one OutputDocument out.

Precedence when reading a run record:
    final_output > parsed_output > output > llm_raw_output

Raw text is parsed as JSON (tolerating markdown code fences). Text that
is not JSON stays a string. Planning documents in the v1 layout
(execSummary, targetUser, finalCv, ...) are upgraded to the v2 layout
(core / logic / deliverables). Nothing here mutates its input.
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from src.runs.schemas import OutputDocument, RunRecord

logger = logging.getLogger(__name__)

V2_SCHEMA_VERSION = "2"

ENVELOPE_KEYS = ("finalOutput", "parsedOutput", "llmRawOutput", "final_output", "parsed_output")
ENVELOPE_TYPE = "workflow_run"
OUTPUT_KEYS = (
    "finalOutput",
    "final_output",
    "parsedOutput",
    "parsed_output",
    "output",
    "llmRawOutput",
    "llm_raw_output",
)

V1_MARKER_KEYS = ("execSummary", "targetUser", "finalCv", "cvPolicy", "bannerIdeas", "diagramHints")
V1_DOCUMENT_TYPES = ("lp_structure", "banner_structure")
V1_RESERVED_KEYS = (
    "schemaVersion",
    "execSummary",
    "targetUser",
    "finalCv",
    "cvPolicy",
    "sections",
    "questions",
    "diagramHints",
    "bannerIdeas",
    "designNotes",
    "lpSplit",
    "type",
)
CV_KEYS = ("role", "answers", "keyPoints", "ctaHint")
TARGET_KEYS = ("situation", "desire", "anxiety", "core")


def parse_llm_json(raw_text: str) -> Any:
    """Parse JSON from LLM output, handling markdown code fences.

    Raises:
        json.JSONDecodeError: If the text cannot be parsed as JSON
    """
    content = raw_text.strip()

    # Strip leading markdown fence (```json or ```)
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]

    # Strip trailing fence
    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]

    return json.loads(content.strip())


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def _compact(mapping: dict) -> dict:
    return {key: value for key, value in mapping.items() if value is not None}


def is_v1_document(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    if value.get("schemaVersion") == V2_SCHEMA_VERSION:
        return False
    if value.get("type") in V1_DOCUMENT_TYPES:
        return True
    return any(key in value for key in V1_MARKER_KEYS)


def _upgrade_lp_section(section: Any) -> Any:
    if not isinstance(section, dict):
        return section
    copy = section.get("copy") if isinstance(section.get("copy"), dict) else None
    upgraded = dict(section)
    copy_hint = section.get("copyHint") or (copy or {}).get("headline")
    upgraded["copyHint"] = copy_hint
    if copy_hint and not (copy or {}).get("headline"):
        upgraded["copy"] = {**(copy or {}), "headline": copy_hint}
    return upgraded


def upgrade_to_v2(document: dict) -> dict:
    """Convert a v1 planning document into the v2 layout.

    Unknown top-level keys are carried over unchanged.
    """
    target_user = document.get("targetUser") or {}
    final_cv = document.get("finalCv") or {}
    cv_policy = document.get("cvPolicy") or {}
    if not isinstance(target_user, dict):
        target_user = {}
    if not isinstance(final_cv, dict):
        final_cv = {}
    if not isinstance(cv_policy, dict):
        cv_policy = {}

    upgraded: dict[str, Any] = {
        "schemaVersion": V2_SCHEMA_VERSION,
        "core": {
            "oneLiner": document.get("execSummary") or document.get("oneLiner") or "",
            "target": _compact({key: target_user.get(key) for key in TARGET_KEYS}),
            "cv": _compact({key: _first(final_cv.get(key), cv_policy.get(key)) for key in CV_KEYS}),
        },
        "logic": _compact({"story": document.get("diagramHints")}),
        "deliverables": {},
    }

    sections = document.get("sections")
    if sections or document.get("type") == "lp_structure":
        upgraded["deliverables"]["lp"] = _compact({
            "sections": [_upgrade_lp_section(section) for section in (sections or [])],
            "questionCoverage": document.get("questions") or [],
            "layoutHints": document.get("diagramHints"),
        })

    if document.get("bannerIdeas") or document.get("type") == "banner_structure":
        upgraded["deliverables"]["banner"] = _compact({
            "bannerIdeas": document.get("bannerIdeas") or [],
            "designNotes": document.get("designNotes"),
            "lpSplit": document.get("lpSplit"),
        })

    for key, value in document.items():
        if key not in V1_RESERVED_KEYS and value is not None:
            upgraded[key] = value

    return upgraded


def coerce_output(value: Any) -> tuple[Any, bool]:
    """Parse JSON text and upgrade v1 documents.

    Returns:
        Tuple of (normalized value, whether a v1 upgrade happened)
    """
    if isinstance(value, str):
        try:
            value = parse_llm_json(value)
        except json.JSONDecodeError:
            return value, False

    if is_v1_document(value):
        logger.debug("Upgrading v1 planning document to v2 layout")
        return upgrade_to_v2(value), True
    return value, False


def looks_like_run(value: Any) -> bool:
    """True when value is a stored run envelope rather than a bare document."""
    if not isinstance(value, dict):
        return False
    if value.get("type") == ENVELOPE_TYPE:
        return True
    return any(key in value for key in ENVELOPE_KEYS)


def coerce_run(run: Any) -> Optional[RunRecord]:
    """Return a RunRecord for run envelopes, None for bare documents."""
    if isinstance(run, RunRecord):
        return run
    if not looks_like_run(run):
        return None
    try:
        return RunRecord.from_payload(run)
    except ValidationError as e:
        logger.warning(f"Run metadata is malformed, keeping only its output: {e}")
        return RunRecord.from_payload({key: run[key] for key in OUTPUT_KEYS if key in run})


def _select_output(record: RunRecord) -> tuple[Any, str]:
    candidates = (
        (record.final_output, "final"),
        (record.parsed_output, "parsed"),
        (record.output, "raw"),
        (record.llm_raw_output, "raw"),
    )
    for value, source in candidates:
        if _is_present(value):
            return value, source
    return None, "empty"


def _build_document(value: Any, source: str) -> OutputDocument:
    if not _is_present(value):
        return OutputDocument(final_output=None, source="empty")
    normalized, upgraded = coerce_output(value)
    schema_version = None
    if isinstance(normalized, dict) and normalized.get("schemaVersion") is not None:
        schema_version = str(normalized["schemaVersion"])
    return OutputDocument(
        final_output=normalized,
        source=source,
        schema_version=schema_version,
        upgraded=upgraded,
    )


def normalize(run: Any) -> OutputDocument:
    """Normalize a run record, run envelope dict or bare document.

    Idempotent: an OutputDocument is returned unchanged, and normalizing
    a normalized document's final_output yields the same value.
    """
    if isinstance(run, OutputDocument):
        return run

    record = coerce_run(run)
    if record is None:
        return _build_document(run, "document")

    value, source = _select_output(record)
    if source == "empty":
        logger.info(f"Run {record.id or '(unnamed)'} has no output to render")
    return _build_document(value, source)

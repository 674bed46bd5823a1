"""Render pass: contract + run -> PresentationTree.

Entry order is shared with the Markdown exporter through
enumerate_entries(): main-content blocks first (or one automatic entry
when the contract has none), then regular sections, then debug sections
(raw, executionProof). Each entry renders independently, so one failing
path or strategy never hides its siblings.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from src.contracts.hashing import compute_contract_hash
from src.contracts.schemas import Block, Section, ViewContract
from src.presentation.blocks import render_block
from src.presentation.components import RenderContext
from src.presentation.fallback import auto_main_content
from src.presentation.formatting import placeholder
from src.presentation.rules import evaluate_contract
from src.presentation.schemas import PlaceholderReason, PresentationNode, PresentationTree
from src.presentation.sections import render_summary, render_section
from src.runs.normalizer import coerce_run, normalize

logger = logging.getLogger(__name__)

AUTO_ENTRY_ID = "main"
HEADER_ID = "header"
DEFAULT_TITLE = "Output"

NO_CONTRACT_DIAGNOSTIC = (
    "No view contract for this output; showing an automatic layout. "
    "Define an outputViewContract to control the presentation."
)
NO_MAIN_CONTENT_DIAGNOSTIC = (
    "The view contract has no mainContent blocks; showing an automatic layout. "
    "Add mainContent blocks to control the main view."
)


@dataclass(frozen=True)
class RenderEntry:
    """One top-level slot in the rendered output."""

    kind: str  # "block", "section" or "auto"
    entry_id: str
    label: str
    descriptor: Union[Block, Section, None] = None

    @property
    def is_debug(self) -> bool:
        return isinstance(self.descriptor, Section) and self.descriptor.is_debug


def enumerate_entries(contract: Optional[ViewContract]) -> list[RenderEntry]:
    """Ordered top-level entries for a contract (or for no contract)."""
    if contract is None:
        return [RenderEntry(kind="auto", entry_id=AUTO_ENTRY_ID, label=DEFAULT_TITLE)]

    entries = []
    if contract.has_main_content:
        for block in contract.blocks:
            entries.append(RenderEntry(kind="block", entry_id=block.id, label=block.label or block.id, descriptor=block))
    else:
        title = contract.main_content.title if contract.main_content else ""
        entries.append(RenderEntry(kind="auto", entry_id=AUTO_ENTRY_ID, label=title or DEFAULT_TITLE))

    regular = [section for section in contract.sections if not section.is_debug]
    debug = [section for section in contract.sections if section.is_debug]
    for section in regular + debug:
        entries.append(
            RenderEntry(kind="section", entry_id=section.id, label=section.label or section.id, descriptor=section)
        )
    return entries


def render_entry(entry: RenderEntry, ctx: RenderContext) -> PresentationNode:
    """Render one entry, converting any unexpected failure into a placeholder."""
    try:
        if entry.kind == "block":
            return render_block(entry.descriptor, ctx)
        if entry.kind == "section":
            return render_section(entry.descriptor, ctx)
        return auto_main_content(ctx.root, node_id=entry.entry_id, label=entry.label)
    except Exception as e:
        logger.error(f"Rendering {entry.kind} '{entry.entry_id}' failed: {e}", exc_info=True)
        return placeholder(
            entry.entry_id,
            PlaceholderReason.RENDER_FAILED,
            f"Could not render this part: {e}",
            label=entry.label,
        )


def build_context(run: Any, quality_checklist: Iterable[str] = ()) -> RenderContext:
    document = normalize(run)
    return RenderContext(
        root=document.final_output,
        run=coerce_run(run),
        quality_checklist=tuple(quality_checklist),
    )


def render_header(contract: Optional[ViewContract], ctx: RenderContext) -> Optional[PresentationNode]:
    """Render the contract summary header, or a placeholder if that fails."""
    if contract is None or contract.summary is None:
        return None
    try:
        return render_summary(HEADER_ID, contract.summary, ctx)
    except Exception as e:
        logger.error(f"Rendering contract summary failed: {e}", exc_info=True)
        return placeholder(HEADER_ID, PlaceholderReason.RENDER_FAILED, f"Could not render summary: {e}")


def render_run(
    contract: Optional[ViewContract],
    run: Any,
    quality_checklist: Iterable[str] = (),
) -> PresentationTree:
    """Render a run (record, envelope dict or bare document) through a contract.

    Args:
        contract: View contract, or None for the automatic layout
        run: RunRecord, stored run dict, OutputDocument or bare output value
        quality_checklist: Agent checklist used by checklist entries without items

    Returns:
        PresentationTree; never raises for bad data
    """
    ctx = build_context(run, quality_checklist)
    entries = enumerate_entries(contract)

    diagnostics = []
    if contract is None:
        diagnostics.append(NO_CONTRACT_DIAGNOSTIC)
        logger.info(NO_CONTRACT_DIAGNOSTIC)
    elif not contract.has_main_content:
        diagnostics.append(NO_MAIN_CONTENT_DIAGNOSTIC)
        logger.info(NO_MAIN_CONTENT_DIAGNOSTIC)

    return PresentationTree(
        title=(contract.title if contract is not None and contract.title else DEFAULT_TITLE),
        badges=list(contract.badges) if contract is not None else [],
        source="contract" if contract is not None and contract.has_main_content else "fallback",
        header=render_header(contract, ctx),
        nodes=[render_entry(entry, ctx) for entry in entries],
        violations=evaluate_contract(contract, ctx.root),
        diagnostics=diagnostics,
        contract_hash=compute_contract_hash(contract) or None,
    )

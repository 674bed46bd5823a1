"""Render API routes.

Thin host around the presentation core: look up the agent's contract,
render the run into a PresentationTree (or Markdown / HTML), and cache
trees by (contract, document) hash.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.contracts.hashing import compute_contract_hash, compute_document_version, render_cache_key
from src.contracts.registry import get_contract_registry
from src.contracts.schemas import ViewContract
from src.presentation.cache import TTLCache
from src.presentation.markdown_export import export_html, export_markdown
from src.presentation.renderer import render_run
from src.presentation.schemas import PresentationTree
from src.runs.normalizer import coerce_run, normalize
from src.runs.schemas import OutputDocument

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/render", tags=["render"])

_render_cache = TTLCache()


class RenderRequest(BaseModel):
    """A run plus either an inline contract or the agent whose contract to use."""

    run: Any = Field(description="Stored run record, run envelope or bare output document")
    agent_id: Optional[str] = Field(
        default=None,
        description="Agent whose stored contract applies; defaults to the run's agent",
    )
    contract: Optional[ViewContract] = Field(
        default=None,
        description="Inline contract; takes precedence over agent_id",
    )
    quality_checklist: Optional[list[str]] = Field(
        default=None,
        description="Overrides the agent's stored quality checklist",
    )
    include_debug: bool = Field(default=False, description="Markdown/HTML only: include raw sections")


class MarkdownResponse(BaseModel):
    markdown: str


class HtmlResponse(BaseModel):
    html: str


def get_render_cache() -> TTLCache:
    return _render_cache


def _resolve_contract(request: RenderRequest) -> tuple[Optional[ViewContract], list[str], str]:
    """Returns (contract, quality checklist, contract id for cache keys)."""
    checklist = request.quality_checklist
    if request.contract is not None:
        return request.contract, checklist or [], "inline"

    agent_id = request.agent_id
    if agent_id is None:
        record = coerce_run(request.run)
        agent_id = record.agent_id if record is not None and record.agent_id else None
    if agent_id is None:
        return None, checklist or [], "none"

    definition = get_contract_registry().get(agent_id)
    if definition is None:
        logger.info(f"No contract stored for agent '{agent_id}'; using automatic layout")
        return None, checklist or [], agent_id
    if checklist is None:
        checklist = definition.quality_checklist
    return definition.contract, checklist, agent_id


@router.post("/", response_model=PresentationTree)
async def render(request: RenderRequest):
    """Render a run into a presentation tree."""
    contract, checklist, contract_id = _resolve_contract(request)
    cache_key = render_cache_key(
        f"{contract_id}:{compute_contract_hash(contract)}",
        compute_document_version({"run": request.run, "checklist": checklist}),
    )
    cached = _render_cache.get(cache_key)
    if cached is not None:
        return cached

    tree = render_run(contract, request.run, checklist)
    _render_cache.set(cache_key, tree)
    return tree


@router.post("/markdown", response_model=MarkdownResponse)
async def render_markdown(request: RenderRequest):
    """Render a run as a Markdown report."""
    contract, checklist, _ = _resolve_contract(request)
    return MarkdownResponse(
        markdown=export_markdown(contract, request.run, checklist, include_debug=request.include_debug)
    )


@router.post("/html", response_model=HtmlResponse)
async def render_html(request: RenderRequest):
    """Render a run as an HTML fragment."""
    contract, checklist, _ = _resolve_contract(request)
    return HtmlResponse(
        html=export_html(contract, request.run, checklist, include_debug=request.include_debug)
    )


@router.post("/normalize", response_model=OutputDocument)
async def normalize_run(request: RenderRequest):
    """Show the normalized output document a render would read."""
    return normalize(request.run)

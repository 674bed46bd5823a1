"""View contract API routes.

Serves stored contracts per agent and lints candidate contracts before
they are saved.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from src.contracts.hashing import compute_contract_hash
from src.contracts.linter import lint_contract
from src.contracts.registry import get_contract_registry
from src.contracts.schemas import ContractDefinition, ContractIssue, ContractSummary, ViewContract

router = APIRouter(prefix="/contracts", tags=["contracts"])


class LintResponse(BaseModel):
    """Linter findings for one contract."""

    issues: list[ContractIssue] = Field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0
    contract_hash: str = ""


def _get_registry():
    return get_contract_registry()


@router.get("/", response_model=list[ContractSummary])
async def list_contracts():
    """List all stored contracts (summaries)."""
    return _get_registry().list_summaries()


@router.post("/lint", response_model=LintResponse)
async def lint(contract: ViewContract):
    """Lint a contract without saving it."""
    issues = lint_contract(contract)
    return LintResponse(
        issues=issues,
        error_count=sum(1 for issue in issues if issue.level == "error"),
        warning_count=sum(1 for issue in issues if issue.level == "warning"),
        contract_hash=compute_contract_hash(contract),
    )


@router.post("/reload")
async def reload_contracts():
    """Re-read every definition file from disk."""
    registry = _get_registry()
    registry.reload()
    return {"status": "reloaded", "contracts_loaded": registry.count()}


@router.get("/{agent_id}", response_model=ContractDefinition)
async def get_contract(agent_id: str):
    """Get the full contract definition for an agent."""
    definition = _get_registry().get(agent_id)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"No view contract for agent '{agent_id}'")
    return definition


@router.put("/{agent_id}", response_model=ContractDefinition)
async def save_contract(agent_id: str, body: ContractDefinition):
    """Create or replace an agent's contract definition."""
    if body.agent_id != agent_id:
        raise HTTPException(status_code=400, detail="agent_id in body must match URL")
    if not _get_registry().save(body):
        raise HTTPException(status_code=500, detail="Failed to save contract")
    return body


@router.delete("/{agent_id}")
async def delete_contract(agent_id: str):
    """Delete an agent's contract definition."""
    if not _get_registry().delete(agent_id):
        raise HTTPException(status_code=404, detail=f"No view contract for agent '{agent_id}'")
    return {"status": "deleted", "agent_id": agent_id}

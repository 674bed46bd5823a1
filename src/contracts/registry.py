"""Contract registry: loads and manages view contracts per agent.

Follows the same singleton registry pattern as the other registries:
lazy-load from definition files, CRUD operations, global instance.
Definitions are JSON or YAML files named {agent_id}.json / .yaml under
definitions/, or under CONTRACT_DEFINITIONS_DIR when that is set.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .hashing import ContractHasher, compute_contract_hash, contract_needs_upgrade
from .schemas import ContractDefinition, ContractSummary, ViewContract

logger = logging.getLogger(__name__)

DEFINITION_PATTERNS = ("*.json", "*.yaml", "*.yml")


def _default_definitions_dir() -> Path:
    override = os.environ.get("CONTRACT_DEFINITIONS_DIR")
    if override:
        return Path(override)
    return Path(__file__).parent / "definitions"


def _read_definition_file(path: Path) -> Optional[dict]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


class ContractRegistry:
    """Registry for agent view contracts.

    Each file holds one ContractDefinition: the agent id, its quality
    checklist and its outputViewContract.
    """

    def __init__(self, definitions_dir: Optional[Path] = None, hasher: Optional[ContractHasher] = None):
        self.definitions_dir = definitions_dir or _default_definitions_dir()
        self.hasher = hasher or ContractHasher()
        self._definitions: dict[str, ContractDefinition] = {}
        self._loaded = False

    def load(self) -> None:
        """Load all contract definitions from disk."""
        if self._loaded:
            return

        if not self.definitions_dir.exists():
            logger.warning(f"Contract definitions directory not found: {self.definitions_dir}")
            self._loaded = True
            return

        files = sorted(
            path for pattern in DEFINITION_PATTERNS for path in self.definitions_dir.glob(pattern)
        )
        for definition_file in files:
            try:
                data = _read_definition_file(definition_file)
                if data is None:
                    continue
                definition = ContractDefinition.model_validate(data)
                self._definitions[definition.agent_id] = definition
                logger.debug(f"Loaded contract: {definition.agent_id}")
            except Exception as e:
                logger.error(f"Failed to load contract {definition_file}: {e}")

        logger.info(f"Loaded {len(self._definitions)} contracts from {self.definitions_dir}")
        self._loaded = True

    def get(self, agent_id: str) -> Optional[ContractDefinition]:
        """Get a contract definition by agent id."""
        self.load()
        return self._definitions.get(agent_id)

    def get_contract(self, agent_id: str) -> Optional[ViewContract]:
        definition = self.get(agent_id)
        return definition.contract if definition else None

    def list_all(self) -> list[ContractDefinition]:
        self.load()
        return list(self._definitions.values())

    def list_summaries(self) -> list[ContractSummary]:
        """List all contracts (lightweight)."""
        self.load()
        return [
            ContractSummary(
                agent_id=definition.agent_id,
                name=definition.name or definition.agent_id,
                title=definition.contract.title,
                version=definition.contract.version,
                managed_by=definition.contract.meta.managed_by if definition.contract.meta else "system",
                block_count=len(definition.contract.blocks),
                section_count=len(definition.contract.sections),
                contract_hash=self.hasher.hash_for(definition.agent_id, definition.contract),
            )
            for definition in self._definitions.values()
        ]

    def get_keys(self) -> list[str]:
        """Get all agent ids with contracts."""
        self.load()
        return sorted(self._definitions.keys())

    def count(self) -> int:
        self.load()
        return len(self._definitions)

    def save(self, definition: ContractDefinition) -> bool:
        """Save a definition to {agent_id}.yaml.

        A definition whose contract hash and version match the stored
        one is not rewritten.
        """
        self.load()
        agent_id = definition.agent_id

        existing = self._definitions.get(agent_id)
        if (
            existing is not None
            and existing.contract.version == definition.contract.version
            and compute_contract_hash(existing.contract) == compute_contract_hash(definition.contract)
            and existing.quality_checklist == definition.quality_checklist
        ):
            logger.debug(f"Contract unchanged, skipping save: {agent_id}")
            return True

        yaml_file = self.definitions_dir / f"{agent_id}.yaml"
        try:
            self.definitions_dir.mkdir(parents=True, exist_ok=True)
            data = definition.model_dump(mode="json", exclude_none=True)
            with open(yaml_file, "w", encoding="utf-8") as f:
                yaml.dump(
                    data,
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )

            self._definitions[agent_id] = definition
            logger.info(f"Saved contract: {agent_id}")
            return True

        except Exception as e:
            logger.error(f"Failed to save contract {agent_id}: {e}")
            return False

    def upgrade_from_seed(self, seed: ContractDefinition) -> bool:
        """Replace the stored contract with seed when it is outdated.

        Returns:
            True if the seed was saved, False if the stored contract was kept
        """
        current = self.get_contract(seed.agent_id)
        if not contract_needs_upgrade(current, seed.contract):
            return False
        logger.info(f"Upgrading contract {seed.agent_id} to version {seed.contract.version}")
        return self.save(seed)

    def delete(self, agent_id: str) -> bool:
        """Delete a contract definition and any file that holds it."""
        self.load()

        if agent_id not in self._definitions:
            logger.warning(f"Contract not found for deletion: {agent_id}")
            return False

        try:
            for suffix in (".yaml", ".yml", ".json"):
                definition_file = self.definitions_dir / f"{agent_id}{suffix}"
                if definition_file.exists():
                    definition_file.unlink()

            del self._definitions[agent_id]
            logger.info(f"Deleted contract: {agent_id}")
            return True

        except Exception as e:
            logger.error(f"Failed to delete contract {agent_id}: {e}")
            return False

    def reload(self) -> None:
        """Force reload all definitions from disk."""
        self._loaded = False
        self._definitions.clear()
        self.hasher.clear()
        self.load()


# Global registry instance
_registry: Optional[ContractRegistry] = None


def get_contract_registry() -> ContractRegistry:
    """Get the global contract registry instance."""
    global _registry
    if _registry is None:
        _registry = ContractRegistry()
    return _registry

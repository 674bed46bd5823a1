"""Stable hashes for contracts and documents, and the seed-upgrade decision.

Hashes are sha256 over canonical JSON (sorted keys, no whitespace), so
key order in stored definitions never changes the hash.
"""

import hashlib
import json
import logging
from typing import Any, Optional

from src.contracts.schemas import ViewContract
from src.presentation.cache import TTLCache

logger = logging.getLogger(__name__)

USER_MANAGED = "user"


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_contract_hash(contract: Optional[ViewContract]) -> str:
    """Hash the presentation-relevant content of a contract.

    meta (timestamps, ownership) is excluded so re-saving an unchanged
    contract does not change its hash.
    """
    if contract is None:
        return ""
    payload = contract.model_dump(exclude={"meta"}, exclude_none=True)
    return _sha256(canonical_json(payload))


def compute_document_version(document: Any) -> str:
    """Hash of a run payload or output document, used as a cache key part."""
    if hasattr(document, "model_dump"):
        document = document.model_dump()
    return _sha256(canonical_json(document))


def render_cache_key(contract_id: str, document_version: str) -> str:
    return _sha256(f"{contract_id}:{document_version}")


def _version_tuple(version: Optional[str]) -> tuple:
    parts = []
    for part in (version or "").split("."):
        parts.append(int(part) if part.isdigit() else 0)
    return tuple(parts)


class ContractHasher:
    """Memoizes contract hashes by (agent id, version, updated_at).

    The cache is injected so callers control its lifetime and tests get
    a fresh one.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        self._cache = cache if cache is not None else TTLCache()

    def hash_for(self, agent_id: str, contract: Optional[ViewContract]) -> str:
        if contract is None:
            return ""
        updated_at = contract.meta.updated_at if contract.meta else None
        key = f"{agent_id}:{contract.version}:{updated_at or ''}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        value = compute_contract_hash(contract)
        self._cache.set(key, value)
        return value

    def clear(self) -> None:
        self._cache.clear()


def contract_needs_upgrade(current: Optional[ViewContract], seed: ViewContract) -> bool:
    """Decide whether a stored contract should be replaced by its seed.

    User-managed contracts are never upgraded. A contract already at the
    seed's version is never upgraded either. Otherwise a missing
    contract, a missing or older version, empty sections or a hash
    mismatch triggers the upgrade.
    """
    if current is None:
        return True
    if current.meta is not None and current.meta.managed_by == USER_MANAGED:
        return False
    if current.version and current.version == seed.version:
        return False
    if not current.version or _version_tuple(current.version) < _version_tuple(seed.version):
        return True
    if not current.sections:
        return True
    return compute_contract_hash(current) != compute_contract_hash(seed)

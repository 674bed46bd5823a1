import pytest

from src.contracts.hashing import (
    ContractHasher,
    compute_contract_hash,
    compute_document_version,
    contract_needs_upgrade,
    render_cache_key,
)
from src.contracts.registry import ContractRegistry
from src.contracts.schemas import ContractDefinition, ViewContract
from src.presentation.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _contract(version="2", managed_by="system", sections=None, title="T") -> ViewContract:
    return ViewContract.model_validate({
        "version": version,
        "meta": {"version": version, "managedBy": managed_by},
        "title": title,
        "sections": sections if sections is not None else [{"id": "raw", "type": "raw", "raw": {"tabs": ["finalOutput"]}}],
    })


def test_shipped_definitions_load(registry):
    assert registry.get_keys() == ["generic-json", "lp-agent-default"]
    definition = registry.get("lp-agent-default")
    assert definition.contract.version == "2"
    assert len(definition.contract.blocks) == 8
    assert definition.quality_checklist[0].startswith("At least 16")


def test_summaries_carry_counts_and_hash(registry):
    summaries = {summary.agent_id: summary for summary in registry.list_summaries()}
    lp = summaries["lp-agent-default"]
    assert lp.block_count == 8
    assert lp.section_count == 7
    assert lp.contract_hash == compute_contract_hash(registry.get_contract("lp-agent-default"))


def test_broken_file_is_skipped(tmp_path):
    (tmp_path / "broken.yaml").write_text("agentId: [unclosed", encoding="utf-8")
    (tmp_path / "ok.json").write_text('{"agentId": "ok", "outputViewContract": {"title": "Ok"}}', encoding="utf-8")
    registry = ContractRegistry(definitions_dir=tmp_path)
    assert registry.get_keys() == ["ok"]


def test_missing_directory_loads_nothing(tmp_path):
    assert ContractRegistry(definitions_dir=tmp_path / "absent").count() == 0


def test_save_round_trips_and_skips_unchanged(tmp_path):
    registry = ContractRegistry(definitions_dir=tmp_path)
    definition = ContractDefinition(agent_id="a1", contract=_contract())
    assert registry.save(definition)
    saved = tmp_path / "a1.yaml"
    assert saved.exists()

    saved.write_text(saved.read_text(encoding="utf-8") + "\n", encoding="utf-8")
    touched = saved.stat().st_mtime_ns
    assert registry.save(ContractDefinition(agent_id="a1", contract=_contract()))
    assert saved.stat().st_mtime_ns == touched

    registry.reload()
    assert registry.get_contract("a1").title == "T"


def test_delete(registry, tmp_path):
    assert registry.delete("generic-json")
    assert not (tmp_path / "generic-json.json").exists()
    assert registry.get("generic-json") is None
    assert not registry.delete("generic-json")


def test_upgrade_from_seed_respects_user_managed(tmp_path):
    registry = ContractRegistry(definitions_dir=tmp_path)
    registry.save(ContractDefinition(agent_id="a1", contract=_contract(version="1", managed_by="user", title="Mine")))

    assert not registry.upgrade_from_seed(ContractDefinition(agent_id="a1", contract=_contract(version="2")))
    assert registry.get_contract("a1").title == "Mine"


def test_upgrade_from_seed_replaces_older_system_contract(tmp_path):
    registry = ContractRegistry(definitions_dir=tmp_path)
    registry.save(ContractDefinition(agent_id="a1", contract=_contract(version="1", title="Old")))

    assert registry.upgrade_from_seed(ContractDefinition(agent_id="a1", contract=_contract(version="2", title="New")))
    assert registry.get_contract("a1").title == "New"


@pytest.mark.parametrize(
    "current, expected",
    [
        (None, True),
        (_contract(version="1", managed_by="user"), False),
        (_contract(version="2", title="Edited"), False),
        (_contract(version="1"), True),
        (_contract(version=""), True),
        (_contract(version="3", sections=[]), True),
        (_contract(version="3", title="Other"), True),
    ],
)
def test_contract_needs_upgrade(current, expected):
    assert contract_needs_upgrade(current, _contract(version="2")) is expected


def test_contract_hash_ignores_key_order_and_meta():
    first = ViewContract.model_validate({"title": "A", "badges": [{"label": "x", "tone": "red"}]})
    second = ViewContract.model_validate({"badges": [{"tone": "red", "label": "x"}], "title": "A"})
    assert compute_contract_hash(first) == compute_contract_hash(second)
    assert compute_contract_hash(_contract(managed_by="user")) == compute_contract_hash(_contract())
    assert compute_contract_hash(_contract(title="B")) != compute_contract_hash(_contract())
    assert compute_contract_hash(None) == ""


def test_document_version_and_cache_key_are_stable():
    assert compute_document_version({"a": 1, "b": 2}) == compute_document_version({"b": 2, "a": 1})
    assert render_cache_key("h", "v1") != render_cache_key("h", "v2")


def test_hasher_memoizes_per_version():
    cache = TTLCache(ttl=60)
    hasher = ContractHasher(cache)
    value = hasher.hash_for("a1", _contract())
    assert value == compute_contract_hash(_contract())
    assert len(cache) == 1
    hasher.hash_for("a1", _contract())
    assert len(cache) == 1
    hasher.clear()
    assert len(cache) == 0


def test_ttl_cache_expires_with_clock():
    clock = FakeClock()
    cache = TTLCache(ttl=10, clock=clock)
    cache.set("k", "v")
    clock.now = 10
    assert cache.get("k") == "v"
    clock.now = 10.5
    assert cache.get("k") is None
    assert "k" not in cache


def test_ttl_cache_evicts_oldest_when_full():
    cache = TTLCache(ttl=60, max_entries=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert len(cache) == 2
    assert "a" not in cache
    assert cache.get("c") == 3

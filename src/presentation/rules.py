"""Rule evaluation: advisory length/presence checks over the output.

Violations are an overlay on the rendered tree. They never stop or
alter rendering. Paths that do not resolve (and non-array values for
the length rules) produce no violation.
"""

import logging
from typing import Any, Optional

from src.contracts.schemas import Rule, ViewContract
from src.presentation.schemas import RuleViolation
from src.resolver.paths import resolve
from src.runs.schemas import OutputDocument

logger = logging.getLogger(__name__)


def _length_violation(rule: Rule, length: int) -> Optional[str]:
    if rule.kind == "minLength":
        if rule.min is not None and length < rule.min:
            return f"{rule.path} has {length} items; at least {rule.min} expected"
    elif rule.kind == "maxLength":
        if rule.max is not None and length > rule.max:
            return f"{rule.path} has {length} items; at most {rule.max} expected"
    elif rule.kind == "rangeLength":
        too_short = rule.min is not None and length < rule.min
        too_long = rule.max is not None and length > rule.max
        if too_short or too_long:
            low = rule.min if rule.min is not None else 0
            high = rule.max if rule.max is not None else "any"
            return f"{rule.path} has {length} items; {low}-{high} expected"
    return None


def _evaluate_rule(rule: Rule, root: Any, section_id: Optional[str]) -> Optional[RuleViolation]:
    result = resolve(root, rule.path, section_id)

    if rule.kind == "required":
        if result.ok and result.value not in (None, "", [], {}):
            return None
        default_message = f"{rule.path} is required but missing"
    elif rule.kind in ("minLength", "maxLength", "rangeLength"):
        if not result.ok or not isinstance(result.value, list):
            return None
        default_message = _length_violation(rule, len(result.value))
        if default_message is None:
            return None
    else:
        logger.debug(f"Skipping unknown rule kind '{rule.kind}' on {rule.path}")
        return None

    return RuleViolation(
        level=rule.level,
        message=rule.message or default_message,
        rule_kind=rule.kind,
        path=rule.path,
        section_id=section_id,
    )


def evaluate(rules: list[Rule], data: Any, section_id: Optional[str] = None) -> list[RuleViolation]:
    """Evaluate rules against a document (OutputDocument or bare root value)."""
    root = data.final_output if isinstance(data, OutputDocument) else data
    violations = []
    for rule in rules:
        violation = _evaluate_rule(rule, root, section_id)
        if violation is not None:
            violations.append(violation)
    return violations


def evaluate_contract(contract: Optional[ViewContract], data: Any) -> list[RuleViolation]:
    """All violations for every section of a contract, tagged with section ids."""
    if contract is None:
        return []
    violations = []
    for section in contract.sections:
        violations.extend(evaluate(section.rules, data, section.id))
    return violations

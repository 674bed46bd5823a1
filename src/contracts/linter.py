"""Static checks for view contracts.

Rendering tolerates every problem reported here. The linter exists so
contract authors see them before an analyst sees a placeholder.
"""

import re
from collections import Counter
from typing import Iterator, Optional

from src.resolver.paths import parse_path

from .schemas import (
    BLOCK_RENDERERS,
    RULE_KINDS,
    SECTION_TYPES,
    ContractIssue,
    FieldSpec,
    Rule,
    ViewContract,
)

ERROR = "error"
WARNING = "warning"

SECTION_SUB_CONFIGS = {
    "summary": "summary",
    "table": "table",
    "cards": "cards",
    "checklist": "checklist",
    "raw": "raw",
}
BLOCK_SUB_CONFIGS = {"cards": "cards", "table": "table"}
TEMPLATE_TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")


def _check_path(path: Optional[str], location: str) -> Iterator[ContractIssue]:
    if path is None:
        return
    if not path.strip():
        yield ContractIssue(level=WARNING, message="Empty path resolves to the whole document", location=location)
        return
    expression = parse_path(path)
    if expression.has_index:
        yield ContractIssue(
            level=ERROR,
            message=f"Bracket indexing is not supported in paths: {path}",
            location=location,
        )
    elif any(key == "" for key in expression.keys):
        yield ContractIssue(level=ERROR, message=f"Path has an empty segment: {path}", location=location)


def _check_fields(fields: list[FieldSpec], location: str) -> Iterator[ContractIssue]:
    for index, field in enumerate(fields):
        field_location = f"{location}[{index}]"
        if field.path and field.value_path and field.path != field.value_path:
            yield ContractIssue(
                level=WARNING,
                message=f"Both path and valuePath are set; path '{field.path}' wins",
                location=field_location,
            )
        if not field.effective_path and not field.value_template:
            yield ContractIssue(level=WARNING, message="Field has no path", location=field_location)
        yield from _check_path(field.path, f"{field_location}.path")
        if field.value_path and field.value_path != field.path:
            yield from _check_path(field.value_path, f"{field_location}.valuePath")


def _check_rule(rule: Rule, location: str) -> Iterator[ContractIssue]:
    if rule.kind not in RULE_KINDS:
        yield ContractIssue(level=ERROR, message=f"Unknown rule kind: {rule.kind}", location=location)
        return
    if rule.kind == "minLength" and rule.min is None:
        yield ContractIssue(level=WARNING, message="minLength rule has no min", location=location)
    if rule.kind == "maxLength" and rule.max is None:
        yield ContractIssue(level=WARNING, message="maxLength rule has no max", location=location)
    if rule.kind == "rangeLength":
        if rule.min is None and rule.max is None:
            yield ContractIssue(level=WARNING, message="rangeLength rule has no bounds", location=location)
        elif rule.min is not None and rule.max is not None and rule.min > rule.max:
            yield ContractIssue(
                level=ERROR,
                message=f"rangeLength min {rule.min} is greater than max {rule.max}",
                location=location,
            )
    yield from _check_path(rule.path, f"{location}.path")


def _check_template(template: Optional[str], location: str) -> Iterator[ContractIssue]:
    if not template:
        return
    for token in TEMPLATE_TOKEN_RE.findall(template):
        if "[" in token and "]" in token:
            yield ContractIssue(
                level=WARNING,
                message=f"Array element references expand to nothing: {{{{{token.strip()}}}}}",
                location=location,
            )


def lint_contract(contract: ViewContract) -> list[ContractIssue]:
    """Return every issue found in a contract, errors and warnings together."""
    issues: list[ContractIssue] = []

    if not contract.has_main_content:
        issues.append(ContractIssue(
            level=WARNING,
            message="No mainContent blocks; the automatic layout will be used",
            location="mainContent",
        ))

    ids = [block.id for block in contract.blocks] + [section.id for section in contract.sections]
    for duplicate, count in Counter(ids).items():
        if count > 1:
            issues.append(ContractIssue(
                level=ERROR,
                message=f"Id '{duplicate}' is used {count} times",
                location="ids",
            ))

    issues.extend(_check_path(contract.primary_key_path, "primaryKeyPath"))
    if contract.summary is not None:
        issues.extend(_check_path(contract.summary.title_path, "summary.titlePath"))
        issues.extend(_check_template(contract.summary.subtitle_template, "summary.subtitleTemplate"))
        issues.extend(_check_fields(contract.summary.items, "summary.items"))

    for index, block in enumerate(contract.blocks):
        location = f"mainContent.blocks[{index}]"
        if block.renderer not in BLOCK_RENDERERS:
            issues.append(ContractIssue(level=ERROR, message=f"Unknown renderer: {block.renderer}", location=location))
        sub_config = BLOCK_SUB_CONFIGS.get(block.renderer)
        if sub_config and getattr(block, sub_config) is None:
            issues.append(ContractIssue(
                level=ERROR,
                message=f"{block.renderer} block is missing its '{sub_config}' definition",
                location=location,
            ))
        if block.renderer == "analysisHighlights" and not block.fields:
            issues.append(ContractIssue(level=ERROR, message="analysisHighlights block has no fields", location=location))
        if block.renderer == "copyBlocks" and block.template is None and block.path is None:
            issues.append(ContractIssue(level=WARNING, message="copyBlocks block has no template or path", location=location))
        issues.extend(_check_path(block.path, f"{location}.path"))
        if block.fields:
            issues.extend(_check_fields(block.fields, f"{location}.fields"))
        if block.cards is not None:
            issues.extend(_check_path(block.cards.items_path, f"{location}.cards.itemsPath"))
            issues.extend(_check_fields(block.cards.fields, f"{location}.cards.fields"))
        if block.table is not None:
            issues.extend(_check_path(block.table.rows_path, f"{location}.table.rowsPath"))
        if block.template is not None:
            issues.extend(_check_template(block.template.value, f"{location}.template"))

    for index, section in enumerate(contract.sections):
        location = f"sections[{index}]"
        if section.type not in SECTION_TYPES:
            issues.append(ContractIssue(level=ERROR, message=f"Unknown section type: {section.type}", location=location))
        sub_config = SECTION_SUB_CONFIGS.get(section.type)
        if sub_config and getattr(section, sub_config) is None:
            issues.append(ContractIssue(
                level=ERROR,
                message=f"{section.type} section is missing its '{sub_config}' definition",
                location=location,
            ))
        issues.extend(_check_path(section.path, f"{location}.path"))
        if section.cards is not None:
            issues.extend(_check_path(section.cards.items_path, f"{location}.cards.itemsPath"))
            issues.extend(_check_fields(section.cards.fields, f"{location}.cards.fields"))
        if section.table is not None:
            issues.extend(_check_path(section.table.rows_path, f"{location}.table.rowsPath"))
        if section.summary is not None:
            issues.extend(_check_fields(section.summary.items, f"{location}.summary.items"))
            issues.extend(_check_template(section.summary.subtitle_template, f"{location}.summary.subtitleTemplate"))
        for rule_index, rule in enumerate(section.rules):
            issues.extend(_check_rule(rule, f"{location}.rules[{rule_index}]"))

    return issues

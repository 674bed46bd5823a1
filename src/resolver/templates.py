"""Mustache-style template expansion over a JSON document.

Supported syntax:
    {{path}}                    scalar substitution
    {{path || "fallback"}}      first non-empty alternative wins
    {{#each path}}...{{/each}}  repeat the body once per array element,
                                with paths inside resolved per element

Unresolvable tokens and tokens naming an object or array expand to the
empty string. Expansion never raises.
"""

import re
from typing import Any

from src.resolver.paths import parse_path, resolve

TOKEN_RE = re.compile(r"\{\{([^{}#/][^{}]*)\}\}")
EACH_RE = re.compile(r"\{\{#each\s+([^}]+)\}\}(.*?)\{\{/each\}\}", re.DOTALL)
THIS_TOKENS = ("this", ".")
MAX_INLINE_DEPTH = 3
ELLIPSIS = "…"


def format_scalar(value: Any) -> str:
    """Render a scalar the way a JSON document would spell it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def inline_text(value: Any, depth: int = 0) -> str:
    """Flatten any JSON value onto one line without JSON punctuation.

    Containers nested deeper than MAX_INLINE_DEPTH collapse to an ellipsis.
    """
    if isinstance(value, (list, dict)) and depth >= MAX_INLINE_DEPTH:
        return ELLIPSIS
    if isinstance(value, list):
        return ", ".join(text for text in (inline_text(item, depth + 1) for item in value) if text)
    if isinstance(value, dict):
        return "; ".join(f"{key}: {inline_text(item, depth + 1)}" for key, item in value.items())
    return format_scalar(value)


def _substitute(value: Any) -> str:
    if isinstance(value, (list, dict)):
        return ""
    return format_scalar(value)


def _expand_alternative(alternative: str, data: Any) -> str:
    alternative = alternative.strip()
    if len(alternative) >= 2 and alternative[0] == alternative[-1] and alternative[0] in "\"'":
        return alternative[1:-1]
    if alternative in THIS_TOKENS:
        return _substitute(data)

    expression = parse_path(alternative)
    if expression.wants_length:
        result = resolve(data, expression.without_length())
        if result.ok and isinstance(result.value, list):
            return str(len(result.value))
        return "0"
    if expression.has_index:
        return ""
    result = resolve(data, expression)
    if not result.ok:
        return ""
    return _substitute(result.value)


def _expand_token(token: str, data: Any) -> str:
    for alternative in token.split("||"):
        text = _expand_alternative(alternative, data)
        if text:
            return text
    return ""


def _expand_tokens(template: str, data: Any) -> str:
    return TOKEN_RE.sub(lambda match: _expand_token(match.group(1), data), template)


def expand(template: str, data: Any) -> str:
    """Expand every {{...}} token in template against data.

    Each-blocks are expanded per element and their output is not scanned
    again, so values containing braces are emitted verbatim.
    """
    if not template:
        return ""

    parts = []
    cursor = 0
    for match in EACH_RE.finditer(template):
        parts.append(_expand_tokens(template[cursor:match.start()], data))
        items = resolve(data, match.group(1).strip())
        if items.ok and isinstance(items.value, list):
            body = match.group(2)
            for item in items.value:
                parts.append(_expand_tokens(body, item))
        cursor = match.end()
    parts.append(_expand_tokens(template[cursor:], data))
    return "".join(parts)

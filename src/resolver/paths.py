"""Path expressions: tokenize once, resolve against any JSON value.

Grammar:
    path := ["$."] ["finalOutput."] key ("." key)*

There is no bracket syntax. Array iteration belongs to the block
strategies (cards, tables), not to the path grammar. When the walk
reaches an array, a non-negative integer key selects an element and the
key "length" yields the array length.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

JSONPATH_PREFIX = "$."
LEGACY_ROOT_KEY = "finalOutput"
LENGTH_KEY = "length"


class ResolutionResult(BaseModel):
    """Outcome of resolving one path against one value.

    error set implies value is None. The two are never both meaningful.
    """

    value: Any = None
    error: Optional[str] = Field(
        default=None,
        description="Human-readable reason the path did not resolve",
    )

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PathExpression:
    """Tokenized path: the original text plus its flat key sequence."""

    raw: str
    keys: tuple[str, ...]
    legacy_root: bool = False

    @property
    def wants_length(self) -> bool:
        """True when the expression ends in a `.length` suffix."""
        # A bare `length` is an ordinary key
        return len(self.keys) > 1 and self.keys[-1] == LENGTH_KEY

    @property
    def has_index(self) -> bool:
        """True when the expression uses bracket indexing (unsupported)."""
        return "[" in self.raw and "]" in self.raw

    @property
    def is_absolute(self) -> bool:
        return self.raw.strip().startswith("$")

    def without_length(self) -> "PathExpression":
        if not self.wants_length:
            return self
        raw = self.raw.strip()
        return PathExpression(
            raw=raw[: -(len(LENGTH_KEY) + 1)],
            keys=self.keys[:-1],
            legacy_root=self.legacy_root,
        )


def parse_path(path: str) -> PathExpression:
    """Tokenize a path string into a PathExpression.

    Strips the JSONPath `$.` prefix and the legacy `finalOutput.` prefix.
    A bare `$` addresses the root.
    """
    body = path.strip()
    if body == "$":
        return PathExpression(raw=path, keys=())
    if body.startswith(JSONPATH_PREFIX):
        body = body[len(JSONPATH_PREFIX):]

    legacy_root = False
    if body == LEGACY_ROOT_KEY:
        return PathExpression(raw=path, keys=(), legacy_root=True)
    if body.startswith(LEGACY_ROOT_KEY + "."):
        legacy_root = True
        body = body[len(LEGACY_ROOT_KEY) + 1:]

    keys = tuple(body.split(".")) if body else ()
    return PathExpression(raw=path, keys=keys, legacy_root=legacy_root)


def _descend(current: Any, key: str) -> tuple[bool, Any]:
    """Take one step down the object graph. Returns (found, value)."""
    if isinstance(current, dict):
        if key in current:
            return True, current[key]
        return False, None
    if isinstance(current, (list, tuple)):
        if key == LENGTH_KEY:
            return True, len(current)
        if key.isdigit():
            index = int(key)
            if index < len(current):
                return True, current[index]
    return False, None


def _not_found(path: str, context_id: Optional[str]) -> ResolutionResult:
    error = f"path {path} not found (section {context_id or 'unknown'})"
    logger.debug(error)
    return ResolutionResult(value=None, error=error)


def resolve_expression(
    root: Any,
    expression: PathExpression,
    context_id: Optional[str] = None,
) -> ResolutionResult:
    """Walk an already-tokenized expression against root."""
    keys = expression.keys
    # Documents stored before normalization still carry the envelope key
    if expression.legacy_root and isinstance(root, dict) and LEGACY_ROOT_KEY in root:
        keys = (LEGACY_ROOT_KEY,) + keys

    current = root
    for key in keys:
        found, current = _descend(current, key)
        if not found:
            return _not_found(expression.raw, context_id)
    return ResolutionResult(value=current)


def resolve(
    root: Any,
    path: Union[str, PathExpression, None],
    context_id: Optional[str] = None,
) -> ResolutionResult:
    """Resolve a path against root without ever raising.

    Args:
        root: Any JSON-like value (dict, list, scalar or None)
        path: Path string, pre-tokenized PathExpression, or None for root
        context_id: Section/block id quoted in the error message

    Returns:
        ResolutionResult with either value or error set
    """
    if path is None or path == "":
        return ResolutionResult(value=root)
    if isinstance(path, PathExpression):
        return resolve_expression(root, path, context_id)
    if not isinstance(path, str):
        return _not_found(repr(path), context_id)
    return resolve_expression(root, parse_path(path), context_id)

import pytest

from src.resolver.paths import PathExpression, parse_path, resolve

DOC = {"core": {"oneLiner": "hello", "target": {"situation": "busy"}}, "items": [{"name": "a"}, {"name": "b"}]}


@pytest.mark.parametrize("path", ["core.oneLiner", "$.core.oneLiner", "finalOutput.core.oneLiner", "$.finalOutput.core.oneLiner"])
def test_prefixes_do_not_change_result(path):
    result = resolve(DOC, path)
    assert result.ok
    assert result.value == "hello"


def test_none_or_empty_path_returns_root():
    assert resolve(DOC, None).value is DOC
    assert resolve(DOC, "").value is DOC
    assert resolve(DOC, "$").value is DOC


def test_bare_legacy_root_returns_root():
    assert resolve(DOC, "finalOutput").value is DOC


def test_missing_first_segment_reports_path_and_section():
    result = resolve(DOC, "missing.key", "summary")
    assert not result.ok
    assert result.value is None
    assert result.error == "path missing.key not found (section summary)"


def test_missing_context_id_is_reported_as_unknown():
    assert resolve(DOC, "nope").error == "path nope not found (section unknown)"


def test_descending_through_scalar_fails():
    result = resolve(DOC, "core.oneLiner.more")
    assert not result.ok


def test_array_index_and_length():
    assert resolve(DOC, "items.1.name").value == "b"
    assert resolve(DOC, "items.length").value == 2
    assert not resolve(DOC, "items.5").ok


def test_legacy_root_key_is_walked_when_present():
    stored = {"finalOutput": {"x": 1}}
    assert resolve(stored, "finalOutput.x").value == 1
    assert resolve({"x": 1}, "finalOutput.x").value == 1


@pytest.mark.parametrize("root", [None, 5, "text", [], [1, 2], {}, True])
def test_never_raises_on_any_root(root):
    result = resolve(root, "a.b.c", "s")
    assert not result.ok
    assert result.value is None


def test_non_string_path_is_an_error_not_an_exception():
    result = resolve(DOC, 42)
    assert not result.ok


def test_parse_path_tokenizes_once():
    expression = parse_path("$.finalOutput.items[0].name")
    assert isinstance(expression, PathExpression)
    assert expression.legacy_root
    assert expression.has_index
    assert expression.is_absolute

    counted = parse_path("items.length")
    assert counted.wants_length
    assert counted.without_length().keys == ("items",)


def test_bracket_paths_do_not_resolve():
    assert not resolve(DOC, "items[0].name").ok


def test_pre_tokenized_expression_resolves_like_string():
    expression = parse_path("core.target.situation")
    assert resolve(DOC, expression).value == resolve(DOC, "core.target.situation").value == "busy"


def test_bare_length_is_not_a_length_suffix():
    assert not parse_path("length").wants_length
    assert parse_path("items.length").wants_length
    assert resolve({"length": 5}, "length").value == 5

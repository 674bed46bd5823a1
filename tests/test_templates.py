from src.resolver.templates import expand, format_scalar, inline_text

DOC = {
    "title": "Plan",
    "count": 3.0,
    "live": True,
    "items": [{"name": "a", "hint": "A!"}, {"name": "b"}],
    "meta": {"owner": "x"},
}


def test_scalar_substitution():
    assert expand("{{title}} v{{count}} live={{live}}", DOC) == "Plan v3 live=true"


def test_length_suffix_counts_arrays():
    assert expand("{{items.length}} items", DOC) == "2 items"
    assert expand("{{$.finalOutput.items.length}}", DOC) == "2"


def test_length_of_missing_or_non_array_is_zero():
    assert expand("{{missing.length}}", DOC) == "0"
    assert expand("{{title.length}}", DOC) == "0"


def test_bracket_references_are_suppressed():
    assert expand("first: {{items[0].name}}", DOC) == "first: "


def test_objects_arrays_and_missing_expand_to_empty():
    assert expand("[{{meta}}][{{items}}][{{nope}}]", DOC) == "[][][]"


def test_alternatives_take_first_non_empty():
    assert expand('{{nope || title}}', DOC) == "Plan"
    assert expand('{{nope || other || "fallback"}}', DOC) == "fallback"


def test_each_block_repeats_per_element():
    template = "{{#each items}}- {{name}}: {{hint || \"none\"}}\n{{/each}}"
    assert expand(template, DOC) == "- a: A!\n- b: none\n"


def test_each_over_non_array_is_empty():
    assert expand("{{#each meta}}x{{/each}}done", DOC) == "done"


def test_never_raises_on_odd_input():
    assert expand("{{a.b}}", None) == ""
    assert expand("", DOC) == ""
    assert expand("no tokens", 42) == "no tokens"


def test_format_scalar_uses_json_spelling():
    assert format_scalar(False) == "false"
    assert format_scalar(2.0) == "2"
    assert format_scalar(2.5) == "2.5"
    assert format_scalar(None) == ""


def test_inline_text_flattens_without_json_punctuation():
    assert inline_text(["a", 1, None]) == "a, 1"
    assert inline_text({"k": ["x", "y"]}) == "k: x, y"


def test_inline_text_collapses_deep_containers():
    assert inline_text({"a": {"b": {"c": {"d": 1}}}}) == "a: b: c: …"
    assert inline_text([[["x"]]]) == "x"


def test_bare_length_is_an_ordinary_key():
    assert expand("{{length}}", {"length": 5}) == "5"

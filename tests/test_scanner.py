from flowcatalog.extraction.scanner import (
    NOT_FOUND,
    extract_balanced,
    find_matching_bracket,
    split_top_level_objects,
)


def test_find_matching_bracket_nested():
    text = "[1, [2, 3], 4]"
    assert find_matching_bracket(text, 1, "[", "]") == 13


def test_brackets_inside_strings_are_ignored():
    text = "{a: '}', b: \"\\\"}\"}"
    assert find_matching_bracket(text, 1, "{", "}") == len(text) - 1


def test_backtick_strings_are_opaque():
    text = "[`]`, 1]"
    assert find_matching_bracket(text, 1, "[", "]") == len(text) - 1


def test_unbalanced_returns_not_found():
    assert find_matching_bracket("[1, [2]", 1, "[", "]") == NOT_FOUND


def test_extract_balanced_returns_body_and_positions():
    span = extract_balanced("x = {a: {b: 1}} tail", 0, "{")
    assert span is not None
    assert span.open_pos == 4
    assert span.body == "a: {b: 1}"
    assert span.close_pos == 14


def test_extract_balanced_without_opener():
    assert extract_balanced("no brackets here", 0, "[") is None


def test_split_top_level_objects_never_splits_nested():
    body = "{a: 1}, {b: {c: [ {d: 2} ]}}, {e: '{'}"
    objects = split_top_level_objects(body)
    assert objects == ["{a: 1}", "{b: {c: [ {d: 2} ]}}", "{e: '{'}"]


def test_split_top_level_objects_skips_filler():
    objects = split_top_level_objects("...baseInputs, {a: 1}, someVar")
    assert objects == ["{a: 1}"]


def test_split_top_level_objects_counts_many():
    body = ", ".join("{name: 'f%d', label: \"it's\"}" % i for i in range(25))
    assert len(split_top_level_objects(body)) == 25

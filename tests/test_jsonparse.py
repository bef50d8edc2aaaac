from newsroom.jsonparse import (
    clean_json_string,
    safe_json_parse,
    salvage_quiz,
    salvage_vocabulary,
    strip_code_fence,
)


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_clean_json_string_drops_chatter_and_smart_quotes():
    raw = "Sure! Here you go: {“title”: “Hi”} Hope it helps."
    assert clean_json_string(raw) == '{"title": "Hi"}'


def test_safe_json_parse_plain_and_wrapped():
    assert safe_json_parse('{"items": []}') == {"items": []}
    assert safe_json_parse('Result:\n{"items": [{"title": "x"}]}\nThanks') == {"items": [{"title": "x"}]}


def test_safe_json_parse_gives_none_for_garbage():
    assert safe_json_parse("no json here") is None
    assert safe_json_parse("") is None
    assert safe_json_parse(None) is None


def test_salvage_quiz_needs_four_options():
    text = (
        '{"quiz": [{"question": "What is AI?", "options": ["A", "B", "C", "D"], "correct": "A"},'
        ' {"question": "Broken?", "options": ["A", "B"], "correct": "A"}, oops'
    )
    assert salvage_quiz(text) == [
        {"question": "What is AI?", "options": ["A", "B", "C", "D"], "correct": "A"}
    ]


def test_salvage_vocabulary():
    text = '"vocabulary": [{"term": "LLM", "definition": "Large language model"}, {"term": "GPU", '
    assert salvage_vocabulary(text) == [{"term": "LLM", "definition": "Large language model"}]

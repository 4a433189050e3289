import pytest

from quillscribe.shared_kernel.text import (
    clean_transformed_text,
    count_words,
    parse_json_object,
    parse_title_content,
    strip_code_fence,
)


def test_count_words_ignores_html_tags():
    assert count_words("<p>The city</p><p>was quiet.</p>") == 4
    assert count_words("") == 0
    assert count_words("   \n\t ") == 0


def test_strip_code_fence_removes_json_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'


def test_parse_json_object_rejects_non_objects():
    assert parse_json_object('```json\n{"category": "character"}\n```') == {"category": "character"}
    with pytest.raises(ValueError):
        parse_json_object("[1, 2]")
    with pytest.raises(ValueError):
        parse_json_object("not json")


def test_clean_transformed_text_drops_intro_and_fences():
    assert clean_transformed_text("Here is the expanded text: The city slept.") == "The city slept."
    assert clean_transformed_text("```\nThe city slept.\n```") == "The city slept."
    assert clean_transformed_text("  Plain answer  ") == "Plain answer"


def test_parse_title_content_prefers_json():
    parsed = parse_title_content('{"title": " Storm ", "content": "Rain falls."}')
    assert parsed == {"title": "Storm", "content": "Rain falls."}


def test_parse_title_content_falls_back_to_labels():
    parsed = parse_title_content("TITLE: The Gate\nCONTENT: Sarah finds the key.")
    assert parsed == {"title": "The Gate", "content": "Sarah finds the key."}


def test_parse_title_content_returns_none_for_prose():
    assert parse_title_content("Just a paragraph of prose.") is None
    assert parse_title_content("TITLE: Missing content") is None

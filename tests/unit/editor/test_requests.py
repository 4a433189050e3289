import pytest

from quillscribe.editor.requests import (
    build_generation_request,
    build_transformation_request,
    exceeds_word_limit,
)
from quillscribe.schemas.ai import ContentKind, TransformAction


@pytest.mark.parametrize("action", ["expand", "summarize", "rephrase", "revise"])
def test_each_action_builds_a_request(action):
    request = build_transformation_request("The city was quiet.", action, full_document="Doc")

    assert request.action == TransformAction(action)
    assert request.to_payload() == {
        "text": "The city was quiet.",
        "action": action,
        "fullDocument": "Doc",
    }


def test_unknown_action_is_a_programming_error():
    with pytest.raises(ValueError, match="Unknown transform action"):
        build_transformation_request("text", "translate")


def test_blank_instructions_are_dropped_and_missing_document_omitted():
    request = build_transformation_request("text", TransformAction.REVISE, additional_instructions="   ")

    assert request.additional_instructions is None
    assert "fullDocument" not in request.to_payload()
    assert "additionalInstructions" not in request.to_payload()


def test_instructions_are_sent_when_present():
    request = build_transformation_request("text", "rephrase", additional_instructions=" more formal ")

    assert request.to_payload()["additionalInstructions"] == "more formal"


def test_generation_request_payload():
    request = build_generation_request("beat", "ch1", "p1", "Sarah waited.")

    assert request.content_kind == ContentKind.BEAT
    assert request.to_payload() == {
        "type": "beat",
        "chapterId": "ch1",
        "projectId": "p1",
        "currentContent": "Sarah waited.",
    }


def test_word_limit_check():
    assert exceeds_word_limit("one two three", 2) is True
    assert exceeds_word_limit("one two", 2) is False
    assert exceeds_word_limit(None, 0) is False

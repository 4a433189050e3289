import pytest

from quillscribe.core.config import settings
from quillscribe.schemas.ai import TransformAction, TransformRequest
from quillscribe.services.transform_service import TransformService, build_transform_prompt
from quillscribe.shared_kernel.exceptions import DocumentLimitError, ModelFormatError, ValidationError


class DummyLLM:
    def __init__(self, response="The city slept under a heavy silence."):
        self.response = response
        self.prompts = []

    async def generate_content(self, prompt):
        self.prompts.append(prompt)
        return self.response


def test_prompt_frames_selection_inside_full_document():
    prompt = build_transform_prompt(
        TransformRequest(
            text="The city was quiet.",
            action=TransformAction.EXPAND,
            fullDocument="Night fell. The city was quiet. Nobody moved.",
        )
    )

    assert prompt.startswith("IMPORTANT: Return ONLY the transformed text")
    assert "Night fell. The city was quiet. Nobody moved." in prompt
    assert "```\nThe city was quiet.\n```" in prompt
    assert "Action: Expand this text" in prompt
    assert "Additional instructions" not in prompt


def test_prompt_quotes_selection_without_document():
    prompt = build_transform_prompt(
        TransformRequest(
            text="The city was quiet.",
            action=TransformAction.REVISE,
            additionalInstructions="Keep it short",
        )
    )

    assert 'Transform the following text:\n\n"The city was quiet."' in prompt
    assert "Action: Correct any factual errors" in prompt
    assert "Additional instructions/information: Keep it short" in prompt


@pytest.mark.asyncio
async def test_transform_returns_cleaned_text():
    llm = DummyLLM(response="Here is the expanded text: The city slept.")
    service = TransformService(llm_client=llm)

    result = await service.transform(TransformRequest(text="The city was quiet.", action="expand"))

    assert result == "The city slept."
    assert len(llm.prompts) == 1


@pytest.mark.asyncio
async def test_missing_text_or_action_rejected_before_model_call():
    llm = DummyLLM()
    service = TransformService(llm_client=llm)

    with pytest.raises(ValidationError):
        await service.transform(TransformRequest(text="", action="expand"))
    with pytest.raises(ValidationError):
        await service.transform(TransformRequest(text="Some text"))

    assert llm.prompts == []


@pytest.mark.asyncio
async def test_document_over_word_limit_rejected(monkeypatch):
    monkeypatch.setattr(settings, "WORD_LIMIT", 5)
    llm = DummyLLM()
    service = TransformService(llm_client=llm)

    with pytest.raises(DocumentLimitError) as excinfo:
        await service.transform(
            TransformRequest(text="quiet", action="summarize", fullDocument="one two three four five six")
        )

    assert excinfo.value.details == {"words": 6, "limit": 5}
    assert llm.prompts == []


@pytest.mark.asyncio
async def test_empty_model_answer_is_a_format_error():
    service = TransformService(llm_client=DummyLLM(response="```\n```"))

    with pytest.raises(ModelFormatError):
        await service.transform(TransformRequest(text="The city was quiet.", action="rephrase"))

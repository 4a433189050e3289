import asyncio

import pytest

from quillscribe.editor.client import GeneratedContent, GenerationFailed, TransformFailed
from quillscribe.editor.config import EditorConfig
from quillscribe.editor.geometry import Rect, Viewport
from quillscribe.editor.popup import PopupKind
from quillscribe.editor.scheduler import ScheduledCall, Scheduler
from quillscribe.editor.selection import PointerEvent
from quillscribe.editor.session import EditorSession
from quillscribe.editor.surfaces import PlainTextSurface, RichTextDocument

DOCUMENT = "Night fell. The city was quiet. Nobody moved."
VIEWPORT = Viewport(width=1200, height=900)


class FakeCall(ScheduledCall):
    def __init__(self, callback, args):
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler(Scheduler):
    def __init__(self):
        self.calls = []

    def call_later(self, delay, callback, *args):
        call = FakeCall(callback, args)
        self.calls.append(call)
        return call

    def run_pending(self):
        pending, self.calls = self.calls, []
        for call in pending:
            if not call.cancelled:
                call.callback(*call.args)


class DummyAIClient:
    def __init__(self, transformed="The city slept under a heavy silence.", generated=None, error=None):
        self.transformed = transformed
        self.generated = generated or GeneratedContent(content="A dog barked.")
        self.error = error
        self.requests = []
        self.before_return = None

    async def transform(self, request):
        self.requests.append(request)
        if self.before_return:
            self.before_return()
        if self.error:
            raise self.error
        return self.transformed

    async def generate(self, request):
        self.requests.append(request)
        if self.before_return:
            self.before_return()
        if self.error:
            raise self.error
        return self.generated


class GatedAIClient(DummyAIClient):
    """Holds the first transform until ``gate`` is set; echoes the text in brackets."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def transform(self, request):
        self.requests.append(request)
        if len(self.requests) == 1:
            await self.gate.wait()
        return f"<{request.text}>"


def _session(surface=None, client=None, **kwargs):
    surface = surface or PlainTextSurface(DOCUMENT, rect=Rect(0, 0, 600, 400))
    client = client or DummyAIClient()
    scheduler = FakeScheduler()
    session = EditorSession(surface, client, scheduler, VIEWPORT, **kwargs)
    return session, surface, client, scheduler


def _drag_select(session, surface, scheduler, start, end):
    session.pointer_down(PointerEvent(40, 20))
    if isinstance(surface, RichTextDocument):
        surface.set_selection(surface.position_for_offset(start), surface.position_for_offset(end))
    else:
        surface.select(start, end)
    session.pointer_up(PointerEvent(200, 24))
    scheduler.run_pending()


def _click(session, x=60, y=30):
    session.pointer_down(PointerEvent(x, y))
    session.pointer_up(PointerEvent(x, y))


@pytest.mark.asyncio
async def test_expand_replaces_only_the_selected_sentence():
    session, surface, client, scheduler = _session()
    _drag_select(session, surface, scheduler, 12, 31)

    assert session.store.state == PopupKind.SCRIBE
    assert session.coordinator.scribe.visible is True
    assert session.layer.nodes[0].highlighted_text == "The city was quiet."

    applied = await session.transform("expand")

    assert applied is True
    assert client.requests[0].text == "The city was quiet."
    assert client.requests[0].full_document == DOCUMENT
    assert surface.value == "Night fell. The city slept under a heavy silence. Nobody moved."
    assert surface.text_selection()[1] == 12 + len("The city slept under a heavy silence.")
    assert session.store.state == PopupKind.NONE
    assert session.layer.nodes == []


@pytest.mark.asyncio
async def test_rich_document_flow_clears_decoration():
    document = RichTextDocument.from_paragraphs(["Night fell.", "The city was quiet."], rect=Rect(0, 0, 600, 400))
    session, surface, client, scheduler = _session(surface=document)
    _drag_select(session, document, scheduler, 13, 32)

    assert len(document.decorations) == 1

    await session.transform("rephrase")

    assert document.get_text() == "Night fell.\n\nThe city slept under a heavy silence."
    assert document.decorations == []


def test_two_clicks_at_the_caret_never_open_scribe():
    session, surface, client, scheduler = _session()
    states = []
    session.store.subscribe(lambda current, previous: states.append(current))
    surface.set_caret(11)

    _click(session)
    scheduler.run_pending()
    _click(session)
    scheduler.run_pending()

    assert PopupKind.SCRIBE not in states
    assert states[0] == PopupKind.WRITE
    assert session.coordinator.scribe.visible is False


def test_selecting_text_hides_open_write_popup():
    session, surface, client, scheduler = _session()
    _click(session)
    assert session.coordinator.write.visible is True

    _drag_select(session, surface, scheduler, 12, 31)

    assert session.coordinator.write.visible is False
    assert session.coordinator.scribe.visible is True
    assert session.caret is None


def test_pointer_down_outside_closes_and_clears_highlight():
    session, surface, client, scheduler = _session()
    _drag_select(session, surface, scheduler, 12, 31)

    session.pointer_down(PointerEvent(1100, 850))

    assert session.store.state == PopupKind.NONE
    assert session.layer.nodes == []
    assert session.tracker.range is None


@pytest.mark.asyncio
async def test_failed_transform_leaves_document_and_reports_error():
    failure = TransformFailed("Transformation failed")
    session, surface, client, scheduler = _session(client=DummyAIClient(error=failure))
    errors = []
    session.on_error(errors.append)
    _drag_select(session, surface, scheduler, 12, 31)

    applied = await session.transform("summarize")

    assert applied is False
    assert surface.value == DOCUMENT
    assert session.store.state == PopupKind.NONE
    assert session.layer.nodes == []
    assert errors[0].operation == "transform"
    assert errors[0].cause is failure


@pytest.mark.asyncio
async def test_document_over_word_limit_is_not_sent():
    session, surface, client, scheduler = _session(config=EditorConfig(word_limit=3))
    errors = []
    session.on_error(errors.append)
    _drag_select(session, surface, scheduler, 12, 31)

    applied = await session.transform("expand")

    assert applied is False
    assert client.requests == []
    assert "word limit" in errors[0].message


@pytest.mark.asyncio
async def test_title_fields_omit_full_document():
    session, surface, client, scheduler = _session(document_addressable=False)
    _drag_select(session, surface, scheduler, 12, 31)

    await session.transform("revise", additional_instructions="Keep the tone")

    assert client.requests[0].full_document is None
    assert client.requests[0].additional_instructions == "Keep the tone"


@pytest.mark.asyncio
async def test_response_still_applies_after_popup_closed():
    session, surface, client, scheduler = _session()
    _drag_select(session, surface, scheduler, 12, 31)
    client.before_return = session.close

    applied = await session.transform("expand")

    assert applied is True
    assert "heavy silence" in surface.value


@pytest.mark.asyncio
async def test_response_after_teardown_is_dropped():
    session, surface, client, scheduler = _session()
    _drag_select(session, surface, scheduler, 12, 31)
    client.before_return = surface.destroy

    applied = await session.transform("expand")

    assert applied is False
    assert surface.value == DOCUMENT


@pytest.mark.asyncio
async def test_write_inserts_generated_text_at_caret():
    session, surface, client, scheduler = _session(chapter_id="ch1", project_id="p1")
    surface.set_caret(11)
    _click(session)

    applied = await session.write()

    assert applied is True
    assert surface.value == "Night fell.A dog barked. The city was quiet. Nobody moved."
    assert client.requests[0].chapter_id == "ch1"
    assert session.store.state == PopupKind.NONE


@pytest.mark.asyncio
async def test_failed_generation_reports_error_and_closes_write_popup():
    failure = GenerationFailed("Generation failed")
    session, surface, client, scheduler = _session(client=DummyAIClient(error=failure))
    errors = []
    session.on_error(errors.append)
    _click(session)

    applied = await session.write()

    assert applied is False
    assert surface.value == DOCUMENT
    assert errors[0].operation == "generate"
    assert session.store.state == PopupKind.NONE


@pytest.mark.asyncio
async def test_transform_without_selection_does_nothing():
    session, surface, client, scheduler = _session()

    assert await session.transform("expand") is False
    assert client.requests == []


@pytest.mark.asyncio
async def test_late_response_keeps_popup_for_newer_selection():
    session, surface, client, scheduler = _session()
    _drag_select(session, surface, scheduler, 0, 11)
    client.before_return = lambda: _drag_select(session, surface, scheduler, 32, 45)

    applied = await session.transform("expand")

    assert applied is True
    assert surface.value.startswith("The city slept under a heavy silence. The city was quiet.")
    assert session.store.state == PopupKind.SCRIBE
    assert session.coordinator.scribe.visible is True
    assert session.tracker.capture.text == "Nobody moved."
    assert session.layer.nodes[0].highlighted_text == "Nobody moved."


@pytest.mark.asyncio
async def test_late_failure_keeps_popup_for_newer_selection():
    failure = TransformFailed("Transformation failed")
    session, surface, client, scheduler = _session(client=DummyAIClient(error=failure))
    errors = []
    session.on_error(errors.append)
    _drag_select(session, surface, scheduler, 0, 11)
    client.before_return = lambda: _drag_select(session, surface, scheduler, 32, 45)

    applied = await session.transform("expand")

    assert applied is False
    assert errors[0].cause is failure
    assert session.store.state == PopupKind.SCRIBE
    assert session.tracker.capture.text == "Nobody moved."


@pytest.mark.asyncio
async def test_late_generation_keeps_newer_write_popup():
    session, surface, client, scheduler = _session()
    surface.set_caret(11)
    _click(session)

    def click_elsewhere():
        _click(session)
        surface.set_caret(31)
        _click(session, x=100, y=40)

    client.before_return = click_elsewhere

    applied = await session.write()

    assert applied is True
    assert surface.value == "Night fell.A dog barked. The city was quiet. Nobody moved."
    assert session.store.state == PopupKind.WRITE
    assert session.coordinator.write.visible is True
    assert session.caret == 31


@pytest.mark.asyncio
async def test_second_selection_can_be_transformed_while_first_is_in_flight():
    session, surface, client, scheduler = _session(client=GatedAIClient())
    _drag_select(session, surface, scheduler, 0, 11)
    first = asyncio.ensure_future(session.transform("expand"))
    await asyncio.sleep(0)

    _drag_select(session, surface, scheduler, 32, 45)
    assert await session.transform("summarize") is True

    client.gate.set()
    assert await first is True
    assert surface.value == "<Night fell.> The city was quiet. <Nobody moved.>"
    assert session.store.state == PopupKind.NONE
    assert session.layer.nodes == []

"""Wires tracker, popups, highlight and replacement around one surface."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from quillscribe.editor.client import AIClientError, AIServiceClient, GeneratedContent
from quillscribe.editor.config import EditorConfig
from quillscribe.editor.geometry import Viewport
from quillscribe.editor.highlight import OverlayLayer, highlighter_for
from quillscribe.editor.popup import PopupCoordinator, PopupKind, PopupStateStore
from quillscribe.editor.replacement import ReplacementEngine
from quillscribe.editor.requests import (
    build_generation_request,
    build_transformation_request,
    exceeds_word_limit,
)
from quillscribe.editor.scheduler import Scheduler
from quillscribe.editor.selection import CaretClick, PointerEvent, SelectionCapture, SelectionTracker
from quillscribe.editor.surfaces import Surface
from quillscribe.schemas.ai import ContentKind, TransformAction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorError:
    operation: str
    message: str
    cause: Optional[BaseException] = None


class EditorSession:
    """Scribe and write flows for one editable surface.

    Failed calls never touch the document: the highlight is cleared, the
    popup closes and an ``EditorError`` is published to error subscribers.
    """

    def __init__(
        self,
        surface: Surface,
        client: AIServiceClient,
        scheduler: Scheduler,
        viewport: Viewport,
        store: Optional[PopupStateStore] = None,
        config: Optional[EditorConfig] = None,
        layer: Optional[OverlayLayer] = None,
        chapter_id: str = "",
        project_id: str = "",
        document_addressable: bool = True,
    ) -> None:
        self.surface = surface
        self.client = client
        self.config = config or EditorConfig()
        self.store = store or PopupStateStore()
        self.layer = layer or OverlayLayer()
        self.chapter_id = chapter_id
        self.project_id = project_id
        self.document_addressable = document_addressable
        self.coordinator = PopupCoordinator(self.store, viewport, self.config)
        self.tracker = SelectionTracker(surface, self.store, scheduler, self.config)
        self.highlighter = highlighter_for(surface, self.layer)
        self.replacement = ReplacementEngine()
        self.caret: Optional[int] = None
        self._click: Optional[CaretClick] = None
        self._error_listeners: List[Callable[[EditorError], None]] = []
        self.tracker.on_capture(self._on_capture)
        self.tracker.on_click(self._on_click)
        self._unsubscribe = self.store.subscribe(self._on_popup_state)

    def on_error(self, listener: Callable[[EditorError], None]) -> None:
        self._error_listeners.append(listener)

    # Input events

    def pointer_down(self, event: PointerEvent) -> None:
        if self.coordinator.on_pointer_down(event.point):
            return
        popup = self.coordinator.active
        if popup is not None and popup.rect is not None and popup.rect.contains(event.point):
            return
        if self.surface.rect.contains(event.point):
            self.tracker.pointer_down(event)

    def pointer_up(self, event: PointerEvent) -> None:
        if self.tracker.tracking:
            self.tracker.pointer_up(event)

    def viewport_changed(self, viewport: Viewport) -> None:
        self.coordinator.on_viewport_change(viewport)

    def close(self) -> None:
        self.coordinator.close()

    def dispose(self) -> None:
        self._unsubscribe()
        self.highlighter.clear()
        self.coordinator.scribe.dispose()
        self.coordinator.write.dispose()

    # Scribe flow

    async def transform(
        self,
        action: Union[str, TransformAction],
        additional_instructions: Optional[str] = None,
    ) -> bool:
        """Run an action on the captured selection; True when text was replaced.

        The user may select again while the request is in flight. The reply
        is still written over the original range, but the highlight and popup
        are only dismissed if they still belong to that selection.
        """
        capture = self.tracker.capture
        if capture is None:
            return False
        full_document = self.surface.get_text() if self.document_addressable else None
        if exceeds_word_limit(full_document, self.config.word_limit):
            self._fail("transform", f"Document exceeds the {self.config.word_limit} word limit", PopupKind.SCRIBE)
            return False
        request = build_transformation_request(capture.text, action, additional_instructions, full_document)

        try:
            text = await self.client.transform(request)
        except AIClientError as exc:
            logger.warning("Transform %s failed: %s", request.action.value, exc)
            self._fail("transform", str(exc), PopupKind.SCRIBE, exc, dismiss=self.tracker.capture is capture)
            return False

        applied = self.replacement.replace(self.surface, capture.range, text)
        if self.tracker.capture is capture:
            self.highlighter.clear()
            self.store.close(PopupKind.SCRIBE)
        return applied

    # Write flow

    async def generate(self, kind: Union[str, ContentKind]) -> Optional[GeneratedContent]:
        request = build_generation_request(kind, self.chapter_id, self.project_id, self.surface.get_text())
        click = self._click
        try:
            return await self.client.generate(request)
        except AIClientError as exc:
            logger.warning("Generate %s failed: %s", request.content_kind.value, exc)
            self._fail("generate", str(exc), PopupKind.WRITE, exc, dismiss=self._click is click)
            return None

    async def write(self) -> bool:
        """Generate prose and insert it at the clicked caret."""
        caret, click = self.caret, self._click
        if caret is None:
            return False
        generated = await self.generate(ContentKind.TEXT)
        if generated is None:
            return False
        applied = self.replacement.insert(self.surface, caret, generated.content)
        if self._click is click:
            self.store.close(PopupKind.WRITE)
        return applied

    # Internals

    def _on_capture(self, capture: SelectionCapture) -> None:
        self.highlighter.show(capture.range)
        self.coordinator.open_scribe(capture.anchor, self.surface.rect)

    def _on_click(self, click: CaretClick) -> None:
        self.caret = click.offset
        self._click = click
        self.coordinator.open_write(click.point, self.surface.rect)

    def _on_popup_state(self, current: PopupKind, previous: PopupKind) -> None:
        if previous == PopupKind.SCRIBE:
            self.highlighter.clear()
            self.tracker.clear()
        if previous == PopupKind.WRITE:
            self.caret = None
            self._click = None

    def _fail(
        self,
        operation: str,
        message: str,
        popup: PopupKind,
        cause: Optional[BaseException] = None,
        dismiss: bool = True,
    ) -> None:
        if dismiss:
            self.highlighter.clear()
            self.store.close(popup)
        error = EditorError(operation=operation, message=message, cause=cause)
        for listener in list(self._error_listeners):
            listener(error)

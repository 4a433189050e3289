"""Selection tracking: pointer gestures to a validated range and an anchor."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from quillscribe.editor.config import EditorConfig
from quillscribe.editor.geometry import Point
from quillscribe.editor.measure import EventCoordinateMeasurer, MirrorMeasurer, TextPositionMeasurer
from quillscribe.editor.popup import PopupKind, PopupStateStore
from quillscribe.editor.scheduler import ScheduledCall, Scheduler
from quillscribe.editor.surfaces import Surface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerEvent:
    x: float
    y: float

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class SelectionRange:
    """Offsets into the plain-text projection of a surface."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid selection range [{self.start}, {self.end})")

    @property
    def is_collapsed(self) -> bool:
        return self.start == self.end

    def fits(self, text: str) -> bool:
        return self.end <= len(text)


@dataclass(frozen=True)
class SelectionCapture:
    range: SelectionRange
    text: str
    anchor: Point


@dataclass(frozen=True)
class CaretClick:
    offset: int
    point: Point


class SelectionTracker:
    """Turns pointer-down/up pairs on one surface into selections or caret clicks.

    A pointer-up within ``click_threshold`` px of its pointer-down on both
    axes is a click: any range is discarded and no scribe popup opens. A drag
    is read after ``settle_delay`` so the host editor has finalized its own
    selection; a non-blank selection is captured and the scribe popup state
    is set. A click that starts while a popup is open only dismisses it.
    """

    def __init__(
        self,
        surface: Surface,
        store: PopupStateStore,
        scheduler: Scheduler,
        config: Optional[EditorConfig] = None,
        mirror: Optional[TextPositionMeasurer] = None,
    ) -> None:
        self.surface = surface
        self.store = store
        self.scheduler = scheduler
        self.config = config or EditorConfig()
        self.mirror = mirror or MirrorMeasurer()
        self.capture: Optional[SelectionCapture] = None
        self._down: Optional[PointerEvent] = None
        self._popup_open_at_down = False
        self._pending: Optional[ScheduledCall] = None
        self._capture_listeners: List[Callable[[SelectionCapture], None]] = []
        self._click_listeners: List[Callable[[CaretClick], None]] = []

    @property
    def range(self) -> Optional[SelectionRange]:
        return self.capture.range if self.capture else None

    @property
    def tracking(self) -> bool:
        return self._down is not None

    def on_capture(self, listener: Callable[[SelectionCapture], None]) -> None:
        self._capture_listeners.append(listener)

    def on_click(self, listener: Callable[[CaretClick], None]) -> None:
        self._click_listeners.append(listener)

    def pointer_down(self, event: PointerEvent) -> None:
        self._cancel_pending()
        self._down = event
        self._popup_open_at_down = self.store.state != PopupKind.NONE

    def pointer_up(self, event: PointerEvent) -> None:
        down, self._down = self._down, None
        if down is not None and self._is_click(down, event):
            self.clear()
            if self._popup_open_at_down:
                self.store.close()
                return
            offset = self.surface.text_selection()[1]
            click = CaretClick(offset=offset, point=event.point)
            for listener in list(self._click_listeners):
                listener(click)
            return
        self._schedule(event)

    def selection_changed(self) -> None:
        """Programmatic selection with no pointer event; anchored by the mirror."""
        self._schedule(None)

    def clear(self) -> None:
        self._cancel_pending()
        self.capture = None

    def _is_click(self, down: PointerEvent, up: PointerEvent) -> bool:
        threshold = self.config.click_threshold
        return abs(up.x - down.x) < threshold and abs(up.y - down.y) < threshold

    def _schedule(self, event: Optional[PointerEvent]) -> None:
        self._cancel_pending()
        self._pending = self.scheduler.call_later(self.config.settle_delay, self._settle, event)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _settle(self, event: Optional[PointerEvent]) -> None:
        self._pending = None
        if not self.surface.is_live:
            return
        start, end = self.surface.text_selection()
        text = self.surface.get_text()[start:end]
        if not text.strip():
            self.capture = None
            return
        if event is not None:
            measurer: TextPositionMeasurer = EventCoordinateMeasurer(event.point)
        else:
            measurer = self.mirror
        anchor = measurer.anchor_for(self.surface, start, end)
        self.capture = SelectionCapture(range=SelectionRange(start, end), text=text, anchor=anchor)
        logger.debug("Captured selection [%s, %s)", start, end)
        for listener in list(self._capture_listeners):
            listener(self.capture)
        self.store.activate(PopupKind.SCRIBE)

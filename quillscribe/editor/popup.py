"""Floating popups: single-popup exclusion and viewport-safe placement."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from quillscribe.editor.config import EditorConfig
from quillscribe.editor.geometry import Point, Rect, Size, Viewport

logger = logging.getLogger(__name__)


class PopupKind(str, Enum):
    NONE = "none"
    SCRIBE = "scribeActive"
    WRITE = "writeActive"


PopupListener = Callable[[PopupKind, PopupKind], None]


class PopupStateStore:
    """Shared popup state with synchronous pub/sub.

    Every transition goes through ``set``; subscribers receive
    ``(current, previous)`` before ``set`` returns, so the popup being replaced
    is hidden in the same tick the new one is shown.
    """

    def __init__(self) -> None:
        self._state = PopupKind.NONE
        self._subscribers: List[PopupListener] = []

    @property
    def state(self) -> PopupKind:
        return self._state

    def subscribe(self, listener: PopupListener) -> Callable[[], None]:
        self._subscribers.append(listener)

        def unsubscribe() -> None:
            if listener in self._subscribers:
                self._subscribers.remove(listener)

        return unsubscribe

    def set(self, kind: PopupKind) -> None:
        kind = PopupKind(kind)
        previous = self._state
        if kind == previous:
            return
        self._state = kind
        logger.debug("Popup state %s -> %s", previous.value, kind.value)
        for listener in list(self._subscribers):
            listener(kind, previous)

    def activate(self, kind: PopupKind) -> None:
        self.set(kind)

    def close(self, kind: Optional[PopupKind] = None) -> None:
        """Return to ``none``; with ``kind``, only if that popup is the active one."""
        if kind is None or self._state == kind:
            self.set(PopupKind.NONE)


@dataclass(frozen=True)
class PositionAnchor:
    top: float
    left: float
    positioned_above: bool = False


def place_popup(candidate: Point, size: Size, viewport: Viewport, config: Optional[EditorConfig] = None) -> PositionAnchor:
    """Fit a popup of ``size`` hanging from ``candidate`` inside the viewport."""
    config = config or EditorConfig()
    margin = config.viewport_margin
    left = max(margin, min(candidate.x, viewport.width - size.width - margin))
    if candidate.y + size.height > viewport.height - margin:
        top = candidate.y - size.height - config.above_margin
        above = True
    else:
        top = candidate.y + config.below_offset
        above = False
    return PositionAnchor(top=max(config.min_top, top), left=left, positioned_above=above)


class FloatingPopup:
    """One popup kind; visible exactly while the store holds its kind."""

    def __init__(self, kind: PopupKind, store: PopupStateStore, size: Size, config: Optional[EditorConfig] = None) -> None:
        self.kind = kind
        self.store = store
        self.size = size
        self.config = config or EditorConfig()
        self.visible = False
        self.anchor: Optional[PositionAnchor] = None
        # Candidate in page coordinates so scrolling moves it on screen
        self._page_candidate: Optional[Point] = None
        self._viewport = Viewport(width=1024, height=768)
        self._unsubscribe = store.subscribe(self._on_state)

    @property
    def rect(self) -> Optional[Rect]:
        if not self.visible or self.anchor is None:
            return None
        return Rect(left=self.anchor.left, top=self.anchor.top, width=self.size.width, height=self.size.height)

    def open(self, candidate: Point, viewport: Viewport) -> None:
        self._viewport = viewport
        self._page_candidate = Point(candidate.x + viewport.scroll_x, candidate.y + viewport.scroll_y)
        self.store.activate(self.kind)
        self.reposition(viewport)

    def close(self) -> None:
        self.store.close(self.kind)

    def reposition(self, viewport: Viewport) -> Optional[PositionAnchor]:
        self._viewport = viewport
        if not self.visible or self._page_candidate is None:
            return None
        candidate = Point(
            self._page_candidate.x - viewport.scroll_x,
            self._page_candidate.y - viewport.scroll_y,
        )
        self.anchor = place_popup(candidate, self.size, viewport, self.config)
        return self.anchor

    def dispose(self) -> None:
        self._unsubscribe()

    def _on_state(self, current: PopupKind, previous: PopupKind) -> None:
        self.visible = current == self.kind
        if not self.visible:
            self.anchor = None
            self._page_candidate = None


class PopupCoordinator:
    """Owns both popups, keeps them placed, and dismisses on outside pointer-down."""

    def __init__(self, store: PopupStateStore, viewport: Viewport, config: Optional[EditorConfig] = None) -> None:
        self.store = store
        self.viewport = viewport
        self.config = config or EditorConfig()
        self.scribe = FloatingPopup(PopupKind.SCRIBE, store, self.config.scribe_popup_size, self.config)
        self.write = FloatingPopup(PopupKind.WRITE, store, self.config.write_popup_size, self.config)
        self.origin: Optional[Rect] = None

    @property
    def active(self) -> Optional[FloatingPopup]:
        for popup in (self.scribe, self.write):
            if popup.visible:
                return popup
        return None

    def open_scribe(self, candidate: Point, origin: Rect) -> PositionAnchor:
        self.origin = origin
        self.scribe.open(candidate, self.viewport)
        return self.scribe.anchor

    def open_write(self, candidate: Point, origin: Rect) -> PositionAnchor:
        self.origin = origin
        self.write.open(candidate, self.viewport)
        return self.write.anchor

    def close(self) -> None:
        self.store.close()

    def on_viewport_change(self, viewport: Viewport) -> None:
        """Resize or scroll: re-run placement for the open popup."""
        self.viewport = viewport
        popup = self.active
        if popup is not None:
            popup.reposition(viewport)

    def on_pointer_down(self, point: Point) -> bool:
        """Close on a pointer-down outside the popup and its surface.

        Returns True when the gesture dismissed a popup.
        """
        popup = self.active
        if popup is None:
            return False
        rect = popup.rect
        if rect is not None and rect.contains(point):
            return False
        if self.origin is not None and self.origin.contains(point):
            return False
        self.store.close()
        return True

"""Editable surface models the engine reads from and writes to.

A host UI adapts its widgets to these two shapes: a plain textarea-like
surface addressed by character offsets, and a rich-text document addressed
by model positions. Both report edits through one subscription path.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from quillscribe.editor.geometry import Rect

BLOCK_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class SurfaceStyle:
    font_family: str = "monospace"
    font_size: float = 16.0
    line_height: float = 24.0
    char_width: float = 8.0
    padding_top: float = 8.0
    padding_right: float = 12.0
    padding_bottom: float = 8.0
    padding_left: float = 12.0


@dataclass(frozen=True)
class ChangeEvent:
    """One notification from a surface.

    ``kind`` is ``input`` for content edits, ``selection``, ``decorations``,
    ``marks`` or ``scroll``.
    """
    kind: str
    text: str
    selection: Tuple[int, int]
    programmatic: bool = False


Listener = Callable[[ChangeEvent], None]


class Surface(ABC):
    """Common face of plain and rich surfaces."""

    def __init__(self, rect: Rect, style: Optional[SurfaceStyle] = None) -> None:
        self.rect = rect
        self.style = style or SurfaceStyle()
        self._listeners: List[Listener] = []
        self._live = True

    @property
    def is_live(self) -> bool:
        return self._live

    def destroy(self) -> None:
        """Tear the surface down; later writes through stale handles are ignored."""
        self._live = False
        self._listeners.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: str, programmatic: bool = False) -> None:
        event = ChangeEvent(kind=kind, text=self.get_text(), selection=self.text_selection(), programmatic=programmatic)
        for listener in list(self._listeners):
            listener(event)

    @abstractmethod
    def get_text(self) -> str:
        """Plain-text projection the selection offsets refer to."""
        raise NotImplementedError

    @abstractmethod
    def text_selection(self) -> Tuple[int, int]:
        """Current selection as offsets into ``get_text()``."""
        raise NotImplementedError


class PlainTextSurface(Surface):
    """Textarea-like surface.

    Assigning ``value`` programmatically does not notify listeners, like a
    DOM textarea; callers that mutate it must ``dispatch_input()``.
    """

    def __init__(self, value: str = "", rect: Optional[Rect] = None, style: Optional[SurfaceStyle] = None) -> None:
        super().__init__(rect or Rect(0, 0, 600, 400), style)
        self.value = value
        self.selection_start = len(value)
        self.selection_end = len(value)
        self.scroll_top = 0.0
        self.focused = False

    def get_text(self) -> str:
        return self.value

    def text_selection(self) -> Tuple[int, int]:
        return self.selection_start, self.selection_end

    def select(self, start: int, end: int) -> None:
        length = len(self.value)
        start = max(0, min(start, length))
        end = max(start, min(end, length))
        self.selection_start, self.selection_end = start, end
        self._emit("selection")

    def set_caret(self, index: int) -> None:
        self.select(index, index)

    def focus(self) -> None:
        self.focused = True

    def dispatch_input(self) -> None:
        self._emit("input", programmatic=True)

    def type_text(self, text: str) -> None:
        """User keystrokes replacing the current selection."""
        start, end = self.selection_start, self.selection_end
        self.value = self.value[:start] + text + self.value[end:]
        self.selection_start = self.selection_end = start + len(text)
        self._emit("input")

    def scroll_to(self, top: float) -> None:
        self.scroll_top = max(0.0, top)
        self._emit("scroll")


@dataclass(frozen=True)
class Mark:
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class Decoration:
    start: int
    end: int
    css_class: str = "ai-highlight"


@dataclass
class _Selection:
    anchor: int
    head: int

    @property
    def start(self) -> int:
        return min(self.anchor, self.head)

    @property
    def end(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head


class RichTextDocument(Surface):
    """Rich-text document model.

    Paragraphs are joined by a two-character block separator in the text
    projection, which lines text offset ``o`` up with model position
    ``o + 1`` (position 0 sits before the first paragraph opens).
    """

    def __init__(self, text: str = "", rect: Optional[Rect] = None, style: Optional[SurfaceStyle] = None) -> None:
        super().__init__(rect or Rect(0, 0, 600, 400), style)
        self._text = text
        end = self.max_position
        self._selection = _Selection(end, end)
        self.marks: List[Mark] = []
        self.decorations: List[Decoration] = []
        self.focused = False

    @classmethod
    def from_paragraphs(cls, paragraphs: Iterable[str], **kwargs) -> "RichTextDocument":
        return cls(BLOCK_SEPARATOR.join(paragraphs), **kwargs)

    # Positions

    @property
    def min_position(self) -> int:
        return 1

    @property
    def max_position(self) -> int:
        return len(self._text) + 1

    @staticmethod
    def position_for_offset(offset: int) -> int:
        return offset + 1

    @staticmethod
    def offset_for_position(position: int) -> int:
        return position - 1

    def _clamp(self, position: int) -> int:
        return max(self.min_position, min(position, self.max_position))

    # Reads

    def get_text(self) -> str:
        return self._text

    @property
    def paragraphs(self) -> List[str]:
        return self._text.split(BLOCK_SEPARATOR)

    @property
    def selection(self) -> Tuple[int, int]:
        return self._selection.start, self._selection.end

    @property
    def selection_empty(self) -> bool:
        return self._selection.empty

    def text_selection(self) -> Tuple[int, int]:
        start, end = self.selection
        return self.offset_for_position(start), self.offset_for_position(end)

    def text_between(self, start: int, end: int) -> str:
        return self._text[self.offset_for_position(start):self.offset_for_position(end)]

    # Commands

    def focus(self) -> None:
        self.focused = True

    def set_selection(self, start: int, end: Optional[int] = None) -> None:
        end = start if end is None else end
        self._selection = _Selection(self._clamp(start), self._clamp(end))
        self._emit("selection")

    def delete_range(self, start: int, end: int) -> None:
        start, end = self._clamp(start), self._clamp(end)
        if end <= start:
            return
        lo, hi = self.offset_for_position(start), self.offset_for_position(end)
        self._text = self._text[:lo] + self._text[hi:]
        self._remap(start, end, 0)
        self._selection = _Selection(start, start)
        self._emit("input", programmatic=True)

    def insert_text(self, position: int, text: str) -> None:
        position = self._clamp(position)
        offset = self.offset_for_position(position)
        self._text = self._text[:offset] + text + self._text[offset:]
        self._remap(position, position, len(text))
        caret = position + len(text)
        self._selection = _Selection(caret, caret)
        self._emit("input", programmatic=True)

    def type_text(self, text: str) -> None:
        """User keystrokes replacing the current selection."""
        start, end = self.selection
        lo, hi = self.offset_for_position(start), self.offset_for_position(end)
        self._text = self._text[:lo] + text + self._text[hi:]
        self._remap(start, end, len(text))
        caret = start + len(text)
        self._selection = _Selection(caret, caret)
        self._emit("input")

    def toggle_mark(self, name: str) -> None:
        start, end = self.selection
        if start == end:
            return
        if self.is_active(name):
            self.marks = [mark for mark in self.marks if not (mark.name == name and mark.start <= start and mark.end >= end)]
        else:
            self.marks.append(Mark(name, start, end))
        self._emit("marks")

    def is_active(self, name: str) -> bool:
        start, end = self.selection
        for mark in self.marks:
            if mark.name != name:
                continue
            if start == end and mark.start < start <= mark.end:
                return True
            if start != end and mark.start <= start and mark.end >= end:
                return True
        return False

    def add_decoration(self, start: int, end: int, css_class: str = "ai-highlight") -> Decoration:
        decoration = Decoration(self._clamp(start), self._clamp(end), css_class)
        self.decorations.append(decoration)
        self._emit("decorations")
        return decoration

    def clear_decorations(self, css_class: Optional[str] = None) -> None:
        before = len(self.decorations)
        self.decorations = [
            item for item in self.decorations if css_class is not None and item.css_class != css_class
        ]
        if len(self.decorations) != before:
            self._emit("decorations")

    def _remap(self, start: int, end: int, inserted: int) -> None:
        """Shift marks and decorations after replacing [start, end) with ``inserted`` chars."""
        delta = inserted - (end - start)

        def shift(position: int) -> int:
            if position <= start:
                return position
            if position >= end:
                return position + delta
            return start + inserted

        self.marks = [
            Mark(mark.name, shift(mark.start), shift(mark.end))
            for mark in self.marks
            if shift(mark.end) > shift(mark.start)
        ]
        self.decorations = [
            Decoration(shift(item.start), shift(item.end), item.css_class)
            for item in self.decorations
            if shift(item.end) > shift(item.start)
        ]


class FormattingState:
    """Toolbar-facing view of which marks are active at the selection.

    Recomputed from the document's change notifications instead of polling.
    """

    def __init__(self, document: RichTextDocument, mark_names: Iterable[str] = ("bold", "italic", "underline")) -> None:
        self.document = document
        self.mark_names = tuple(mark_names)
        self._active: Dict[str, bool] = {}
        self._listeners: List[Callable[[Dict[str, bool]], None]] = []
        self._refresh()
        self._unsubscribe = document.subscribe(self._on_change)

    def is_active(self, name: str) -> bool:
        return self._active.get(name, False)

    def subscribe(self, listener: Callable[[Dict[str, bool]], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def close(self) -> None:
        self._unsubscribe()

    def _on_change(self, event: ChangeEvent) -> None:
        if event.kind in {"selection", "input", "marks"}:
            self._refresh()

    def _refresh(self) -> None:
        active = {name: self.document.is_active(name) for name in self.mark_names}
        if active != self._active:
            self._active = active
            for listener in list(self._listeners):
                listener(dict(active))
